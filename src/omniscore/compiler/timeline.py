"""
Timeline assembly - collects events and orders them for output.
"""

from __future__ import annotations

from omniscore.models.score import NoteEvent


class TimelineAssembler:
    """
    Accumulates events in emission order up to a fixed cap.

    finalize() sorts by tick_start; the sort is stable so events that
    start together keep their emission order.
    """

    def __init__(self, max_events: int) -> None:
        self.max_events = max_events
        self.truncated = False
        self._events: list[NoteEvent] = []

    @property
    def full(self) -> bool:
        return len(self._events) >= self.max_events

    def add(self, event: NoteEvent) -> bool:
        """Append an event; returns False once the cap has been reached."""
        if self.full:
            self.truncated = True
            return False
        self._events.append(event)
        return True

    def __len__(self) -> int:
        return len(self._events)

    def finalize(self) -> tuple[list[NoteEvent], int]:
        """
        Sorted timeline and total duration.

        Returns:
            (events sorted by tick_start, latest tick_end or 0 when empty)
        """
        timeline = sorted(self._events, key=lambda e: e.tick_start)
        duration_ticks = max((e.tick_end for e in timeline), default=0)
        return timeline, duration_ticks
