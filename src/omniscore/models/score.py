"""
Score model - the compiler's output.

A CompiledScore contains:
- Meta (title, composer, tempo, key, time signature)
- Instruments (ordered definitions with staff style and sound settings)
- Groups (visual grouping of instruments)
- Timeline (note/rest/chord events in absolute ticks, sorted by start)

The timeline is designed to be:
- Deterministic: same source -> same timeline
- Serializable: JSON/YAML for inspection and golden-file testing
- Queryable: renderers ask for measure windows, playback asks for seconds
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any

from pydantic import BaseModel, Field

from omniscore.constants import TICKS_PER_QUARTER, EventKind, StaffStyle
from omniscore.core.pitch import PitchRef
from omniscore.core.rhythm import TimeSignature
from omniscore.models.modifier import Modifier, ModifierKind

# A percussion map value: bare MIDI number or [visual position, MIDI]
DrumMapValue = int | tuple[int, int]


class ScoreMeta(BaseModel):
    """
    Score-level metadata.

    Mutable for the whole compilation: a meta block inside a measure
    re-applies its keys at that point of the walk.
    """

    title: str = Field("Untitled", description="Score title")
    composer: str = Field("Unknown", description="Composer")
    tempo: int = Field(120, description="Quarter notes per minute")
    key: str = Field("C", description="Key signature")
    time_signature: tuple[int, int] = Field((4, 4), description="(numerator, denominator)")
    extra: dict[str, str] = Field(default_factory=dict, description="Unrecognized keys")

    def get_time_signature(self) -> TimeSignature:
        """Time signature as an object, falling back to 4/4 if unusable."""
        try:
            return TimeSignature(*self.time_signature)
        except ValueError:
            return TimeSignature.COMMON_TIME


class InstrumentDef(BaseModel):
    """
    An instrument declared with `def`.

    The id is the key used by measure logic; style selects the pitch
    dialect. Sound settings (patch, volume, pan, transpose) are carried
    for the playback engine and not applied by the compiler.
    """

    id: str = Field(..., description="Unique instrument id")
    label: str = Field(..., description="Display label")
    group: str | None = Field(None, description="Enclosing group label")
    style: StaffStyle = Field(StaffStyle.STANDARD, description="Pitch dialect")
    clef: str | None = Field(None, description="Clef name")
    transpose: int | None = Field(None, description="Transposition in semitones")
    tuning: tuple[str, ...] | None = Field(None, description="String pitches, lowest first")
    map: dict[str, DrumMapValue] | None = Field(None, description="Percussion symbol map")
    patch: str | None = Field(None, description="Sound patch name")
    volume: float | None = Field(None, description="Mix volume")
    pan: float | None = Field(None, description="Stereo pan")

    model_config = {"frozen": True}


class InstrumentGroup(BaseModel):
    """A labelled group of instruments with its raw attributes (symbol=bracket, ...)."""

    label: str = Field(..., description="Group label")
    attributes: dict[str, str] = Field(default_factory=dict, description="Group attributes")
    instruments: list[str] = Field(default_factory=list, description="Member instrument ids")


@dataclass(frozen=True)
class NoteEvent:
    """
    A single compiled event.

    Ticks are absolute from the start of the score. Grace events have
    duration 0 and tick_end == tick_start. Pitches keep insertion order.
    """

    kind: EventKind
    pitches: tuple[PitchRef, ...]
    duration: Fraction  # Quarter notes
    tick_start: int
    tick_end: int
    velocity: float  # 0.0-1.0
    instrument_id: str
    voice_id: str
    modifiers: tuple[Modifier, ...] = ()
    measure: int | None = None  # 1-based measure index that produced the event

    def __post_init__(self) -> None:
        """Validate tick ranges."""
        if self.tick_end < self.tick_start:
            raise ValueError(f"tick_end {self.tick_end} precedes tick_start {self.tick_start}")
        if self.duration < 0:
            raise ValueError(f"Duration must be >= 0, got {self.duration}")

    @property
    def is_grace(self) -> bool:
        return any(m.kind == ModifierKind.GRACE for m in self.modifiers)

    @property
    def midi_pitches(self) -> list[int]:
        """Plain MIDI numbers, quarter-tone remainders dropped."""
        return [p.midi for p in self.pitches]

    def has_modifier(self, name: str) -> bool:
        return any(m.name == name for m in self.modifiers)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "pitches": [str(p) for p in self.pitches],
            "duration": float(self.duration),
            "tick_start": self.tick_start,
            "tick_end": self.tick_end,
            "velocity": self.velocity,
            "instrument_id": self.instrument_id,
            "voice_id": self.voice_id,
        }
        # Only include optional data if present
        if self.modifiers:
            d["modifiers"] = [m.to_dict() for m in self.modifiers]
        if self.measure is not None:
            d["measure"] = self.measure
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> NoteEvent:
        """Create from dictionary."""
        return cls(
            kind=EventKind(d["kind"]),
            pitches=tuple(_parse_pitch_ref(p) for p in d.get("pitches", [])),
            duration=Fraction(d["duration"]).limit_denominator(TICKS_PER_QUARTER),
            tick_start=d["tick_start"],
            tick_end=d["tick_end"],
            velocity=d["velocity"],
            instrument_id=d["instrument_id"],
            voice_id=d["voice_id"],
            modifiers=tuple(Modifier.from_dict(m) for m in d.get("modifiers", [])),
            measure=d.get("measure"),
        )


def _parse_pitch_ref(text: str) -> PitchRef:
    """Inverse of str(PitchRef): 'midi:60' or 'midi:60+50c'."""
    body = text.removeprefix("midi:")
    if "+" in body:
        midi, cents = body.split("+", 1)
        return PitchRef(int(midi), int(cents.rstrip("c")))
    return PitchRef(int(body))


@dataclass
class CompiledScore:
    """
    The complete compiled score.

    This is the contract with the external renderer and playback engine.
    The timeline is sorted by tick_start (stable on ties) and
    duration_ticks is the latest tick_end.
    """

    meta: ScoreMeta = field(default_factory=ScoreMeta)
    instruments: list[InstrumentDef] = field(default_factory=list)
    groups: list[InstrumentGroup] = field(default_factory=list)
    timeline: list[NoteEvent] = field(default_factory=list)
    duration_ticks: int = 0
    ticks_per_quarter: int = TICKS_PER_QUARTER

    def get_instrument(self, instrument_id: str) -> InstrumentDef | None:
        """Get an instrument definition by id."""
        for instrument in self.instruments:
            if instrument.id == instrument_id:
                return instrument
        return None

    # Playback interface

    @property
    def seconds_per_tick(self) -> float:
        """Wall-clock length of one tick at the score tempo."""
        return 60 / (self.meta.tempo * self.ticks_per_quarter)

    def tick_to_seconds(self, tick: int) -> float:
        return tick * self.seconds_per_tick

    @property
    def duration_seconds(self) -> float:
        return self.tick_to_seconds(self.duration_ticks)

    # Rendering interface

    def measure_window(self, index: int) -> tuple[int, int]:
        """
        Tick range [start, end) of a 1-based measure under the final time signature.
        """
        ticks = self.meta.get_time_signature().ticks_per_measure(self.ticks_per_quarter)
        start = (index - 1) * ticks
        return (start, start + ticks)

    def events_in_window(
        self,
        start_tick: int,
        end_tick: int,
        instrument_id: str | None = None,
        voice_id: str | None = None,
    ) -> list[NoteEvent]:
        """
        Events starting in [start_tick, end_tick), optionally filtered.

        Args:
            start_tick: Window start (inclusive)
            end_tick: Window end (exclusive)
            instrument_id: Keep only this instrument
            voice_id: Keep only this voice

        Returns:
            Events in timeline order
        """
        return [
            e
            for e in self.timeline
            if start_tick <= e.tick_start < end_tick
            and (instrument_id is None or e.instrument_id == instrument_id)
            and (voice_id is None or e.voice_id == voice_id)
        ]

    def events_by_instrument(self) -> dict[str, list[NoteEvent]]:
        """Group events by instrument id."""
        result: dict[str, list[NoteEvent]] = {}
        for event in self.timeline:
            result.setdefault(event.instrument_id, []).append(event)
        return result

    def voices(self) -> dict[str, list[str]]:
        """Voice ids used by each instrument, in first-use order."""
        result: dict[str, list[str]] = {}
        for event in self.timeline:
            voices = result.setdefault(event.instrument_id, [])
            if event.voice_id not in voices:
                voices.append(event.voice_id)
        return result

    def event_count(self) -> int:
        return len(self.timeline)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for JSON/YAML serialization."""
        return {
            "meta": self.meta.model_dump(mode="json"),
            "instruments": [i.model_dump(mode="json", exclude_none=True) for i in self.instruments],
            "groups": [g.model_dump(mode="json") for g in self.groups],
            "ticks_per_quarter": self.ticks_per_quarter,
            "duration_ticks": self.duration_ticks,
            "timeline": [e.to_dict() for e in self.timeline],
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CompiledScore:
        """Create from dictionary."""
        return cls(
            meta=ScoreMeta.model_validate(d.get("meta", {})),
            instruments=[InstrumentDef.model_validate(i) for i in d.get("instruments", [])],
            groups=[InstrumentGroup.model_validate(g) for g in d.get("groups", [])],
            timeline=[NoteEvent.from_dict(e) for e in d.get("timeline", [])],
            duration_ticks=d.get("duration_ticks", 0),
            ticks_per_quarter=d.get("ticks_per_quarter", TICKS_PER_QUARTER),
        )

    @classmethod
    def from_json(cls, json_str: str) -> CompiledScore:
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(json_str))

    def summary(self) -> dict[str, Any]:
        """Generate a summary for quick inspection."""
        sounding = [p.midi for e in self.timeline for p in e.pitches]
        by_instrument = self.events_by_instrument()
        return {
            "title": self.meta.title,
            "composer": self.meta.composer,
            "tempo": self.meta.tempo,
            "key": self.meta.key,
            "time_signature": "/".join(str(n) for n in self.meta.time_signature),
            "instruments": [i.id for i in self.instruments],
            "total_events": self.event_count(),
            "events_by_instrument": {
                inst: len(events) for inst, events in sorted(by_instrument.items())
            },
            "duration_ticks": self.duration_ticks,
            "duration_seconds": round(self.duration_seconds, 3),
            "pitch_range": (min(sounding), max(sounding)) if sounding else (0, 0),
        }
