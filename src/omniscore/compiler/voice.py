"""
Voice streams - sticky cursors and the per-voice event interpreter.

Each (instrument, voice) pair owns a cursor carrying the sticky octave
and duration across measures. A voice stream is read from the start of
its measure: the local tick starts at 0 and each non-grace event advances
it by its duration. Macro calls are expanded in place and share the same
cursor and local tick.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import TYPE_CHECKING, NamedTuple

from omniscore.constants import DEFAULT_OCTAVE, DEFAULT_VOICE, ErrorMessages
from omniscore.compiler.resolver import read_call_args, read_event, resolve_velocity
from omniscore.core.rhythm import Duration
from omniscore.errors import DiagnosticSeverity
from omniscore.lexer import Token, TokenKind, TokenStream
from omniscore.models.score import InstrumentDef, NoteEvent

if TYPE_CHECKING:
    from omniscore.compiler.context import CompileContext
    from omniscore.compiler.resolver import EventSpec, PitchResolver

logger = logging.getLogger(__name__)


class VoiceKey(NamedTuple):
    instrument_id: str
    voice_id: str


@dataclass
class VoiceCursor:
    """Sticky state of one voice."""

    octave: int = DEFAULT_OCTAVE
    duration: Fraction = Fraction(1)  # Quarter notes
    tick: int = 0  # Absolute end tick of the last event


class CursorTable:
    """Voice cursors keyed by (instrument, voice), created on first use."""

    def __init__(self) -> None:
        self._cursors: dict[VoiceKey, VoiceCursor] = {}

    def register(self, instrument_id: str) -> None:
        """Start an instrument with no voice cursors."""
        for key in [k for k in self._cursors if k.instrument_id == instrument_id]:
            del self._cursors[key]

    def get(self, key: VoiceKey) -> VoiceCursor:
        cursor = self._cursors.get(key)
        if cursor is None:
            cursor = self._cursors[key] = VoiceCursor()
        return cursor

    def __contains__(self, key: VoiceKey) -> bool:
        return key in self._cursors

    def __len__(self) -> int:
        return len(self._cursors)

    def keys(self) -> list[VoiceKey]:
        return list(self._cursors)


class VoiceStreamInterpreter:
    """
    Interprets `id: stream` and `id: { v1: ... | v2: ... }` inside a measure.

    Events are emitted at base_tick plus the stream's local tick.
    """

    def __init__(self, ctx: CompileContext, resolver: PitchResolver) -> None:
        self.ctx = ctx
        self.resolver = resolver

    def interpret(
        self,
        stream: TokenStream,
        instrument: InstrumentDef,
        base_tick: int,
        measure: int | None = None,
    ) -> None:
        """Consume one instrument entry starting at its id token."""
        stream.next()
        stream.match(":")
        if stream.match("{"):
            while not stream.at_end and not stream.peek().is_punct("}"):
                voice_token = stream.next()
                if voice_token.kind == TokenKind.PUNCT:
                    continue
                stream.match(":")
                self.run_voice(stream, instrument, voice_token.value, base_tick, measure)
                stream.match("|")
            stream.match("}")
        else:
            self.run_voice(stream, instrument, DEFAULT_VOICE, base_tick, measure)
            stream.match("|")

    def run_voice(
        self,
        stream: TokenStream,
        instrument: InstrumentDef,
        voice_id: str,
        base_tick: int,
        measure: int | None = None,
    ) -> int:
        """Read one voice stream; returns the local tick it ended at."""
        key = VoiceKey(instrument.id, voice_id)
        return self._run_events(stream, instrument, key, base_tick, 0, measure, depth=0)

    def _run_events(
        self,
        stream: TokenStream,
        instrument: InstrumentDef,
        key: VoiceKey,
        base_tick: int,
        local_tick: int,
        measure: int | None,
        depth: int,
    ) -> int:
        nested = depth > 0
        while not stream.at_end:
            token = stream.peek()
            if not nested and self._ends_stream(stream):
                break
            if token.kind == TokenKind.MACRO_REF:
                stream.next()
                local_tick = self._expand_macro(
                    token, stream, instrument, key, base_tick, local_tick, measure, depth
                )
            elif token.is_punct("[") or (
                token.kind == TokenKind.SYMBOL and not token.text.startswith(".")
            ):
                spec = read_event(stream)
                local_tick += self._emit(spec, instrument, key, base_tick + local_tick, measure)
            else:
                stream.next()
        return local_tick

    def _ends_stream(self, stream: TokenStream) -> bool:
        """
        '|', '}', a meta keyword, or `id:` of a defined instrument ends a
        voice stream.
        """
        token = stream.peek()
        if token.is_punct("|") or token.is_punct("}"):
            return True
        if token.kind != TokenKind.SYMBOL:
            return False
        if token.lower == "meta":
            return True
        return token.text in self.ctx.instruments and stream.peek(1).is_punct(":")

    def _expand_macro(
        self,
        token: Token,
        stream: TokenStream,
        instrument: InstrumentDef,
        key: VoiceKey,
        base_tick: int,
        local_tick: int,
        measure: int | None,
        depth: int,
    ) -> int:
        ctx = self.ctx
        name = token.text[1:]
        args = read_call_args(stream)
        macro = ctx.macros.get(name)
        if macro is None:
            ctx.report_once(
                DiagnosticSeverity.WARNING,
                "UNKNOWN_MACRO",
                name,
                ErrorMessages.UNKNOWN_MACRO.format(name=name),
                token,
            )
            return local_tick
        if depth >= ctx.options.max_macro_depth:
            ctx.report_once(
                DiagnosticSeverity.WARNING,
                "MACRO_TOO_DEEP",
                name,
                ErrorMessages.MACRO_TOO_DEEP.format(name=name, depth=ctx.options.max_macro_depth),
                token,
            )
            return local_tick
        if ctx.macro_expansions >= ctx.options.max_macro_expansions:
            ctx.report_once(
                DiagnosticSeverity.WARNING,
                "MACRO_BUDGET",
                "",
                ErrorMessages.MACRO_BUDGET.format(limit=ctx.options.max_macro_expansions),
                token,
            )
            return local_tick
        ctx.macro_expansions += 1

        body = TokenStream(macro.expand(args))
        return self._run_events(body, instrument, key, base_tick, local_tick, measure, depth + 1)

    def _emit(
        self,
        spec: EventSpec,
        instrument: InstrumentDef,
        key: VoiceKey,
        tick_start: int,
        measure: int | None,
    ) -> int:
        """Append one event; returns the ticks it advances the stream by."""
        ctx = self.ctx
        cursor = ctx.cursors.get(key)
        if spec.duration is not None:
            cursor.duration = spec.duration.quarters
        elif spec.bad_duration is not None:
            ctx.warn(
                "INVALID_DURATION",
                ErrorMessages.INVALID_DURATION.format(duration=spec.bad_duration),
                spec.anchor,
            )

        kind, pitches = self.resolver.classify(spec, instrument, cursor, ctx)
        grace = spec.is_grace
        duration = Fraction(0) if grace else cursor.duration
        ticks = Duration(duration).to_ticks()

        event = NoteEvent(
            kind=kind,
            pitches=pitches,
            duration=duration,
            tick_start=tick_start,
            tick_end=tick_start + ticks,
            velocity=resolve_velocity(spec.modifiers),
            instrument_id=key.instrument_id,
            voice_id=key.voice_id,
            modifiers=tuple(spec.modifiers),
            measure=measure,
        )
        if not ctx.timeline.add(event):
            ctx.report_once(
                DiagnosticSeverity.WARNING,
                "EVENT_LIMIT",
                "",
                ErrorMessages.EVENT_LIMIT.format(limit=ctx.timeline.max_events),
                spec.anchor,
            )
            return ticks
        cursor.tick = event.tick_end
        return ticks

