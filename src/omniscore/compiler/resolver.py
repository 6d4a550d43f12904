"""
Event resolver - event grammar, pitch dialects, durations and modifiers.

An event is written as

    pitch[:duration][.modifier[(args)]]...

where pitch is a single pitch symbol or a bracketed chord. Because ':'
and parentheses are separate tokens, one event spans several tokens:
'c4:8.stacc' arrives as 'c4' ':' '8.stacc', and 'c4.vol(90)' as 'c4.vol'
'(' '90' ')'. Modifier text can sit on the pitch symbol, on the duration
symbol, or on a following token that starts with '.'.

Pitch symbols are resolved by the instrument's staff style:
- standard: letter, accidentals, optional octave (c4, f#, ebb3, gqs5)
- tab: fret-string against the instrument tuning (3-6 = fret 3, string 6)
- grid: symbol lookup in the instrument's percussion map
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from omniscore.constants import (
    DEFAULT_OCTAVE,
    DEFAULT_VELOCITY,
    GM_DRUM_MAP,
    GUITAR_STD_TUNING,
    NOMINAL_PITCH,
    REST_SYMBOLS,
    ErrorMessages,
    EventKind,
    StaffStyle,
)
from omniscore.core.pitch import PitchRef, parse_pitch
from omniscore.core.rhythm import Duration, parse_duration_token
from omniscore.lexer import Token, TokenKind, TokenStream
from omniscore.models.modifier import Modifier, ModifierKind
from omniscore.models.score import InstrumentDef

if TYPE_CHECKING:
    from omniscore.compiler.context import CompileContext
    from omniscore.compiler.voice import VoiceCursor


@dataclass
class EventSpec:
    """One written event before pitch resolution."""

    anchor: Token
    pitch_texts: list[str]
    is_chord: bool = False
    duration: Duration | None = None
    bad_duration: str | None = None
    modifiers: list[Modifier] = field(default_factory=list)

    @property
    def is_grace(self) -> bool:
        return any(m.kind == ModifierKind.GRACE for m in self.modifiers)


# ============================================================================
# Event grammar
# ============================================================================


def read_event(stream: TokenStream) -> EventSpec:
    """
    Consume one event from the stream.

    The current token must be a pitch symbol or '['.
    """
    first = stream.next()
    chain: list[list] = []  # [name, raw args] pairs in written order

    if first.is_punct("["):
        spec = EventSpec(anchor=first, pitch_texts=_read_chord(stream), is_chord=True)
    else:
        pitch_text, _, modifier_text = first.text.partition(".")
        spec = EventSpec(anchor=first, pitch_texts=[pitch_text])
        _extend_chain(chain, modifier_text)

    while True:
        token = stream.peek()
        if token.is_punct("(") and chain:
            stream.next()
            chain[-1][1] = _read_args(stream)
        elif token.is_punct(":") and spec.duration is None and spec.bad_duration is None:
            stream.next()
            duration_token = stream.peek()
            if stream.at_end or duration_token.kind != TokenKind.SYMBOL:
                continue
            stream.next()
            parsed = parse_duration_token(duration_token.text)
            if parsed is None:
                spec.bad_duration = duration_token.text
            else:
                spec.duration = parsed.duration
                _extend_chain(chain, parsed.modifier_text)
        elif token.kind == TokenKind.SYMBOL and token.text.startswith("."):
            stream.next()
            _extend_chain(chain, token.text[1:])
        else:
            break

    spec.modifiers = [Modifier.create(name, args) for name, args in chain]
    return spec


def _extend_chain(chain: list[list], text: str) -> None:
    for name in text.split("."):
        if name:
            chain.append([name, []])


def _read_chord(stream: TokenStream) -> list[str]:
    """Pitch texts up to ']'; ':' and other punctuation inside are skipped."""
    pitches = []
    while not stream.at_end:
        token = stream.peek()
        if token.is_punct("]"):
            stream.next()
            break
        if token.is_punct("|") or token.is_punct("}"):
            break
        stream.next()
        if token.kind == TokenKind.SYMBOL:
            pitches.append(token.text)
    return pitches


def _read_args(stream: TokenStream) -> list[str]:
    """Argument texts up to the matching ')', split on top-level commas."""
    args: list[str] = []
    current = ""
    depth = 0
    while not stream.at_end:
        token = stream.peek()
        if token.is_punct("|") or token.is_punct("}"):
            break
        stream.next()
        if token.is_punct(")"):
            if depth == 0:
                break
            depth -= 1
        elif token.is_punct("("):
            depth += 1
        elif token.is_punct(",") and depth == 0:
            args.append(current)
            current = ""
            continue
        current += token.value
    if current or args:
        args.append(current)
    return args


def read_call_args(stream: TokenStream) -> list[list[Token]]:
    """
    Argument token lists of a macro call, when '(' follows.

    Nested parentheses are kept inside an argument; an unclosed list
    stops at '|' or '}'.
    """
    if not stream.match("("):
        return []
    args: list[list[Token]] = []
    current: list[Token] = []
    depth = 0
    while not stream.at_end:
        token = stream.peek()
        if token.is_punct("|") or token.is_punct("}"):
            break
        stream.next()
        if token.is_punct(")"):
            if depth == 0:
                break
            depth -= 1
        elif token.is_punct("("):
            depth += 1
        elif token.is_punct(",") and depth == 0:
            args.append(current)
            current = []
            continue
        current.append(token)
    if current or args:
        args.append(current)
    return args


# ============================================================================
# Pitch and velocity resolution
# ============================================================================


class PitchResolver:
    """Maps pitch symbols to absolute pitches per staff style."""

    def is_rest(self, spec: EventSpec) -> bool:
        """
        Whether the event is a rest.

        'r' and 's' are rests on every staff style, checked before any
        percussion map lookup.
        """
        if spec.is_chord or len(spec.pitch_texts) != 1:
            return False
        return spec.pitch_texts[0] in REST_SYMBOLS

    def classify(
        self,
        spec: EventSpec,
        instrument: InstrumentDef,
        cursor: VoiceCursor,
        ctx: CompileContext,
    ) -> tuple[EventKind, tuple[PitchRef, ...]]:
        """Event kind and resolved pitches, in written order."""
        if self.is_rest(spec):
            return EventKind.REST, ()
        pitches = tuple(
            self.resolve(text, instrument, cursor, ctx, spec.anchor) for text in spec.pitch_texts
        )
        return (EventKind.CHORD if spec.is_chord else EventKind.NOTE), pitches

    def resolve(
        self,
        text: str,
        instrument: InstrumentDef,
        cursor: VoiceCursor,
        ctx: CompileContext,
        anchor: Token | None = None,
    ) -> PitchRef:
        """
        Resolve one pitch symbol.

        Unresolvable symbols become the nominal pitch and are reported.
        On standard staves a failed parse resets the cursor octave to 4.
        """
        if instrument.style == StaffStyle.TAB:
            pitch = self._resolve_tab(text, instrument)
        elif instrument.style == StaffStyle.GRID:
            pitch = self._resolve_grid(text, instrument)
        else:
            pitch = self._resolve_standard(text, cursor)

        if pitch is None:
            ctx.warn(
                "UNRESOLVED_PITCH",
                ErrorMessages.UNRESOLVED_PITCH.format(
                    pitch=text, style=instrument.style.value, instrument=instrument.id
                ),
                anchor,
            )
            return PitchRef(NOMINAL_PITCH)
        return pitch

    def _resolve_standard(self, text: str, cursor: VoiceCursor) -> PitchRef | None:
        parsed = parse_pitch(text, cursor.octave)
        if parsed is None:
            cursor.octave = DEFAULT_OCTAVE
            return None
        cursor.octave = parsed.octave
        return parsed.pitch

    def _resolve_tab(self, text: str, instrument: InstrumentDef) -> PitchRef | None:
        fret_text, sep, string_text = text.partition("-")
        if not sep or not fret_text.isdigit() or not string_text.isdigit():
            return None
        fret, string = int(fret_text), int(string_text)
        tuning = instrument.tuning or GUITAR_STD_TUNING
        # String 1 is the highest-pitched string, the last tuning entry
        if not 1 <= string <= len(tuning):
            return None
        open_string = parse_pitch(tuning[len(tuning) - string], 4)
        if open_string is None:
            return None
        return open_string.pitch.transpose(fret)

    def _resolve_grid(self, text: str, instrument: InstrumentDef) -> PitchRef | None:
        value = (instrument.map or GM_DRUM_MAP).get(text)
        if value is None:
            return None
        if isinstance(value, (tuple, list)):
            value = value[1]
        return PitchRef(int(value))


def resolve_velocity(modifiers: list[Modifier]) -> float:
    """
    Velocity from the first vol/vel modifier, scaled from 0-127 and
    clamped to [0, 1]; DEFAULT_VELOCITY when absent or not numeric.
    """
    for modifier in modifiers:
        if modifier.kind == ModifierKind.VOLUME:
            number = modifier.number
            if number is None:
                return DEFAULT_VELOCITY
            return min(1.0, max(0.0, number / 127))
    return DEFAULT_VELOCITY
