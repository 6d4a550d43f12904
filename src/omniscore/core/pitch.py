"""
Pitch primitives - PitchClass, accidentals and PitchRef.

These are the foundational types for standard-notation pitch resolution.
PitchClass represents the natural letter pitches (octave-independent).
Accidentals adjust a letter by a (possibly fractional) number of semitones.
PitchRef is the resolved, absolute pitch carried by timeline events.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from fractions import Fraction
from typing import NamedTuple

# Accidental spellings and their semitone adjustment.
# Order matters for matching: longer spellings first.
ACCIDENTALS: dict[str, Fraction] = {
    "tqs": Fraction(3, 2),  # three-quarter sharp
    "tqf": Fraction(-3, 2),  # three-quarter flat
    "qs": Fraction(1, 2),  # quarter sharp
    "qf": Fraction(-1, 2),  # quarter flat
    "x": Fraction(2),  # double sharp
    "bb": Fraction(-2),  # double flat
    "b": Fraction(-1),
    "#": Fraction(1),
    "n": Fraction(0),  # natural
}

_ACCIDENTAL_ALT = "|".join(re.escape(a) for a in ACCIDENTALS)

_PITCH_RE = re.compile(
    rf"^(?P<letter>[a-g])(?P<accidentals>(?:{_ACCIDENTAL_ALT})*)(?P<octave>-?\d+)?$",
    re.IGNORECASE,
)
_ACCIDENTAL_RE = re.compile(_ACCIDENTAL_ALT, re.IGNORECASE)


class PitchClass(IntEnum):
    """
    The seven natural pitch classes, valued in semitones above C.

    Octave-independent - C4 and C5 are both PitchClass.C.
    """

    C = 0
    D = 2
    E = 4
    F = 5
    G = 7
    A = 9
    B = 11

    def to_midi(self, octave: int = 4) -> int:
        """Convert to MIDI note number. C4 = 60."""
        return self.value + (octave + 1) * 12

    @classmethod
    def parse(cls, letter: str) -> PitchClass:
        """Parse a pitch class from a letter like 'c' or 'G'."""
        try:
            return cls[letter.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown pitch class: {letter}") from None


def accidental_offset(spelling: str) -> Fraction:
    """
    Sum the semitone adjustment of a run of accidentals.

    'b' -> -1, '#' -> +1, 'bb' -> -2, 'qs' -> +1/2, '#qs' -> +3/2
    """
    return sum(
        (ACCIDENTALS[m.group(0).lower()] for m in _ACCIDENTAL_RE.finditer(spelling)),
        Fraction(0),
    )


@dataclass(frozen=True, order=True)
class PitchRef:
    """
    A resolved absolute pitch.

    ``midi`` is the MIDI note number; ``cents`` carries the quarter-tone
    remainder above it (0 or 50).
    """

    midi: int
    cents: int = 0

    @property
    def value(self) -> float:
        """Fractional MIDI value (60.5 for a quarter-sharp middle C)."""
        return self.midi + self.cents / 100

    @classmethod
    def from_semitones(cls, semitones: Fraction | int) -> PitchRef:
        """Build from a fractional MIDI value, rounding to the nearest cent."""
        value = Fraction(semitones)
        midi = int(value // 1)
        cents = round((value - midi) * 100)
        return cls(midi, cents)

    def transpose(self, semitones: int) -> PitchRef:
        """Transpose by whole semitones."""
        return PitchRef(self.midi + semitones, self.cents)

    def __str__(self) -> str:
        if self.cents:
            return f"midi:{self.midi}+{self.cents}c"
        return f"midi:{self.midi}"


class ParsedPitch(NamedTuple):
    """Result of parsing a standard-notation pitch token."""

    pitch: PitchRef
    octave: int


def parse_pitch(token: str, default_octave: int) -> ParsedPitch | None:
    """
    Parse a standard-notation pitch like 'c4', 'F#', 'ebb3', 'gqs5'.

    Args:
        token: Pitch text, letter first
        default_octave: Octave used when the token carries none

    Returns:
        ParsedPitch with the absolute pitch and the octave that was used,
        or None when the token is not a pitch
    """
    match = _PITCH_RE.match(token)
    if not match:
        return None

    letter = PitchClass.parse(match.group("letter"))
    octave_str = match.group("octave")
    octave = int(octave_str) if octave_str else default_octave

    semitones = letter.to_midi(octave) + accidental_offset(match.group("accidentals") or "")
    return ParsedPitch(PitchRef.from_semitones(semitones), octave)
