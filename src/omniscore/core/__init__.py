"""
Core music primitives.

These are the invariants the compiler resolves against:
- PitchClass: The natural letter pitches
- PitchRef: A resolved absolute pitch (MIDI + cents)
- Duration: Note lengths as fractions of a quarter note
- TimeSignature: Measure length as numerator/denominator
"""

from omniscore.core.pitch import (
    ACCIDENTALS,
    ParsedPitch,
    PitchClass,
    PitchRef,
    accidental_offset,
    parse_pitch,
)
from omniscore.core.rhythm import Duration, DurationToken, TimeSignature, parse_duration_token

__all__ = [
    # Pitch
    "ACCIDENTALS",
    "ParsedPitch",
    "PitchClass",
    "PitchRef",
    "accidental_offset",
    "parse_pitch",
    # Rhythm
    "Duration",
    "DurationToken",
    "TimeSignature",
    "parse_duration_token",
]
