"""
Rhythm primitives - Duration and TimeSignature.

Time primitives for representing rhythmic values and measure lengths.
Uses Fraction for exact subdivision representation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from fractions import Fraction
from typing import ClassVar

from omniscore.constants import TICKS_PER_QUARTER

# <denominator><dots>[.<modifier text>] as written after ':' in an event
_DURATION_RE = re.compile(r"^(?P<denominator>\d+)(?P<dots>\.{0,2})(?:\.(?P<rest>[A-Za-z].*))?$")

# Multipliers for dotted values
_DOT_FACTORS = {0: Fraction(1), 1: Fraction(3, 2), 2: Fraction(7, 4)}


@dataclass(frozen=True)
class Duration:
    """
    A rhythmic duration expressed in quarter notes.

    Uses Fraction for exact representation of subdivisions.
    A quarter note is Fraction(1); an eighth is Fraction(1, 2).
    Grace events use a zero duration.

    Immutable and hashable.
    """

    quarters: Fraction

    # Common durations (defined after class)
    WHOLE: ClassVar[Duration]
    HALF: ClassVar[Duration]
    QUARTER: ClassVar[Duration]
    EIGHTH: ClassVar[Duration]
    SIXTEENTH: ClassVar[Duration]
    ZERO: ClassVar[Duration]

    def __post_init__(self) -> None:
        if self.quarters < 0:
            raise ValueError(f"Duration must be non-negative, got {self.quarters}")

    @classmethod
    def from_denominator(cls, denominator: int, dots: int = 0) -> Duration:
        """
        Build from a note-value denominator (4 = quarter, 8 = eighth).

        One dot multiplies by 1.5, two dots by 1.75.
        """
        if denominator <= 0:
            raise ValueError(f"Denominator must be positive, got {denominator}")
        if dots not in _DOT_FACTORS:
            raise ValueError(f"At most two dots supported, got {dots}")
        return cls(Fraction(4, denominator) * _DOT_FACTORS[dots])

    def to_ticks(self, ticks_per_quarter: int = TICKS_PER_QUARTER) -> int:
        """
        Convert to ticks.

        Args:
            ticks_per_quarter: Timeline resolution (1920)

        Returns:
            Number of ticks
        """
        return int(self.quarters * ticks_per_quarter)

    def __str__(self) -> str:
        name_map = {
            Fraction(4): "whole",
            Fraction(2): "half",
            Fraction(1): "quarter",
            Fraction(1, 2): "eighth",
            Fraction(1, 4): "sixteenth",
            Fraction(3): "dotted half",
            Fraction(3, 2): "dotted quarter",
            Fraction(3, 4): "dotted eighth",
            Fraction(0): "grace",
        }
        if self.quarters in name_map:
            return name_map[self.quarters]
        return f"{self.quarters} quarters"


Duration.WHOLE = Duration(Fraction(4))
Duration.HALF = Duration(Fraction(2))
Duration.QUARTER = Duration(Fraction(1))
Duration.EIGHTH = Duration(Fraction(1, 2))
Duration.SIXTEENTH = Duration(Fraction(1, 4))
Duration.ZERO = Duration(Fraction(0))


@dataclass(frozen=True)
class DurationToken:
    """A duration as written after ':' plus any modifier text glued to it."""

    duration: Duration
    modifier_text: str = ""


def parse_duration_token(text: str) -> DurationToken | None:
    """
    Parse the text that follows ':' in an event.

    '8' -> eighth, '4.' -> dotted quarter, '2..' -> double-dotted half,
    '8.vol' -> eighth with modifier text 'vol'.

    Returns:
        DurationToken, or None if the text is not a valid duration
    """
    match = _DURATION_RE.match(text)
    if not match:
        return None
    denominator = int(match.group("denominator"))
    if denominator == 0:
        return None
    duration = Duration.from_denominator(denominator, len(match.group("dots")))
    return DurationToken(duration, match.group("rest") or "")


@dataclass(frozen=True)
class TimeSignature:
    """
    A time signature as numerator/denominator.

    Examples:
        TimeSignature(4, 4) = common time
        TimeSignature(6, 8) = compound duple
    """

    numerator: int
    denominator: int

    COMMON_TIME: ClassVar[TimeSignature]  # 4/4

    def __post_init__(self) -> None:
        if self.numerator <= 0:
            raise ValueError(f"Numerator must be positive, got {self.numerator}")
        if self.denominator <= 0:
            raise ValueError(f"Denominator must be positive, got {self.denominator}")

    @property
    def measure_quarters(self) -> Fraction:
        """Length of one measure in quarter notes."""
        return self.numerator * Fraction(4, self.denominator)

    def ticks_per_measure(self, ticks_per_quarter: int = TICKS_PER_QUARTER) -> int:
        """Get the number of ticks in one measure."""
        return int(self.measure_quarters * ticks_per_quarter)

    def as_tuple(self) -> tuple[int, int]:
        return (self.numerator, self.denominator)

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"

    @classmethod
    def parse(cls, notation: str) -> TimeSignature:
        """
        Parse a time signature from notation like '4/4', '3/4', '6/8'.

        Args:
            notation: Time signature string

        Returns:
            TimeSignature object

        Raises:
            ValueError: If the notation is malformed or has a zero part
        """
        parts = notation.strip().split("/")
        if len(parts) != 2:
            raise ValueError(f"Invalid time signature format: {notation}")
        return cls(int(parts[0]), int(parts[1]))


TimeSignature.COMMON_TIME = TimeSignature(4, 4)
