"""
Tests for core music primitives.

Tests cover:
- PitchClass, accidentals, PitchRef and parse_pitch (pitch.py)
- Duration, duration tokens and TimeSignature (rhythm.py)
"""

from fractions import Fraction

import pytest

from omniscore.core import (
    Duration,
    PitchClass,
    PitchRef,
    TimeSignature,
    accidental_offset,
    parse_duration_token,
    parse_pitch,
)


class TestPitchClass:
    """Tests for PitchClass enum."""

    def test_pitch_values(self) -> None:
        """Pitch classes have correct values."""
        assert PitchClass.C == 0
        assert PitchClass.E == 4
        assert PitchClass.B == 11

    def test_to_midi(self) -> None:
        """Convert to MIDI note numbers."""
        assert PitchClass.C.to_midi(4) == 60  # Middle C
        assert PitchClass.A.to_midi(4) == 69  # A440
        assert PitchClass.C.to_midi(-1) == 0

    def test_parse_case_insensitive(self) -> None:
        """Letters parse in either case."""
        assert PitchClass.parse("g") == PitchClass.G
        assert PitchClass.parse("G") == PitchClass.G

    def test_parse_invalid(self) -> None:
        """Non-letters raise ValueError."""
        with pytest.raises(ValueError):
            PitchClass.parse("h")


class TestAccidentals:
    """Tests for accidental offsets."""

    def test_simple_accidentals(self) -> None:
        """Sharps, flats and naturals."""
        assert accidental_offset("#") == 1
        assert accidental_offset("b") == -1
        assert accidental_offset("n") == 0

    def test_double_accidentals(self) -> None:
        """Double sharp and double flat."""
        assert accidental_offset("x") == 2
        assert accidental_offset("bb") == -2

    def test_quarter_tones(self) -> None:
        """Quarter-tone accidentals are fractional."""
        assert accidental_offset("qs") == Fraction(1, 2)
        assert accidental_offset("tqf") == Fraction(-3, 2)

    def test_accidentals_sum(self) -> None:
        """A run of accidentals adds up."""
        assert accidental_offset("#qs") == Fraction(3, 2)


class TestPitchRef:
    """Tests for PitchRef."""

    def test_from_whole_semitones(self) -> None:
        """Whole semitones carry no cents."""
        assert PitchRef.from_semitones(61) == PitchRef(61)

    def test_from_quarter_tone(self) -> None:
        """Quarter tones carry 50 cents."""
        assert PitchRef.from_semitones(Fraction(121, 2)) == PitchRef(60, 50)
        assert PitchRef.from_semitones(Fraction(119, 2)) == PitchRef(59, 50)

    def test_value(self) -> None:
        """Fractional value includes cents."""
        assert PitchRef(60, 50).value == 60.5

    def test_transpose(self) -> None:
        """Transposing keeps the cents."""
        assert PitchRef(60, 50).transpose(3) == PitchRef(63, 50)

    def test_str(self) -> None:
        """String form is midi:N with optional cents."""
        assert str(PitchRef(60)) == "midi:60"
        assert str(PitchRef(60, 50)) == "midi:60+50c"


class TestParsePitch:
    """Tests for standard-notation pitch parsing."""

    def test_with_octave(self) -> None:
        """Explicit octave is used and reported."""
        parsed = parse_pitch("c4", 2)
        assert parsed is not None
        assert parsed.pitch.midi == 60
        assert parsed.octave == 4

    def test_default_octave(self) -> None:
        """Missing octave falls back to the default."""
        parsed = parse_pitch("e", 5)
        assert parsed is not None
        assert parsed.pitch.midi == 76
        assert parsed.octave == 5

    def test_sharp_and_flat(self) -> None:
        """Accidentals adjust the letter."""
        assert parse_pitch("f#4", 4).pitch.midi == 66
        assert parse_pitch("bb3", 4).pitch.midi == 58
        assert parse_pitch("ebb4", 4).pitch.midi == 62

    def test_uppercase(self) -> None:
        """Uppercase letters are accepted."""
        assert parse_pitch("E2", 4).pitch.midi == 40

    def test_quarter_sharp(self) -> None:
        """Quarter-sharp pitches keep their remainder."""
        assert parse_pitch("cqs4", 4).pitch == PitchRef(60, 50)

    def test_invalid(self) -> None:
        """Non-pitch text yields None."""
        assert parse_pitch("zz", 4) is None
        assert parse_pitch("3-6", 4) is None
        assert parse_pitch("", 4) is None


class TestDuration:
    """Tests for Duration."""

    def test_from_denominator(self) -> None:
        """Note values from denominators."""
        assert Duration.from_denominator(4) == Duration.QUARTER
        assert Duration.from_denominator(8) == Duration.EIGHTH
        assert Duration.from_denominator(1) == Duration.WHOLE

    def test_dotted(self) -> None:
        """Dots multiply by 1.5 and 1.75."""
        assert Duration.from_denominator(4, 1).quarters == Fraction(3, 2)
        assert Duration.from_denominator(2, 2).quarters == Fraction(7, 2)

    def test_to_ticks(self) -> None:
        """Ticks at 1920 per quarter."""
        assert Duration.QUARTER.to_ticks() == 1920
        assert Duration.EIGHTH.to_ticks() == 960
        assert Duration.from_denominator(16).to_ticks() == 480

    def test_negative_rejected(self) -> None:
        """Negative durations raise."""
        with pytest.raises(ValueError):
            Duration(Fraction(-1))


class TestParseDurationToken:
    """Tests for the text after ':'."""

    def test_plain(self) -> None:
        """A bare denominator."""
        token = parse_duration_token("8")
        assert token is not None
        assert token.duration == Duration.EIGHTH
        assert token.modifier_text == ""

    def test_dotted(self) -> None:
        """Trailing dots make a dotted value."""
        assert parse_duration_token("4.").duration.quarters == Fraction(3, 2)

    def test_with_modifier(self) -> None:
        """Modifier text glued to the duration is split off."""
        token = parse_duration_token("8.vol")
        assert token.duration == Duration.EIGHTH
        assert token.modifier_text == "vol"

    def test_with_modifier_chain(self) -> None:
        """Several glued modifiers stay together."""
        assert parse_duration_token("4.stacc.acc").modifier_text == "stacc.acc"

    def test_invalid(self) -> None:
        """Zero and non-numeric values are rejected."""
        assert parse_duration_token("0") is None
        assert parse_duration_token("q") is None
        assert parse_duration_token("") is None


class TestTimeSignature:
    """Tests for TimeSignature."""

    def test_ticks_per_measure(self) -> None:
        """Measure length in ticks."""
        assert TimeSignature(4, 4).ticks_per_measure() == 7680
        assert TimeSignature(3, 4).ticks_per_measure() == 5760
        assert TimeSignature(6, 8).ticks_per_measure() == 5760

    def test_parse(self) -> None:
        """Parse from notation."""
        assert TimeSignature.parse("3/4").as_tuple() == (3, 4)

    def test_parse_invalid(self) -> None:
        """Malformed or zero parts raise ValueError."""
        for text in ("3", "a/b", "0/4", "4/0", "1/2/3"):
            with pytest.raises(ValueError):
                TimeSignature.parse(text)
