"""
Constants and enums for the OmniScore compiler.

No magic strings - use enums and module constants for constrained values.
"""

from enum import Enum, IntEnum

# Fixed timeline resolution: ticks per quarter note
TICKS_PER_QUARTER = 1920

# Velocity used when an event carries no vol/vel modifier
DEFAULT_VELOCITY = 0.8

# Pitch used when a pitch token cannot be resolved (middle C)
NOMINAL_PITCH = 60

# Sticky defaults for a freshly created voice cursor
DEFAULT_OCTAVE = 4
DEFAULT_VOICE = "v1"

# Keywords that end a def attribute list (compared lowercase)
RESERVED_KEYWORDS = frozenset({"def", "group", "measure", "meta", "macro", "{", "}"})

# Pitch-part forms that produce a rest
REST_SYMBOLS = frozenset({"r", "s"})

# Line comment marker
COMMENT_MARKER = "%%"


class StaffStyle(str, Enum):
    """Pitch-resolution dialect for an instrument."""

    STANDARD = "standard"  # Pitched notation (c4, f#5, ...)
    TAB = "tab"  # Fretted tablature (fret-string)
    GRID = "grid"  # Percussion symbol map


class EventKind(str, Enum):
    """Kind of a compiled timeline event."""

    NOTE = "note"
    REST = "rest"
    CHORD = "chord"


class GMDrumNote(IntEnum):
    """General MIDI drum note numbers."""

    KICK = 36
    SIDE_STICK = 37
    SNARE = 38
    CLOSED_HIHAT = 42
    TOM_FLOOR = 43
    PEDAL_HIHAT = 44
    OPEN_HIHAT = 46
    TOM_MID = 47
    CRASH = 49
    TOM_HIGH = 50
    RIDE = 51
    RIDE_BELL = 53


# Built-in percussion symbol table bound by map=gm_kit
GM_DRUM_MAP: dict[str, int] = {
    "k": GMDrumNote.KICK.value,
    "s": GMDrumNote.SNARE.value,
    "ss": GMDrumNote.SIDE_STICK.value,
    "h": GMDrumNote.CLOSED_HIHAT.value,
    "ho": GMDrumNote.OPEN_HIHAT.value,
    "ph": GMDrumNote.PEDAL_HIHAT.value,
    "c": GMDrumNote.CRASH.value,
    "r": GMDrumNote.RIDE.value,
    "rb": GMDrumNote.RIDE_BELL.value,
    "t1": GMDrumNote.TOM_HIGH.value,
    "t2": GMDrumNote.TOM_MID.value,
    "t3": GMDrumNote.TOM_FLOOR.value,
}

GM_KIT_NAME = "gm_kit"

# Standard 6-string guitar, lowest string first
GUITAR_STD_TUNING: tuple[str, ...] = ("E2", "A2", "D3", "G3", "B3", "E4")

GUITAR_STD_TUNING_NAME = "guitar_standard"


class ErrorMessages:
    """Standardized diagnostic and error messages."""

    UNKNOWN_MACRO = "Unknown macro '${name}' expands to nothing."
    MACRO_TOO_DEEP = "Macro '${name}' exceeds expansion depth {depth}; expansion dropped."
    MACRO_BUDGET = "Macro expansion limit {limit} reached; further expansions dropped."
    UNRESOLVED_PITCH = "Unrecognized pitch '{pitch}' for {style} instrument '{instrument}'."
    INVALID_DURATION = "Invalid duration '{duration}'; keeping previous duration."
    INVALID_TIME = "Invalid time signature '{value}'; keeping {current}."
    INVALID_TEMPO = "Invalid tempo '{value}'; keeping {current}."
    INVALID_RANGE = "Invalid measure range '{value}'; block skipped."
    RANGE_TRUNCATED = "Measure range '{value}' truncated to {limit} measures."
    INVALID_STYLE = "Unknown staff style '{value}' for instrument '{instrument}'."
    UNKNOWN_MAP = "Unknown percussion map '{value}' for instrument '{instrument}'."
    UNKNOWN_TUNING = "Unknown tuning '{value}' for instrument '{instrument}'."
    INVALID_VALUE = "Invalid {attribute} value '{value}' for instrument '{instrument}'."
    UNKNOWN_ATTRIBUTE = "Unknown attribute '{attribute}' on instrument '{instrument}' ignored."
    UNKNOWN_META = "Unrecognized meta key '{key}' kept in extra."
    MISSING_ID = "'{keyword}' without an instrument id."
    DUPLICATE_INSTRUMENT = "Instrument '{instrument}' already defined; later definition ignored."
    DUPLICATE_PARAM = "Macro '{name}' repeats parameter '{param}'."
    EVENT_LIMIT = "Event limit {limit} reached; remaining events dropped."
    MISSING_BLOCK = "Expected '{{' after '{keyword}'."
    INTERNAL = "Internal compiler fault: {error}"
    DOCUMENT_NOT_FOUND = "Document '{name}' not found."
