"""
Data models for the OmniScore compiler.

This module provides:
- ScoreMeta: Score-level metadata
- InstrumentDef: Instrument declaration (style, tuning, map, sound settings)
- InstrumentGroup: Visual instrument grouping
- NoteEvent: A compiled note/rest/chord event
- Modifier: Tagged event modifier
- CompiledScore: The sorted, absolute-time result
"""

from omniscore.models.modifier import Modifier, ModifierArg, ModifierKind
from omniscore.models.score import (
    CompiledScore,
    DrumMapValue,
    InstrumentDef,
    InstrumentGroup,
    NoteEvent,
    ScoreMeta,
)

__all__ = [
    "CompiledScore",
    "DrumMapValue",
    "InstrumentDef",
    "InstrumentGroup",
    "Modifier",
    "ModifierArg",
    "ModifierKind",
    "NoteEvent",
    "ScoreMeta",
]
