"""
OmniScore compiler - source text to an absolute-time event timeline.

Components:
- ScoreCompiler: Top-level driver producing CompiledScore + diagnostics
- MetaResolver / MacroTable / InstrumentTable: Declaration tables
- PitchResolver: Pitch dialects (standard, tab, grid)
- VoiceStreamInterpreter: Per-voice event streams and macro expansion
- MeasureDriver: Measure range replay
- TimelineAssembler: Event accumulation and ordering
"""

from omniscore.compiler.context import CompileContext, CompilerOptions
from omniscore.compiler.measure import MeasureDriver, parse_range
from omniscore.compiler.resolver import EventSpec, PitchResolver, read_event, resolve_velocity
from omniscore.compiler.score import CompileResult, ScoreCompiler, compile_score
from omniscore.compiler.tables import InstrumentTable, MacroDef, MacroTable, MetaResolver
from omniscore.compiler.timeline import TimelineAssembler
from omniscore.compiler.voice import (
    CursorTable,
    VoiceCursor,
    VoiceKey,
    VoiceStreamInterpreter,
)

__all__ = [
    "CompileContext",
    "CompileResult",
    "CompilerOptions",
    "CursorTable",
    "EventSpec",
    "InstrumentTable",
    "MacroDef",
    "MacroTable",
    "MeasureDriver",
    "MetaResolver",
    "PitchResolver",
    "ScoreCompiler",
    "TimelineAssembler",
    "VoiceCursor",
    "VoiceKey",
    "VoiceStreamInterpreter",
    "compile_score",
    "parse_range",
    "read_event",
    "resolve_velocity",
]
