"""
Compile context - all mutable state of one compilation.

Nothing here is shared between compilations: every call to the compiler
builds a fresh context, so independent compilations can run in parallel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from omniscore.compiler.tables import InstrumentTable, MacroTable
from omniscore.compiler.timeline import TimelineAssembler
from omniscore.compiler.voice import CursorTable
from omniscore.errors import DiagnosticSeverity, Diagnostics
from omniscore.lexer import SourceMap, Token
from omniscore.library import InstrumentLibrary
from omniscore.models.score import ScoreMeta

logger = logging.getLogger(__name__)


class CompilerOptions(BaseModel):
    """
    Compiler configuration.

    The limits guard against pathological input (self-recursive macros,
    huge measure ranges); lenient mode stays the default.
    """

    max_macro_depth: int = Field(32, gt=0, description="Maximum nested macro expansion depth")
    max_macro_expansions: int = Field(
        100_000, gt=0, description="Maximum macro expansions per compilation"
    )
    max_events: int = Field(200_000, gt=0, description="Maximum events in the timeline")
    max_measure_span: int = Field(4096, gt=0, description="Maximum measures per measure block")
    strict: bool = Field(False, description="Raise StrictModeError on warnings or errors")

    model_config = {"frozen": True}


@dataclass
class CompileContext:
    """
    Context for compiling one source text.

    Holds the tables built while walking the document, the sticky voice
    cursors, the event accumulator and the diagnostics.
    """

    source_map: SourceMap
    options: CompilerOptions
    library: InstrumentLibrary
    meta: ScoreMeta = field(default_factory=ScoreMeta)
    macros: MacroTable = field(default_factory=MacroTable)
    instruments: InstrumentTable = field(default_factory=InstrumentTable)
    cursors: CursorTable = field(default_factory=CursorTable)
    timeline: TimelineAssembler | None = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    macro_expansions: int = 0
    _reported: set[tuple[str, str]] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.timeline is None:
            self.timeline = TimelineAssembler(self.options.max_events)

    def report(
        self,
        severity: DiagnosticSeverity,
        code: str,
        message: str,
        token: Token | None = None,
    ) -> None:
        """Record a diagnostic located at a token's source position."""
        line, column = self.source_map.locate(token.offset) if token else (None, None)
        issue = self.diagnostics.add(severity, code, message, line, column)
        logger.debug(str(issue))

    def report_once(
        self,
        severity: DiagnosticSeverity,
        code: str,
        subject: str,
        message: str,
        token: Token | None = None,
    ) -> None:
        """Record a diagnostic only the first time a (code, subject) pair occurs."""
        if (code, subject) in self._reported:
            return
        self._reported.add((code, subject))
        self.report(severity, code, message, token)

    def warn(self, code: str, message: str, token: Token | None = None) -> None:
        self.report(DiagnosticSeverity.WARNING, code, message, token)

    def info(self, code: str, message: str, token: Token | None = None) -> None:
        self.report(DiagnosticSeverity.INFO, code, message, token)
