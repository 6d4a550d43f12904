"""
Score compiler - OmniScore source text to a CompiledScore.

Pipeline:
1. Tokenize the source (comments removed)
2. Walk top-level declarations in order: meta, group, def, macro, measure
3. Replay each measure block over its range, emitting events per voice
4. Sort the events and compute the total duration

Compilation is lenient: malformed input yields a best-effort score plus
diagnostics. Each call builds its own context, so a ScoreCompiler can
be shared between threads and tasks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from omniscore.compiler.context import CompileContext, CompilerOptions
from omniscore.compiler.measure import MeasureDriver
from omniscore.compiler.resolver import PitchResolver
from omniscore.compiler.tables import MetaResolver
from omniscore.compiler.voice import VoiceStreamInterpreter
from omniscore.constants import ErrorMessages
from omniscore.errors import CompileError, Diagnostics, OmniScoreError, StrictModeError
from omniscore.lexer import SourceMap, TokenKind, TokenStream, tokenize
from omniscore.library import InstrumentLibrary, default_library
from omniscore.models.score import CompiledScore

logger = logging.getLogger(__name__)

ROOT_KEYWORD = "omniscore"


@dataclass
class CompileResult:
    """A compiled score together with the diagnostics raised while building it."""

    score: CompiledScore
    diagnostics: Diagnostics

    @property
    def is_clean(self) -> bool:
        return self.diagnostics.is_clean


class ScoreCompiler:
    """
    Compiles OmniScore documents.

    Example:
        compiler = ScoreCompiler()
        result = compiler.compile(source)
        for event in result.score.timeline:
            ...
    """

    def __init__(
        self,
        options: CompilerOptions | None = None,
        library: InstrumentLibrary | None = None,
    ):
        self.options = options or CompilerOptions()
        self.library = library or default_library()
        self.meta_resolver = MetaResolver()
        self.pitch_resolver = PitchResolver()

    def compile(self, source: str) -> CompileResult:
        """
        Compile source text.

        Args:
            source: OmniScore document text

        Returns:
            CompileResult with the score and its diagnostics

        Raises:
            StrictModeError: strict mode is on and a warning or error was raised
            CompileError: an unexpected internal fault
        """
        try:
            result = self._compile(source)
        except OmniScoreError:
            raise
        except Exception as e:
            logger.exception("Internal compiler fault")
            raise CompileError(ErrorMessages.INTERNAL.format(error=e)) from e

        if self.options.strict and not result.diagnostics.is_clean:
            raise StrictModeError(result.diagnostics)
        return result

    def _compile(self, source: str) -> CompileResult:
        ctx = CompileContext(
            source_map=SourceMap(source),
            options=self.options,
            library=self.library,
        )
        stream = TokenStream(tokenize(source))

        if stream.peek().kind == TokenKind.SYMBOL and stream.peek().lower == ROOT_KEYWORD:
            stream.next()
            wrapped = stream.match("{")
            self._walk(stream, ctx, wrapped)
        else:
            self._walk(stream, ctx, wrapped=False)

        timeline, duration_ticks = ctx.timeline.finalize()
        score = CompiledScore(
            meta=ctx.meta,
            instruments=ctx.instruments.all(),
            groups=list(ctx.instruments.groups),
            timeline=timeline,
            duration_ticks=duration_ticks,
        )
        logger.debug(
            f"Compiled '{score.meta.title}': {len(timeline)} events, "
            f"{duration_ticks} ticks, {len(ctx.diagnostics)} diagnostics"
        )
        return CompileResult(score=score, diagnostics=ctx.diagnostics)

    def _walk(self, stream: TokenStream, ctx: CompileContext, wrapped: bool) -> None:
        """
        Dispatch top-level declarations.

        Inside the root wrapper a '}' ends the document; without it a stray
        '}' is skipped. Unknown tokens are skipped.
        """
        driver = MeasureDriver(
            ctx, self.meta_resolver, VoiceStreamInterpreter(ctx, self.pitch_resolver)
        )
        while not stream.at_end:
            token = stream.peek()
            if token.is_punct("}"):
                if wrapped:
                    stream.next()
                    return
                stream.next()
                continue
            keyword = token.lower if token.kind == TokenKind.SYMBOL else ""
            if keyword == "meta":
                self.meta_resolver.parse(stream, ctx)
            elif keyword == "group":
                ctx.instruments.parse_group(stream, ctx)
            elif keyword == "def":
                ctx.instruments.parse_def(stream, ctx)
            elif keyword == "macro":
                ctx.macros.define(stream, ctx)
            elif keyword == "measure":
                driver.run(stream)
            else:
                stream.next()


def compile_score(source: str, options: CompilerOptions | None = None) -> CompiledScore:
    """Compile source text and return only the score."""
    return ScoreCompiler(options).compile(source).score
