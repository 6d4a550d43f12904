"""
Measure driver - replays a measure block once per measure in its range.

`measure 1-4 { ... }` runs the same block four times, each at the
absolute start tick of its measure. The measure length is re-derived
from the current time signature at every index, so a meta block inside
the measure affects the measures that follow it.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from omniscore.constants import ErrorMessages
from omniscore.errors import DiagnosticSeverity
from omniscore.lexer import TokenKind, TokenStream

if TYPE_CHECKING:
    from omniscore.compiler.context import CompileContext
    from omniscore.compiler.tables import MetaResolver
    from omniscore.compiler.voice import VoiceStreamInterpreter

logger = logging.getLogger(__name__)

_RANGE_RE = re.compile(r"^(?P<first>\d+)(?:-(?P<last>\d+))?$")


def parse_range(text: str) -> tuple[int, int] | None:
    """
    Parse 'N' or 'N-M' into an inclusive 1-based range.

    Returns:
        (first, last), or None if malformed, below 1, or reversed
    """
    match = _RANGE_RE.match(text)
    if not match:
        return None
    first = int(match.group("first"))
    last = int(match.group("last")) if match.group("last") else first
    if first < 1 or last < first:
        return None
    return first, last


class MeasureDriver:
    """Runs measure blocks against the instrument and voice machinery."""

    def __init__(
        self,
        ctx: CompileContext,
        meta: MetaResolver,
        interpreter: VoiceStreamInterpreter,
    ) -> None:
        self.ctx = ctx
        self.meta = meta
        self.interpreter = interpreter

    def run(self, stream: TokenStream) -> None:
        """Consume one `measure <range> { ... }` block and replay it."""
        ctx = self.ctx
        keyword = stream.next()
        range_token = stream.peek()
        bounds = None
        if range_token.kind == TokenKind.SYMBOL:
            stream.next()
            bounds = parse_range(range_token.text)

        if not stream.match("{"):
            ctx.report(
                DiagnosticSeverity.ERROR,
                "MISSING_BLOCK",
                ErrorMessages.MISSING_BLOCK.format(keyword=keyword.text),
                keyword,
            )
            return
        start = stream.pos
        close = stream.skip_block()

        if bounds is None:
            ctx.warn(
                "INVALID_RANGE", ErrorMessages.INVALID_RANGE.format(value=range_token.text), keyword
            )
            return

        first, last = bounds
        limit = ctx.options.max_measure_span
        if last - first + 1 > limit:
            ctx.warn(
                "RANGE_TRUNCATED",
                ErrorMessages.RANGE_TRUNCATED.format(value=range_token.text, limit=limit),
                range_token,
            )
            last = first + limit - 1

        logger.debug(f"Replaying measure block {first}-{last}")
        for index in range(first, last + 1):
            ticks_per_measure = ctx.meta.get_time_signature().ticks_per_measure()
            self.replay(stream.window(start, close), index, (index - 1) * ticks_per_measure)
            if ctx.timeline.truncated:
                break

    def replay(self, span: TokenStream, index: int, offset: int) -> None:
        """One pass over a measure block for measure `index` starting at `offset`."""
        while not span.at_end:
            token = span.peek()
            if token.kind == TokenKind.SYMBOL and token.lower == "meta":
                self.meta.parse(span, self.ctx)
                continue
            instrument = None
            if token.kind == TokenKind.SYMBOL:
                instrument = self.ctx.instruments.get(token.text)
            if instrument is not None:
                self.interpreter.interpret(span, instrument, offset, index)
            else:
                span.next()
