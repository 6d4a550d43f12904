"""
Lexer - source text to a flat token sequence.

Tokenization is total: characters that match no token alternative are
dropped. Tokens keep their source offset so diagnostics can report a
line and column; offsets never affect semantics.

The TokenStream is an immutable token tuple plus a cursor. Forking a
stream copies only the position, so measure replay and macro inlining
can rewind deterministically.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from omniscore.constants import COMMENT_MARKER

PUNCTUATION = frozenset("{}|,[]=():")

# Alternatives tried in priority order at each position
_TOKEN_RE = re.compile(
    r"(?P<punct>[{}|,\[\]=():])"
    r'|(?P<string>"[^"]*")'
    r"|(?P<macro_ref>\$[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<symbol>[A-Za-z0-9_.\-+#]+)"
)
_COMMENT_RE = re.compile(re.escape(COMMENT_MARKER) + r"[^\n]*")


class TokenKind(str, Enum):
    """Lexical category of a token."""

    PUNCT = "punct"
    STRING = "string"
    MACRO_REF = "macro_ref"
    SYMBOL = "symbol"


@dataclass(frozen=True)
class Token:
    """A single lexical unit with its source offset."""

    text: str
    kind: TokenKind
    offset: int = field(default=-1, compare=False)

    @property
    def value(self) -> str:
        """Text with surrounding double quotes removed."""
        if self.kind == TokenKind.STRING:
            return self.text[1:-1]
        return self.text

    @property
    def lower(self) -> str:
        return self.text.lower()

    def is_punct(self, char: str) -> bool:
        return self.kind == TokenKind.PUNCT and self.text == char

    def __str__(self) -> str:
        return self.text


def strip_comments(source: str) -> str:
    """Blank out '%%' line comments, keeping every other offset intact."""
    return _COMMENT_RE.sub(lambda m: " " * len(m.group(0)), source)


def tokenize(source: str) -> list[Token]:
    """
    Split OmniScore source into tokens.

    Comments are removed first; unmatched characters are dropped.
    """
    clean = strip_comments(source)
    return [
        Token(match.group(0), TokenKind(match.lastgroup), match.start())
        for match in _TOKEN_RE.finditer(clean)
    ]


class SourceMap:
    """Maps character offsets back to 1-based (line, column) positions."""

    def __init__(self, source: str) -> None:
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(source) if ch == "\n"]

    def locate(self, offset: int) -> tuple[int, int] | tuple[None, None]:
        """Return (line, column) for an offset, or (None, None) if unknown."""
        if offset < 0:
            return (None, None)
        line_index = bisect_right(self._line_starts, offset) - 1
        return (line_index + 1, offset - self._line_starts[line_index] + 1)


_EOF = Token("", TokenKind.SYMBOL)


class TokenStream:
    """
    A read cursor over an immutable token sequence.

    ``end`` bounds the stream so a measure block can be replayed as a
    window of the full document without copying tokens.
    """

    __slots__ = ("tokens", "pos", "end")

    def __init__(self, tokens: Sequence[Token], pos: int = 0, end: int | None = None) -> None:
        self.tokens: tuple[Token, ...] = tuple(tokens)
        self.pos = pos
        self.end = len(self.tokens) if end is None else end

    @property
    def at_end(self) -> bool:
        return self.pos >= self.end

    def peek(self, ahead: int = 0) -> Token:
        """Look at a token without consuming it; past the end yields an empty token."""
        index = self.pos + ahead
        if index < self.end:
            return self.tokens[index]
        return _EOF

    def next(self) -> Token:
        """Consume and return the current token."""
        token = self.peek()
        if not self.at_end:
            self.pos += 1
        return token

    def match(self, char: str) -> bool:
        """Consume the current token if it is the given punctuation."""
        if self.peek().is_punct(char):
            self.pos += 1
            return True
        return False

    def fork(self) -> TokenStream:
        """Independent cursor at the same position over the same tokens."""
        return TokenStream(self.tokens, self.pos, self.end)

    def window(self, start: int, end: int) -> TokenStream:
        """Cursor over tokens[start:end] of the same sequence."""
        return TokenStream(self.tokens, start, end)

    def skip_block(self) -> int:
        """
        Consume through the brace that closes an already-opened block.

        Returns the index of that closing brace (or the stream end when
        the block is never closed).
        """
        depth = 1
        while not self.at_end:
            token = self.next()
            if token.is_punct("{"):
                depth += 1
            elif token.is_punct("}"):
                depth -= 1
                if depth == 0:
                    return self.pos - 1
        return self.end

    def __repr__(self) -> str:
        return f"TokenStream(pos={self.pos}, end={self.end}, next={self.peek().text!r})"
