"""
Declaration tables - metadata, macros and instruments.

Declarations are visible from the point they are read onward: a single
walk of the document fills these tables while measures consume them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from omniscore.constants import (
    GM_DRUM_MAP,
    GM_KIT_NAME,
    RESERVED_KEYWORDS,
    ErrorMessages,
    StaffStyle,
)
from omniscore.core.pitch import parse_pitch
from omniscore.core.rhythm import TimeSignature
from omniscore.errors import DiagnosticSeverity
from omniscore.lexer import Token, TokenKind, TokenStream
from omniscore.models.score import InstrumentDef, InstrumentGroup, ScoreMeta

if TYPE_CHECKING:
    from omniscore.compiler.context import CompileContext

logger = logging.getLogger(__name__)


# ============================================================================
# Meta
# ============================================================================


class MetaResolver:
    """Reads `meta { key: value, ... }` blocks into the score metadata."""

    def parse(self, stream: TokenStream, ctx: CompileContext) -> None:
        keyword = stream.next()
        if not stream.match("{"):
            ctx.report(
                DiagnosticSeverity.ERROR,
                "MISSING_BLOCK",
                ErrorMessages.MISSING_BLOCK.format(keyword=keyword.text),
                keyword,
            )
            return

        while not stream.at_end and not stream.peek().is_punct("}"):
            key_token = stream.next()
            if key_token.kind == TokenKind.PUNCT:
                continue
            stream.match(":")
            value = self._read_value(stream)
            self.apply(ctx.meta, key_token.value, value, ctx, key_token)
            stream.match(",")
        stream.match("}")

    def _read_value(self, stream: TokenStream) -> str:
        """Read one value; a '[' value runs to the matching ']'."""
        token = stream.peek()
        if token.is_punct("}") or token.is_punct(","):
            return ""
        stream.next()
        text = token.value
        if token.is_punct("["):
            while not stream.at_end and not stream.peek().is_punct("}"):
                part = stream.next()
                text += part.value
                if part.is_punct("]"):
                    break
        return text

    def apply(
        self,
        meta: ScoreMeta,
        key: str,
        value: str,
        ctx: CompileContext,
        token: Token | None = None,
    ) -> None:
        """
        Apply one key to the metadata.

        Invalid tempo or time values keep the previous setting and record
        a warning; unknown keys are kept in meta.extra.
        """
        key = key.lower()
        if key == "title":
            meta.title = value
        elif key == "composer":
            meta.composer = value
        elif key == "key":
            meta.key = value
        elif key == "tempo":
            tempo = _parse_tempo(value)
            if tempo is None:
                ctx.warn(
                    "INVALID_TEMPO",
                    ErrorMessages.INVALID_TEMPO.format(value=value, current=meta.tempo),
                    token,
                )
            else:
                meta.tempo = tempo
        elif key == "time":
            try:
                meta.time_signature = TimeSignature.parse(value).as_tuple()
            except ValueError:
                current = "/".join(str(n) for n in meta.time_signature)
                ctx.warn(
                    "INVALID_TIME",
                    ErrorMessages.INVALID_TIME.format(value=value, current=current),
                    token,
                )
        else:
            meta.extra[key] = value
            ctx.info("UNKNOWN_META", ErrorMessages.UNKNOWN_META.format(key=key), token)


def _parse_tempo(value: str) -> int | None:
    """Positive integer tempo; a fractional value is truncated."""
    try:
        tempo = int(float(value))
    except (ValueError, OverflowError):
        return None
    return tempo if tempo > 0 else None


# ============================================================================
# Macros
# ============================================================================


@dataclass(frozen=True)
class MacroDef:
    """
    A named token template.

    slots maps a body position to the index of the parameter whose
    argument replaces it. Parameter references are bound when the macro
    is defined; a reference to anything else stays a macro call.
    """

    name: str
    params: tuple[str, ...]
    body: tuple[Token, ...]
    slots: dict[int, int] = field(default_factory=dict)

    def expand(self, args: list[list[Token]]) -> list[Token]:
        """Body tokens with each parameter slot replaced by its argument tokens."""
        tokens: list[Token] = []
        for position, token in enumerate(self.body):
            slot = self.slots.get(position)
            if slot is None:
                tokens.append(token)
            elif slot < len(args):
                tokens.extend(args[slot])
        return tokens


class MacroTable:
    """Macros by name. A later definition replaces an earlier one."""

    def __init__(self) -> None:
        self._macros: dict[str, MacroDef] = {}

    def get(self, name: str) -> MacroDef | None:
        return self._macros.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._macros

    def __len__(self) -> int:
        return len(self._macros)

    def define(self, stream: TokenStream, ctx: CompileContext) -> MacroDef | None:
        """
        Read `macro Name(p1, p2) = { body }`.

        The parameter list and '=' are optional. Returns the definition,
        or None when the body block is missing.
        """
        keyword = stream.next()
        name_token = stream.next()
        name = name_token.value.lstrip("$")

        params: list[str] = []
        if stream.match("("):
            while not stream.at_end:
                token = stream.peek()
                if token.is_punct(")") or token.is_punct("{") or token.is_punct("="):
                    break
                stream.next()
                if token.kind == TokenKind.PUNCT:
                    continue
                param = token.value.lstrip("$")
                if param in params:
                    ctx.warn(
                        "DUPLICATE_PARAM",
                        ErrorMessages.DUPLICATE_PARAM.format(name=name, param=param),
                        token,
                    )
                    continue
                params.append(param)
            stream.match(")")
        stream.match("=")

        if not stream.match("{"):
            ctx.report(
                DiagnosticSeverity.ERROR,
                "MISSING_BLOCK",
                ErrorMessages.MISSING_BLOCK.format(keyword=keyword.text),
                keyword,
            )
            return None

        start = stream.pos
        close = stream.skip_block()
        body = stream.tokens[start:close]
        slots = {
            position: params.index(token.text[1:])
            for position, token in enumerate(body)
            if token.kind == TokenKind.MACRO_REF and token.text[1:] in params
        }

        macro = MacroDef(name=name, params=tuple(params), body=tuple(body), slots=slots)
        if name in self._macros:
            logger.debug(f"Macro '{name}' redefined")
        self._macros[name] = macro
        return macro


# ============================================================================
# Instruments
# ============================================================================


class InstrumentTable:
    """
    Instrument definitions in declaration order.

    The first definition of an id wins; later ones are reported and
    ignored.
    """

    def __init__(self) -> None:
        self._instruments: dict[str, InstrumentDef] = {}
        self.groups: list[InstrumentGroup] = []

    def get(self, instrument_id: str) -> InstrumentDef | None:
        return self._instruments.get(instrument_id)

    def __contains__(self, instrument_id: str) -> bool:
        return instrument_id in self._instruments

    def __len__(self) -> int:
        return len(self._instruments)

    def all(self) -> list[InstrumentDef]:
        return list(self._instruments.values())

    def parse_group(self, stream: TokenStream, ctx: CompileContext) -> None:
        """Read `group "Label" attr=value ... { def ... }`."""
        keyword = stream.next()
        label = keyword.text
        if stream.peek().kind in (TokenKind.STRING, TokenKind.SYMBOL):
            if not stream.peek(1).is_punct("="):
                label = stream.next().value
        attributes = {key: value for key, value, _ in _read_attributes(stream)}

        # Anything else before the block is ignored
        while not stream.at_end and not stream.peek().is_punct("{"):
            if stream.peek().lower in RESERVED_KEYWORDS:
                break
            stream.next()
        if not stream.match("{"):
            ctx.report(
                DiagnosticSeverity.ERROR,
                "MISSING_BLOCK",
                ErrorMessages.MISSING_BLOCK.format(keyword=keyword.text),
                keyword,
            )
            return

        group = InstrumentGroup(label=label, attributes=attributes)
        while not stream.at_end and not stream.peek().is_punct("}"):
            if stream.peek().kind == TokenKind.SYMBOL and stream.peek().lower == "def":
                self.parse_def(stream, ctx, group)
            else:
                stream.next()
        stream.match("}")
        self.groups.append(group)

    def parse_def(
        self,
        stream: TokenStream,
        ctx: CompileContext,
        group: InstrumentGroup | None = None,
    ) -> InstrumentDef | None:
        """
        Read `def id "Label" style=tab tuning=drop_d ...`.

        Attribute scanning stops at the first token that is not followed
        by '=' or at a reserved keyword.
        """
        keyword = stream.next()
        id_token = stream.peek()
        if id_token.kind not in (TokenKind.SYMBOL, TokenKind.STRING) or not id_token.value:
            ctx.warn("MISSING_ID", ErrorMessages.MISSING_ID.format(keyword=keyword.text), keyword)
            return None
        stream.next()
        instrument_id = id_token.value

        label = instrument_id
        if stream.peek().kind == TokenKind.STRING:
            label = stream.next().value

        fields: dict[str, object] = {
            "id": instrument_id,
            "label": label,
            "group": group.label if group else None,
        }
        for key, value, token in _read_attributes(stream):
            self._apply_attribute(fields, key, value, ctx, token)

        if instrument_id in self._instruments:
            ctx.warn(
                "DUPLICATE_INSTRUMENT",
                ErrorMessages.DUPLICATE_INSTRUMENT.format(instrument=instrument_id),
                id_token,
            )
            return None

        instrument = InstrumentDef(**fields)
        self._instruments[instrument_id] = instrument
        ctx.cursors.register(instrument_id)
        if group is not None:
            group.instruments.append(instrument_id)
        logger.debug(f"Defined instrument '{instrument_id}' ({instrument.style.value})")
        return instrument

    def _apply_attribute(
        self,
        fields: dict[str, object],
        key: str,
        value: str,
        ctx: CompileContext,
        token: Token,
    ) -> None:
        instrument = fields["id"]
        if key == "style":
            try:
                fields["style"] = StaffStyle(value)
            except ValueError:
                ctx.warn(
                    "INVALID_STYLE",
                    ErrorMessages.INVALID_STYLE.format(value=value, instrument=instrument),
                    token,
                )
        elif key in ("clef", "patch"):
            fields[key] = value
        elif key == "transpose":
            try:
                fields["transpose"] = int(value)
            except ValueError:
                ctx.warn(
                    "INVALID_VALUE",
                    ErrorMessages.INVALID_VALUE.format(
                        attribute=key, value=value, instrument=instrument
                    ),
                    token,
                )
        elif key in ("vol", "volume", "pan"):
            try:
                fields["pan" if key == "pan" else "volume"] = float(value)
            except ValueError:
                ctx.warn(
                    "INVALID_VALUE",
                    ErrorMessages.INVALID_VALUE.format(
                        attribute=key, value=value, instrument=instrument
                    ),
                    token,
                )
        elif key == "map":
            drum_map = _resolve_map(value, ctx)
            if drum_map is None:
                ctx.warn(
                    "UNKNOWN_MAP",
                    ErrorMessages.UNKNOWN_MAP.format(value=value, instrument=instrument),
                    token,
                )
            else:
                fields["map"] = drum_map
        elif key == "tuning":
            tuning = _resolve_tuning(value, ctx)
            if tuning is None:
                ctx.warn(
                    "UNKNOWN_TUNING",
                    ErrorMessages.UNKNOWN_TUNING.format(value=value, instrument=instrument),
                    token,
                )
            else:
                fields["tuning"] = tuning
        else:
            ctx.info(
                "UNKNOWN_ATTRIBUTE",
                ErrorMessages.UNKNOWN_ATTRIBUTE.format(attribute=key, instrument=instrument),
                token,
            )


def _read_attributes(stream: TokenStream) -> list[tuple[str, str, Token]]:
    """Read `key=value` triples; a missing value reads as ''."""
    attributes = []
    while not stream.at_end:
        token = stream.peek()
        if token.kind == TokenKind.PUNCT or token.lower in RESERVED_KEYWORDS:
            break
        if not stream.peek(1).is_punct("="):
            break
        stream.next()
        stream.next()
        value = ""
        if stream.peek().kind in (TokenKind.SYMBOL, TokenKind.STRING):
            if stream.peek().lower not in RESERVED_KEYWORDS:
                value = stream.next().value
        attributes.append((token.value.lower(), value, token))
    return attributes


def _resolve_map(name: str, ctx: CompileContext) -> dict | None:
    if name == GM_KIT_NAME:
        return dict(GM_DRUM_MAP)
    kit = ctx.library.get_kit(name)
    return dict(kit.map) if kit else None


def _resolve_tuning(value: str, ctx: CompileContext) -> tuple[str, ...] | None:
    """A library tuning name, or a quoted list of open-string pitches lowest first."""
    if " " in value.strip() or "," in value:
        strings = tuple(s for s in value.replace(",", " ").split() if s)
        if strings and all(parse_pitch(s, 4) for s in strings):
            return strings
        return None
    tuning = ctx.library.get_tuning(value)
    return tuning.strings if tuning else None
