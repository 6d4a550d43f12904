"""
Event modifiers as tagged variants.

A modifier is written `.name` or `.name(arg1,arg2)` after an event.
Known names map to a closed set of kinds so consumers can match
exhaustively; unknown names round-trip under ModifierKind.OTHER.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

ModifierArg = int | float | str


class ModifierKind(str, Enum):
    """Closed set of modifier kinds with compile or playback meaning."""

    GRACE = "grace"  # Zero duration, no tick advance
    VOLUME = "volume"  # vol(n) / vel(n), n in 0-127
    STACCATO = "staccato"
    ACCENT = "accent"
    FERMATA = "fermata"
    GHOST = "ghost"
    TENUTO = "tenuto"
    DYNAMIC = "dynamic"  # pp .. ff
    OTHER = "other"


_KIND_BY_NAME: dict[str, ModifierKind] = {
    "grace": ModifierKind.GRACE,
    "vol": ModifierKind.VOLUME,
    "vel": ModifierKind.VOLUME,
    "stacc": ModifierKind.STACCATO,
    "acc": ModifierKind.ACCENT,
    "fermata": ModifierKind.FERMATA,
    "ghost": ModifierKind.GHOST,
    "ten": ModifierKind.TENUTO,
    "pp": ModifierKind.DYNAMIC,
    "p": ModifierKind.DYNAMIC,
    "mp": ModifierKind.DYNAMIC,
    "mf": ModifierKind.DYNAMIC,
    "f": ModifierKind.DYNAMIC,
    "ff": ModifierKind.DYNAMIC,
}


def parse_arg(text: str) -> ModifierArg:
    """Numeric-looking arguments become numbers; everything else stays text."""
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        return text
    return value if math.isfinite(value) else text


@dataclass(frozen=True)
class Modifier:
    """A single event modifier."""

    kind: ModifierKind
    name: str
    args: tuple[ModifierArg, ...] = field(default_factory=tuple)

    @classmethod
    def create(cls, name: str, args: Iterable[str] = ()) -> Modifier:
        """Build from the written name and raw argument texts."""
        kind = _KIND_BY_NAME.get(name, ModifierKind.OTHER)
        return cls(kind, name, tuple(parse_arg(a) for a in args))

    @property
    def number(self) -> float | None:
        """First argument if it is numeric, else None."""
        if self.args and isinstance(self.args[0], (int, float)):
            return self.args[0]
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "name": self.name, "args": list(self.args)}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Modifier:
        return cls(ModifierKind(d["kind"]), d["name"], tuple(d.get("args", [])))

    def __str__(self) -> str:
        if self.args:
            return f"{self.name}({','.join(str(a) for a in self.args)})"
        return self.name
