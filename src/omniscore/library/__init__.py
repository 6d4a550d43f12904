"""
Instrument library - named percussion maps and string tunings.

Kits are bound with `map=<name>`, tunings with `tuning=<name>`.
"""

from omniscore.library.loader import (
    LIBRARY_PATH,
    InstrumentLibrary,
    KitDef,
    TuningDef,
    default_library,
)

__all__ = [
    "LIBRARY_PATH",
    "InstrumentLibrary",
    "KitDef",
    "TuningDef",
    "default_library",
]
