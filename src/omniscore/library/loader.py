"""
Instrument library - discovers and loads percussion maps and tunings.

Entries can come from:
1. Built-in constants (gm_kit, guitar_standard) - always present
2. Package library (YAML shipped under library/kits and library/tunings)
3. Project library (user's directory, overrides entries of the same name)
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from omniscore.constants import (
    GM_DRUM_MAP,
    GM_KIT_NAME,
    GUITAR_STD_TUNING,
    GUITAR_STD_TUNING_NAME,
)
from omniscore.core.pitch import parse_pitch
from omniscore.models.score import DrumMapValue

logger = logging.getLogger(__name__)

LIBRARY_PATH = Path(__file__).parent


class KitDef(BaseModel):
    """A named percussion symbol map."""

    name: str = Field(..., description="Kit name used in map=<name>")
    description: str = Field("", description="Human-readable description")
    map: dict[str, DrumMapValue] = Field(..., description="Symbol to MIDI or [position, MIDI]")


class TuningDef(BaseModel):
    """A named string tuning, lowest string first."""

    name: str = Field(..., description="Tuning name used in tuning=<name>")
    description: str = Field("", description="Human-readable description")
    strings: tuple[str, ...] = Field(..., description="Open-string pitches, lowest first")


class InstrumentLibrary:
    """
    Loads percussion maps and tunings from YAML.

    Project entries override library entries with the same name.
    Everything is loaded once and cached; the loaded tables are
    read-only so one library can serve concurrent compilations.
    """

    def __init__(
        self,
        library_path: Path | None = None,
        project_path: Path | None = None,
    ):
        """
        Initialize the library.

        Args:
            library_path: Directory holding kits/ and tunings/ (package library by default)
            project_path: Optional project directory with the same layout
        """
        self.library_path = library_path or LIBRARY_PATH
        self.project_path = project_path
        self._kits: dict[str, KitDef] | None = None
        self._tunings: dict[str, TuningDef] | None = None

    def get_kit(self, name: str) -> KitDef | None:
        """Get a percussion map by name."""
        return self._load_kits().get(name)

    def get_tuning(self, name: str) -> TuningDef | None:
        """Get a tuning by name."""
        return self._load_tunings().get(name)

    def list_kits(self) -> list[KitDef]:
        return sorted(self._load_kits().values(), key=lambda k: k.name)

    def list_tunings(self) -> list[TuningDef]:
        return sorted(self._load_tunings().values(), key=lambda t: t.name)

    def clear_cache(self) -> None:
        """Forget loaded entries so the next lookup rereads the directories."""
        self._kits = None
        self._tunings = None

    def _load_kits(self) -> dict[str, KitDef]:
        if self._kits is None:
            kits = {
                GM_KIT_NAME: KitDef(
                    name=GM_KIT_NAME,
                    description="General MIDI drum kit",
                    map=dict(GM_DRUM_MAP),
                )
            }
            for data in self._iter_yaml("kits"):
                kit = self._parse_entry(KitDef, data)
                if kit:
                    kits[kit.name] = kit
            self._kits = kits
        return self._kits

    def _load_tunings(self) -> dict[str, TuningDef]:
        if self._tunings is None:
            tunings = {
                GUITAR_STD_TUNING_NAME: TuningDef(
                    name=GUITAR_STD_TUNING_NAME,
                    description="Standard 6-string guitar",
                    strings=GUITAR_STD_TUNING,
                )
            }
            for data in self._iter_yaml("tunings"):
                tuning = self._parse_entry(TuningDef, data)
                if tuning and all(parse_pitch(s, 4) for s in tuning.strings):
                    tunings[tuning.name] = tuning
                elif tuning:
                    logger.warning(f"Skipping tuning '{tuning.name}': unparsable string pitch")
            self._tunings = tunings
        return self._tunings

    def _iter_yaml(self, subdir: str):
        """Yield parsed YAML documents, library first then project."""
        for base in (self.library_path, self.project_path):
            if base is None:
                continue
            directory = base / subdir
            if not directory.exists():
                continue
            for path in sorted(directory.glob("*.yaml")):
                data = self._load_yaml_file(path)
                if isinstance(data, dict):
                    yield data

    def _load_yaml_file(self, path: Path) -> Any:
        """Load a YAML file, returning None if it cannot be read."""
        try:
            with open(path) as f:
                return yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Skipping library file {path}: {e}")
            return None

    def _parse_entry(self, model: type[BaseModel], data: dict[str, Any]) -> Any:
        """Validate a YAML mapping against a model, returning None if invalid."""
        try:
            return model.model_validate(data)
        except ValueError as e:
            logger.warning(f"Skipping invalid {model.__name__} entry: {e}")
            return None


@lru_cache(maxsize=1)
def default_library() -> InstrumentLibrary:
    """The package library, shared by compilations that do not pass their own."""
    return InstrumentLibrary()
