"""
Tests for the instrument library.
"""

from pathlib import Path

import pytest

from omniscore.compiler import ScoreCompiler
from omniscore.constants import GM_DRUM_MAP
from omniscore.library import InstrumentLibrary, default_library


def write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def library() -> InstrumentLibrary:
    return InstrumentLibrary()


class TestBuiltins:
    """Tests for entries that need no files."""

    def test_gm_kit(self, temp_dir: Path) -> None:
        """gm_kit exists even with an empty library directory."""
        empty = InstrumentLibrary(temp_dir)
        kit = empty.get_kit("gm_kit")
        assert kit is not None
        assert kit.map == GM_DRUM_MAP

    def test_guitar_standard(self, temp_dir: Path) -> None:
        """guitar_standard exists even with an empty library directory."""
        tuning = InstrumentLibrary(temp_dir).get_tuning("guitar_standard")
        assert tuning.strings == ("E2", "A2", "D3", "G3", "B3", "E4")

    def test_missing(self, library: InstrumentLibrary) -> None:
        """Unknown names return None."""
        assert library.get_kit("nope") is None
        assert library.get_tuning("nope") is None


class TestPackageLibrary:
    """Tests for the YAML shipped with the package."""

    def test_kits(self, library: InstrumentLibrary) -> None:
        """Shipped kits load."""
        names = [k.name for k in library.list_kits()]
        assert names == ["gm_kit", "latin_perc", "rock_kit"]

    def test_position_pairs(self, library: InstrumentLibrary) -> None:
        """[position, midi] values load as pairs."""
        assert library.get_kit("rock_kit").map["k"] == (-3, 36)

    def test_tunings(self, library: InstrumentLibrary) -> None:
        """Shipped tunings load."""
        names = {t.name for t in library.list_tunings()}
        assert {"guitar_standard", "drop_d", "dadgad", "bass_standard", "ukulele"} <= names
        assert library.get_tuning("bass_standard").strings == ("E1", "A1", "D2", "G2")

    def test_default_library_is_shared(self) -> None:
        """default_library() returns one instance."""
        assert default_library() is default_library()


class TestProjectLibrary:
    """Tests for project directories."""

    def test_project_overrides(self, temp_dir: Path) -> None:
        """Project entries replace package entries of the same name."""
        write(
            temp_dir / "kits" / "rock_kit.yaml",
            "name: rock_kit\nmap:\n  k: 35\n",
        )
        library = InstrumentLibrary(project_path=temp_dir)
        assert library.get_kit("rock_kit").map == {"k": 35}
        assert library.get_kit("latin_perc") is not None

    def test_invalid_files_skipped(self, temp_dir: Path) -> None:
        """Broken YAML, invalid entries and bad pitches are skipped."""
        write(temp_dir / "kits" / "broken.yaml", "name: [unclosed\n")
        write(temp_dir / "kits" / "nomap.yaml", "name: nomap\n")
        write(temp_dir / "tunings" / "bad.yaml", "name: bad\nstrings: [E2, zz]\n")
        write(temp_dir / "tunings" / "fine.yaml", "name: fine\nstrings: [C2, G2]\n")
        library = InstrumentLibrary(temp_dir)
        assert [k.name for k in library.list_kits()] == ["gm_kit"]
        assert library.get_tuning("bad") is None
        assert library.get_tuning("fine").strings == ("C2", "G2")

    def test_clear_cache(self, temp_dir: Path) -> None:
        """New files are seen after clear_cache()."""
        library = InstrumentLibrary(temp_dir)
        assert library.get_tuning("late") is None
        write(temp_dir / "tunings" / "late.yaml", "name: late\nstrings: [D2]\n")
        assert library.get_tuning("late") is None
        library.clear_cache()
        assert library.get_tuning("late") is not None

    def test_compiler_uses_project_library(self, temp_dir: Path) -> None:
        """A compiler resolves map= names from its own library."""
        write(temp_dir / "kits" / "tiny.yaml", "name: tiny\nmap:\n  x: 40\n")
        compiler = ScoreCompiler(library=InstrumentLibrary(project_path=temp_dir))
        result = compiler.compile("def d style=grid map=tiny\nmeasure 1 { d: x }")
        assert result.score.timeline[0].midi_pitches == [40]
        assert result.is_clean
