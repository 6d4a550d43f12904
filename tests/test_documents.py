"""
Tests for the document manager.
"""

from pathlib import Path

import pytest

from omniscore.compiler import CompilerOptions, ScoreCompiler
from omniscore.documents import DocumentManager
from omniscore.errors import DocumentNotFoundError


@pytest.fixture
def manager(scores_dir: Path) -> DocumentManager:
    return DocumentManager(scores_dir)


class TestUpdate:
    """Tests for update()."""

    @pytest.mark.asyncio
    async def test_update_compiles(self, manager: DocumentManager, sample_source: str) -> None:
        """An update compiles the source."""
        document = await manager.update("song", sample_source)
        assert document.score is not None
        assert document.score.event_count() == 40
        assert document.error is None
        assert not document.is_stale

    @pytest.mark.asyncio
    async def test_update_replaces(self, manager: DocumentManager) -> None:
        """A second update replaces the score."""
        await manager.update("song", "def pno\nmeasure 1 { pno: c4 }")
        document = await manager.update("song", "def pno\nmeasure 1 { pno: c4 d4 }")
        assert document.score.event_count() == 2

    @pytest.mark.asyncio
    async def test_lenient_diagnostics(self, manager: DocumentManager) -> None:
        """Lenient compiles keep their diagnostics."""
        document = await manager.update("song", "def pno\nmeasure 1 { pno: zz }")
        assert "UNRESOLVED_PITCH" in document.diagnostics.codes()
        assert document.error is None

    @pytest.mark.asyncio
    async def test_keeps_last_good_score(self, scores_dir: Path) -> None:
        """A failed strict compile keeps the previous score."""
        manager = DocumentManager(scores_dir, ScoreCompiler(CompilerOptions(strict=True)))
        await manager.update("song", "def pno\nmeasure 1 { pno: c4 }")
        document = await manager.update("song", "def pno\nmeasure 1 { pno: zz }")
        assert document.is_stale
        assert document.score.event_count() == 1
        assert document.source.endswith("zz }")
        assert "UNRESOLVED_PITCH" in document.diagnostics.codes()

        document = await manager.update("song", "def pno\nmeasure 1 { pno: d4 }")
        assert not document.is_stale
        assert document.score.timeline[0].midi_pitches == [62]


class TestLookup:
    """Tests for get(), require() and load()."""

    @pytest.mark.asyncio
    async def test_get_from_file(self, manager: DocumentManager, scores_dir: Path) -> None:
        """Documents not in memory are loaded from <name>.omni."""
        document = await manager.get("etude")
        assert document is not None
        assert document.path == scores_dir / "etude.omni"
        assert document.score.meta.title == "Etude"

    @pytest.mark.asyncio
    async def test_get_missing(self, manager: DocumentManager) -> None:
        """Unknown names return None."""
        assert await manager.get("nope") is None

    @pytest.mark.asyncio
    async def test_require_missing(self, manager: DocumentManager) -> None:
        """require() raises for unknown names."""
        with pytest.raises(DocumentNotFoundError, match="nope"):
            await manager.require("nope")

    @pytest.mark.asyncio
    async def test_load_named(self, manager: DocumentManager, temp_dir: Path) -> None:
        """load() accepts an explicit name."""
        path = temp_dir / "other.omni"
        path.write_text("meta { title: \"Other\" }", encoding="utf-8")
        document = await manager.load(path, "renamed")
        assert document.name == "renamed"
        assert (await manager.require("renamed")).score.meta.title == "Other"

    @pytest.mark.asyncio
    async def test_load_missing_file(self, manager: DocumentManager, temp_dir: Path) -> None:
        """Missing files raise OSError."""
        with pytest.raises(OSError):
            await manager.load(temp_dir / "missing.omni")


class TestListing:
    """Tests for list_documents()."""

    @pytest.mark.asyncio
    async def test_lists_memory_and_files(self, manager: DocumentManager) -> None:
        """Both loaded documents and files on disk are listed."""
        await manager.update("alpha", "def pno")
        listing = await manager.list_documents()
        assert [m.name for m in listing] == ["alpha", "etude"]
        assert [m.loaded for m in listing] == [True, False]

    @pytest.mark.asyncio
    async def test_summary(self, manager: DocumentManager) -> None:
        """Summaries describe the held score."""
        document = await manager.update("alpha", "def pno\nmeasure 1 { pno: c4 }")
        summary = document.to_summary()
        assert summary["name"] == "alpha"
        assert summary["events"] == 1
        assert summary["stale"] is False
