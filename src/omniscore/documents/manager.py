"""
Document Manager - holds named OmniScore sources and their compiled scores.

An editor pushes a new source on every keystroke or save. Each update is
compiled; when compilation fails outright the previous score is kept so
the preview never goes blank.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from omniscore.compiler import ScoreCompiler
from omniscore.constants import ErrorMessages
from omniscore.errors import CompileError, Diagnostics, DocumentNotFoundError, StrictModeError
from omniscore.models.score import CompiledScore

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".omni"


@dataclass
class ScoreDocument:
    """A named source document and the last score compiled from it."""

    name: str
    source: str
    score: CompiledScore | None = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    error: str | None = None
    path: Path | None = None
    modified: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_stale(self) -> bool:
        """True when the held score predates the current source."""
        return self.error is not None

    def to_summary(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": str(self.path) if self.path else None,
            "title": self.score.meta.title if self.score else None,
            "events": self.score.event_count() if self.score else 0,
            "stale": self.is_stale,
            "error": self.error,
            "modified": self.modified.isoformat(),
        }


class DocumentMetadata:
    """Lightweight metadata for listing documents."""

    def __init__(self, name: str, path: Path | None, loaded: bool, modified: datetime):
        self.name = name
        self.path = path
        self.loaded = loaded
        self.modified = modified

    def __repr__(self) -> str:
        return f"DocumentMetadata({self.name!r}, loaded={self.loaded})"


class DocumentManager:
    """
    Manages named documents in memory, with .omni files as an optional source.

    Compiled output is never written to disk.
    """

    def __init__(self, scores_dir: Path, compiler: ScoreCompiler | None = None):
        """
        Initialize the manager.

        Args:
            scores_dir: Directory searched for <name>.omni files
            compiler: Compiler to use (default options if omitted)
        """
        self.scores_dir = scores_dir
        self.compiler = compiler or ScoreCompiler()
        self._documents: dict[str, ScoreDocument] = {}

    async def update(self, name: str, source: str, path: Path | None = None) -> ScoreDocument:
        """
        Replace a document's source and recompile it.

        Args:
            name: Document name
            source: New OmniScore source
            path: File the source came from, if any

        Returns:
            The document; on a compile failure it keeps the previous score
            and records the error
        """
        document = self._documents.get(name)
        if document is None:
            document = ScoreDocument(name=name, source=source, path=path)
            self._documents[name] = document
        document.source = source
        document.modified = datetime.now(UTC)
        if path is not None:
            document.path = path

        try:
            result = self.compiler.compile(source)
        except CompileError as e:
            logger.warning(f"Keeping last good score for '{name}': {e}")
            document.error = str(e)
            if isinstance(e, StrictModeError):
                document.diagnostics = e.diagnostics
            return document

        document.score = result.score
        document.diagnostics = result.diagnostics
        document.error = None
        return document

    async def get(self, name: str) -> ScoreDocument | None:
        """
        Get a document by name.

        Checks memory first, then loads <name>.omni from the scores directory.
        """
        if name in self._documents:
            return self._documents[name]

        path = self._get_path(name)
        if path.exists():
            return await self.load(path, name)

        return None

    async def require(self, name: str) -> ScoreDocument:
        """Like get(), but raise DocumentNotFoundError when missing."""
        document = await self.get(name)
        if document is None:
            raise DocumentNotFoundError(ErrorMessages.DOCUMENT_NOT_FOUND.format(name=name))
        return document

    async def load(self, path: Path, name: str | None = None) -> ScoreDocument:
        """
        Load and compile a source file.

        Args:
            path: Path to an .omni file
            name: Document name (defaults to the file stem)

        Returns:
            The compiled document
        """
        with open(path, encoding="utf-8") as f:
            source = f.read()
        return await self.update(name or path.stem, source, path)

    async def list_documents(self) -> list[DocumentMetadata]:
        """
        List documents held in memory and .omni files in the scores directory.

        Returns:
            Metadata sorted by name
        """
        result = {
            name: DocumentMetadata(name, doc.path, True, doc.modified)
            for name, doc in self._documents.items()
        }
        if self.scores_dir.exists():
            for path in self.scores_dir.glob(f"*{SOURCE_SUFFIX}"):
                if path.stem not in result:
                    modified = datetime.fromtimestamp(path.stat().st_mtime, UTC)
                    result[path.stem] = DocumentMetadata(path.stem, path, False, modified)
        return sorted(result.values(), key=lambda m: m.name)

    def _get_path(self, name: str) -> Path:
        """Get the file path for a document."""
        safe_name = name.replace(" ", "_").replace("/", "_")
        return self.scores_dir / f"{safe_name}{SOURCE_SUFFIX}"
