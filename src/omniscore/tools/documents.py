"""
Document tools - MCP tools for the editor's document lifecycle.

Tools for pushing source updates, loading .omni files and querying
the last compiled state of a document.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from omniscore.documents import DocumentManager, ScoreDocument

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def _document_payload(document: ScoreDocument) -> dict[str, Any]:
    payload = document.to_summary()
    payload["summary"] = document.score.summary() if document.score else None
    payload["diagnostics"] = document.diagnostics.to_list()
    return payload


def register_document_tools(
    mcp: ChukMCPServer,
    manager: DocumentManager,
) -> dict[str, Any]:
    """
    Register document lifecycle tools with the MCP server.

    Args:
        mcp: The MCP server instance
        manager: The document manager

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}

    @mcp.tool  # type: ignore[arg-type]
    async def omniscore_update_document(name: str, source: str) -> str:
        """
        Replace a document's source and recompile it.

        If compilation fails outright the previous score is kept and the
        document is marked stale; malformed input normally still compiles
        and is reported through diagnostics.

        Args:
            name: Document name
            source: Full OmniScore source text

        Returns:
            JSON string with the document state

        Example:
            omniscore_update_document(name="etude", source="measure 1 { pno: c4 }")
        """
        try:
            document = await manager.update(name, source)
            return json.dumps({"status": "success", "document": _document_payload(document)})
        except Exception as e:
            logger.exception("Failed to update document")
            return json.dumps({"status": "error", "message": str(e)})

    tools["omniscore_update_document"] = omniscore_update_document

    @mcp.tool  # type: ignore[arg-type]
    async def omniscore_get_document(name: str) -> str:
        """
        Get a document's source and compiled state.

        Args:
            name: Document name

        Returns:
            JSON string with source, summary and diagnostics

        Example:
            omniscore_get_document(name="etude")
        """
        try:
            document = await manager.get(name)
            if document is None:
                return json.dumps({"status": "error", "message": f"Document not found: {name}"})

            payload = _document_payload(document)
            payload["source"] = document.source
            return json.dumps({"status": "success", "document": payload})
        except Exception as e:
            logger.exception("Failed to get document")
            return json.dumps({"status": "error", "message": str(e)})

    tools["omniscore_get_document"] = omniscore_get_document

    @mcp.tool  # type: ignore[arg-type]
    async def omniscore_list_documents() -> str:
        """
        List open documents and .omni files in the scores directory.

        Returns:
            JSON string with document names

        Example:
            omniscore_list_documents()
        """
        try:
            documents = await manager.list_documents()
            return json.dumps(
                {
                    "status": "success",
                    "documents": [
                        {
                            "name": m.name,
                            "path": str(m.path) if m.path else None,
                            "loaded": m.loaded,
                            "modified": m.modified.isoformat(),
                        }
                        for m in documents
                    ],
                }
            )
        except Exception as e:
            logger.exception("Failed to list documents")
            return json.dumps({"status": "error", "message": str(e)})

    tools["omniscore_list_documents"] = omniscore_list_documents

    @mcp.tool  # type: ignore[arg-type]
    async def omniscore_load_document(path: str, name: str | None = None) -> str:
        """
        Load and compile an .omni source file.

        Args:
            path: Path to the source file
            name: Optional document name (defaults to the file name without extension)

        Returns:
            JSON string with the document state

        Example:
            omniscore_load_document(path="scores/etude.omni")
        """
        try:
            file_path = Path(path)
            if not file_path.exists():
                return json.dumps({"status": "error", "message": f"File not found: {path}"})

            document = await manager.load(file_path, name)
            return json.dumps({"status": "success", "document": _document_payload(document)})
        except Exception as e:
            logger.exception("Failed to load document")
            return json.dumps({"status": "error", "message": str(e)})

    tools["omniscore_load_document"] = omniscore_load_document

    return tools
