"""
MCP tool implementations.

Tools are organized by domain:
- documents - Document lifecycle (update, load, list)
- compilation - Compiling, measure queries, playback schedule, YAML export
"""

from omniscore.tools.compilation import register_compilation_tools
from omniscore.tools.documents import register_document_tools

__all__ = [
    "register_compilation_tools",
    "register_document_tools",
]
