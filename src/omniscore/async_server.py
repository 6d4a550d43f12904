#!/usr/bin/env python3
"""
Async OmniScore MCP Server using chuk-mcp-server

This server exposes the OmniScore compiler to editors and agents. A
document is pushed as source text, compiled leniently, and then queried
by measure for rendering or by seconds for playback.

The server provides tools for:
- Compiling source text with diagnostics
- Managing named documents and .omni files
- Measure-window queries for renderers
- Playback schedules and YAML export
- Listing percussion maps and tunings
"""

import logging

from chuk_mcp_server import ChukMCPServer

from omniscore.compiler import ScoreCompiler
from omniscore.documents import DocumentManager
from omniscore.library import LIBRARY_PATH, InstrumentLibrary
from omniscore.server import resolve_dirs
from omniscore.tools import register_compilation_tools, register_document_tools

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the MCP server instance
mcp = ChukMCPServer("omniscore")

# Paths - command line or environment, else ./scores and ./library
SCORES_DIR, PROJECT_LIBRARY_DIR = resolve_dirs()

# Create managers
instrument_library = InstrumentLibrary(
    library_path=LIBRARY_PATH,
    project_path=PROJECT_LIBRARY_DIR,
)
document_manager = DocumentManager(SCORES_DIR, ScoreCompiler(library=instrument_library))

# Register all tools
document_tools = register_document_tools(mcp, document_manager)
compilation_tools = register_compilation_tools(mcp, document_manager, instrument_library)

# Export tool functions for direct access
omniscore_update_document = document_tools["omniscore_update_document"]
omniscore_get_document = document_tools["omniscore_get_document"]
omniscore_list_documents = document_tools["omniscore_list_documents"]
omniscore_load_document = document_tools["omniscore_load_document"]

omniscore_compile = compilation_tools["omniscore_compile"]
omniscore_measure_events = compilation_tools["omniscore_measure_events"]
omniscore_playback_schedule = compilation_tools["omniscore_playback_schedule"]
omniscore_export_yaml = compilation_tools["omniscore_export_yaml"]
omniscore_list_library = compilation_tools["omniscore_list_library"]

logger.info("OmniScore MCP Server initialized")
logger.info(f"  Library path: {LIBRARY_PATH}")
logger.info(f"  Project library: {PROJECT_LIBRARY_DIR}")
logger.info(f"  Scores dir: {SCORES_DIR}")
