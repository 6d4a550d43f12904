#!/usr/bin/env python3
"""
Entry point for the OmniScore MCP Server.

Scores are read from and listed in a scores directory; project kits and
tunings are read from a library directory overlaying the packaged
library. Both default to the working directory layout and can be set on
the command line or through OMNISCORE_SCORES_DIR / OMNISCORE_LIBRARY_DIR.
"""

import argparse
import asyncio
import logging
import os
from pathlib import Path

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SCORES_DIR_ENV = "OMNISCORE_SCORES_DIR"
LIBRARY_DIR_ENV = "OMNISCORE_LIBRARY_DIR"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OmniScore MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport mode (default: stdio)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="HTTP port (only for http transport)",
    )
    parser.add_argument(
        "--scores-dir",
        type=Path,
        default=None,
        help="Directory of .omni documents (default: ./scores)",
    )
    parser.add_argument(
        "--library-dir",
        type=Path,
        default=None,
        help="Project kits and tunings directory (default: ./library)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging (includes compile diagnostics)",
    )
    return parser


def configure_paths(args: argparse.Namespace) -> None:
    """Export directory options for the server module to pick up."""
    if args.scores_dir is not None:
        os.environ[SCORES_DIR_ENV] = str(args.scores_dir.expanduser().resolve())
    if args.library_dir is not None:
        os.environ[LIBRARY_DIR_ENV] = str(args.library_dir.expanduser().resolve())


def resolve_dirs(base: Path | None = None) -> tuple[Path, Path]:
    """Scores and project library directories from the environment."""
    base = base or Path.cwd()
    scores_dir = Path(os.environ.get(SCORES_DIR_ENV) or base / "scores")
    library_dir = Path(os.environ.get(LIBRARY_DIR_ENV) or base / "library")
    return scores_dir, library_dir


def main() -> None:
    """Main entry point with transport detection."""
    args = build_parser().parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    configure_paths(args)

    # Import after argument parsing so log level and directories apply to setup
    from omniscore.async_server import mcp

    if args.transport == "stdio":
        logger.info("Starting OmniScore MCP Server (stdio)")
        asyncio.run(mcp.run_stdio())
    else:
        logger.info(f"Starting OmniScore MCP Server (http:{args.port})")
        asyncio.run(mcp.run_http(port=args.port))


if __name__ == "__main__":
    main()
