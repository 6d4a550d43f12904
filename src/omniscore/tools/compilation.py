"""
Compilation tools - MCP tools for compiling and querying scores.

Tools for compiling source text, slicing a compiled score by measure,
producing a playback schedule and exporting the score as YAML.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import yaml

from omniscore.compiler import CompilerOptions, ScoreCompiler
from omniscore.documents import DocumentManager
from omniscore.errors import DocumentNotFoundError, StrictModeError
from omniscore.library import InstrumentLibrary

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def register_compilation_tools(
    mcp: ChukMCPServer,
    manager: DocumentManager,
    library: InstrumentLibrary,
) -> dict[str, Any]:
    """
    Register compilation tools with the MCP server.

    Args:
        mcp: The MCP server instance
        manager: The document manager
        library: The instrument library used for map/tuning lookups

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}
    lenient_compiler = ScoreCompiler(CompilerOptions(), library)
    strict_compiler = ScoreCompiler(CompilerOptions(strict=True), library)

    @mcp.tool  # type: ignore[arg-type]
    async def omniscore_compile(
        source: str,
        include_timeline: bool = True,
        strict: bool = False,
    ) -> str:
        """
        Compile OmniScore source text.

        Compilation is lenient: malformed input still produces a score and
        each problem is listed in the diagnostics. With strict=True any
        warning makes the call fail.

        Args:
            source: OmniScore document text
            include_timeline: Whether to include individual events (default True)
            strict: Fail on any warning or error

        Returns:
            JSON string with the compiled score, summary and diagnostics

        Example:
            omniscore_compile(source="def pno style=standard measure 1 { pno: c4:4 d e f }")
        """
        try:
            compiler = strict_compiler if strict else lenient_compiler
            result = compiler.compile(source)
            score_dict = result.score.to_dict()
            if not include_timeline:
                score_dict["timeline"] = []

            return json.dumps(
                {
                    "status": "success",
                    "score": score_dict,
                    "summary": result.score.summary(),
                    "diagnostics": result.diagnostics.to_list(),
                }
            )
        except StrictModeError as e:
            return json.dumps(
                {
                    "status": "error",
                    "message": str(e),
                    "diagnostics": e.diagnostics.to_list(),
                }
            )
        except Exception as e:
            logger.exception("Failed to compile score")
            return json.dumps({"status": "error", "message": str(e)})

    tools["omniscore_compile"] = omniscore_compile

    @mcp.tool  # type: ignore[arg-type]
    async def omniscore_measure_events(
        name: str,
        measure: int,
        instrument: str | None = None,
        voice: str | None = None,
    ) -> str:
        """
        Get the events that start in one measure of a document.

        Renderers call this per measure and staff. The window is computed
        from the document's final time signature.

        Args:
            name: Document name
            measure: 1-based measure index
            instrument: Optional instrument id filter
            voice: Optional voice id filter (e.g. 'v1')

        Returns:
            JSON string with the tick window and its events

        Example:
            omniscore_measure_events(name="etude", measure=3, instrument="gtr")
        """
        try:
            if measure < 1:
                return json.dumps(
                    {"status": "error", "message": f"Measure must be >= 1, got {measure}"}
                )

            document = await manager.require(name)
            if document.score is None:
                return json.dumps({"status": "error", "message": document.error})

            start, end = document.score.measure_window(measure)
            events = document.score.events_in_window(start, end, instrument, voice)

            return json.dumps(
                {
                    "status": "success",
                    "measure": measure,
                    "window": [start, end],
                    "events": [e.to_dict() for e in events],
                }
            )
        except DocumentNotFoundError as e:
            return json.dumps({"status": "error", "message": str(e)})
        except Exception as e:
            logger.exception("Failed to get measure events")
            return json.dumps({"status": "error", "message": str(e)})

    tools["omniscore_measure_events"] = omniscore_measure_events

    @mcp.tool  # type: ignore[arg-type]
    async def omniscore_playback_schedule(name: str) -> str:
        """
        Get a document's events scheduled in seconds.

        Each entry gives start time, length, MIDI pitches and velocity
        at the document tempo, ready for a synthesizer to play. Rests
        are left out.

        Args:
            name: Document name

        Returns:
            JSON string with the schedule

        Example:
            omniscore_playback_schedule(name="etude")
        """
        try:
            document = await manager.require(name)
            score = document.score
            if score is None:
                return json.dumps({"status": "error", "message": document.error})

            schedule = [
                {
                    "time": round(score.tick_to_seconds(e.tick_start), 6),
                    "duration": round(score.tick_to_seconds(e.tick_end - e.tick_start), 6),
                    "pitches": e.midi_pitches,
                    "velocity": e.velocity,
                    "instrument_id": e.instrument_id,
                    "voice_id": e.voice_id,
                }
                for e in score.timeline
                if e.pitches
            ]

            return json.dumps(
                {
                    "status": "success",
                    "tempo": score.meta.tempo,
                    "seconds_per_tick": score.seconds_per_tick,
                    "duration_seconds": score.duration_seconds,
                    "schedule": schedule,
                }
            )
        except DocumentNotFoundError as e:
            return json.dumps({"status": "error", "message": str(e)})
        except Exception as e:
            logger.exception("Failed to build playback schedule")
            return json.dumps({"status": "error", "message": str(e)})

    tools["omniscore_playback_schedule"] = omniscore_playback_schedule

    @mcp.tool  # type: ignore[arg-type]
    async def omniscore_export_yaml(name: str) -> str:
        """
        Export a compiled document as YAML.

        Returns the compiled score (meta, instruments, groups, timeline)
        in YAML, suitable for golden-file comparison or inspection.

        Args:
            name: Document name

        Returns:
            JSON string containing the YAML content

        Example:
            omniscore_export_yaml(name="etude")
        """
        try:
            document = await manager.require(name)
            if document.score is None:
                return json.dumps({"status": "error", "message": document.error})

            yaml_content = yaml.safe_dump(
                document.score.to_dict(), default_flow_style=False, sort_keys=False
            )

            return json.dumps(
                {
                    "status": "success",
                    "yaml": yaml_content,
                }
            )
        except DocumentNotFoundError as e:
            return json.dumps({"status": "error", "message": str(e)})
        except Exception as e:
            logger.exception("Failed to export YAML")
            return json.dumps({"status": "error", "message": str(e)})

    tools["omniscore_export_yaml"] = omniscore_export_yaml

    @mcp.tool  # type: ignore[arg-type]
    async def omniscore_list_library() -> str:
        """
        List the percussion maps and tunings available to `map=` and `tuning=`.

        Returns:
            JSON string with kits and tunings

        Example:
            omniscore_list_library()
        """
        try:
            kits = [
                {"name": k.name, "description": k.description, "symbols": sorted(k.map)}
                for k in library.list_kits()
            ]
            tunings = [
                {"name": t.name, "description": t.description, "strings": list(t.strings)}
                for t in library.list_tunings()
            ]

            return json.dumps({"status": "success", "kits": kits, "tunings": tunings})
        except Exception as e:
            logger.exception("Failed to list library")
            return json.dumps({"status": "error", "message": str(e)})

    tools["omniscore_list_library"] = omniscore_list_library

    return tools
