#!/usr/bin/env python3
"""
Example: Compile an OmniScore document and inspect the timeline.

Usage:
    python examples/compile_score.py [path/to/score.omni]

This example shows:
1. Compiling source text to a CompiledScore with diagnostics
2. Querying one measure the way a renderer does
3. Converting ticks to seconds the way a playback engine does
4. Saving the score as JSON for golden-file comparison
"""

import sys
from pathlib import Path

from omniscore.compiler import ScoreCompiler


def main() -> None:
    """Compile the demo score and print what came out."""
    examples_dir = Path(__file__).parent
    output_dir = examples_dir / "output"
    output_dir.mkdir(exist_ok=True)

    source_path = Path(sys.argv[1]) if len(sys.argv) > 1 else examples_dir / "demo.omni"

    print("OmniScore Compile Demo")
    print("=" * 50)
    print()

    print(f"1. Compiling {source_path.name}...")
    result = ScoreCompiler().compile(source_path.read_text(encoding="utf-8"))
    score = result.score
    summary = score.summary()
    print(f"   Title: {summary['title']}")
    print(f"   Instruments: {', '.join(summary['instruments'])}")
    print(f"   Events: {summary['total_events']}")
    print(f"   Length: {summary['duration_seconds']}s ({score.duration_ticks} ticks)")
    print(f"   Diagnostics:\n{result.diagnostics}")
    print()

    print("2. Measure 3, as a renderer sees it...")
    start, end = score.measure_window(3)
    for instrument_id, voices in score.voices().items():
        for voice_id in voices:
            events = score.events_in_window(start, end, instrument_id, voice_id)
            if events:
                pitches = " ".join(
                    "r" if not e.pitches else "+".join(str(p) for p in e.midi_pitches)
                    for e in events
                )
                print(f"   {instrument_id}/{voice_id}: {pitches}")
    print()

    print("3. First events in seconds...")
    for event in score.timeline[:6]:
        print(
            f"   t={score.tick_to_seconds(event.tick_start):6.3f}s "
            f"{event.instrument_id:<6} {event.kind.value:<5} {event.midi_pitches} "
            f"vel={event.velocity:.2f}"
        )
    print()

    print("4. Saving the compiled score as JSON...")
    json_path = output_dir / f"{source_path.stem}.json"
    json_path.write_text(score.to_json(), encoding="utf-8")
    print(f"   Saved to: {json_path}")


if __name__ == "__main__":
    main()
