"""skeleton-gestures CLI.

Usage:
    skeleton-gestures replay       — Run a recorded pose stream through the engine
    skeleton-gestures init-config  — Write the default YAML configuration
    skeleton-gestures synth        — Write a synthetic demo recording
    skeleton-gestures benchmark    — Measure classification throughput
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import typer
import yaml

app = typer.Typer(
    name="skeleton-gestures",
    help="Full-body gesture recognition from skeletal pose streams.",
    add_completion=False,
)


def _setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to a .json or .npz recording"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
    sink: Optional[str] = typer.Option(None, help="Override action sink: log, keyboard, shell"),
    speed: float = typer.Option(1.0, help="Playback speed multiplier"),
    realtime: bool = typer.Option(False, help="Play at recorded timing"),
    log_level: str = typer.Option("info", help="Log level"),
):
    """Replay a recorded pose stream and dispatch recognized gestures."""
    from skeleton_gestures.actions import SinkType
    from skeleton_gestures.config import ConfigError, load_config
    from skeleton_gestures.pipeline import GesturePipeline
    from skeleton_gestures.recorder import PosePlayer

    _setup_logging(log_level)

    path = Path(recording)
    if not path.exists():
        typer.echo(f"❌ Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    try:
        engine_config = load_config(config)
        if sink:
            engine_config.sink = SinkType(sink)
    except (ConfigError, ValueError, OSError, yaml.YAMLError) as e:
        typer.echo(f"❌ Bad config: {e}", err=True)
        raise typer.Exit(1)

    try:
        player = PosePlayer.load(path)
    except (ValueError, KeyError, OSError) as e:
        typer.echo(f"❌ Cannot read recording {recording}: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"▶️  Replaying {path.name} ({player.frame_count} frames, {player.duration:.1f}s)")

    with GesturePipeline(engine_config) as pipeline:
        pipeline.on_gesture(
            lambda e: typer.echo(f"   🕺 {e.kind.value} (body {e.body_id}, frame {e.frame_counter})")
        )
        source = player.play_realtime(speed=speed) if realtime else player.play()
        total = pipeline.run(source)
        stats = pipeline.stats

    typer.echo(f"\n✅ Replay complete. {total} gestures recognized.")
    for name, count in sorted(stats.gesture_counts.items()):
        typer.echo(f"   {name:20s} {count}")


@app.command("init-config")
def init_config(
    output: str = typer.Argument("skeleton-gestures.yml", help="Where to write the config"),
    force: bool = typer.Option(False, help="Overwrite an existing file"),
):
    """Write the default configuration as YAML."""
    from skeleton_gestures.config import EngineConfig, save_config

    path = Path(output)
    if path.exists() and not force:
        typer.echo(f"❌ {output} exists (use --force to overwrite)", err=True)
        raise typer.Exit(1)

    save_config(EngineConfig(), path)
    typer.echo(f"💾 Saved default config to: {output}")


@app.command()
def synth(
    output: str = typer.Argument("demo.json", help="Output recording path"),
    compact: bool = typer.Option(False, help="Save in compact .npz format"),
    fps: float = typer.Option(30.0, help="Simulated sensor frame rate"),
):
    """Write a synthetic recording with every supported gesture."""
    from skeleton_gestures.recorder import PoseRecorder
    from skeleton_gestures.synthetic import demo_session

    recorder = PoseRecorder()
    recorder.start()
    for i, bodies in enumerate(demo_session()):
        recorder.add_frame(bodies, timestamp=i / fps)
    recorder.stop()

    if compact:
        written = recorder.save_compact(output)
    else:
        recorder.save(output)
        written = Path(output)

    typer.echo(f"📼 {recorder.frame_count} frames ({recorder.duration:.1f}s) saved to: {written}")


@app.command()
def benchmark(
    frames: int = typer.Option(1000, help="Number of ticks"),
    bodies: int = typer.Option(1, help="Simulated bodies per tick"),
):
    """Measure classification throughput on synthetic skeletons."""
    from skeleton_gestures.actions import ActionMapper
    from skeleton_gestures.dispatcher import GestureDispatcher
    from skeleton_gestures.pipeline import GesturePipeline
    from skeleton_gestures.synthetic import random_poses

    typer.echo(f"⚡ Running benchmark: {frames} ticks, {bodies} body(s)")

    ticks = random_poses(frames, bodies=bodies)
    # No bindings: measure classification without spawning action threads
    pipeline = GesturePipeline(dispatcher=GestureDispatcher(mapper=ActionMapper()))

    times = []
    for tick in ticks:
        t0 = time.perf_counter()
        pipeline.process_frame(tick)
        times.append(time.perf_counter() - t0)

    avg_ms = sum(times) / len(times) * 1000 if times else 0.0
    p95_ms = sorted(times)[int(len(times) * 0.95)] * 1000 if times else 0.0
    fps = 1000 / avg_ms if avg_ms > 0 else 0

    typer.echo("\n📊 Results:")
    typer.echo(f"   Average latency: {avg_ms:.3f} ms")
    typer.echo(f"   P95 latency:     {p95_ms:.3f} ms")
    typer.echo(f"   Throughput:      {fps:.0f} ticks/s")
    typer.echo(f"   Gestures:        {pipeline.stats.total_gestures}")


def main():
    app()


if __name__ == "__main__":
    main()
