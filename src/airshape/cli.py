"""AirShape CLI.

Usage:
    airshape detect STROKES.json    — classify recorded strokes
    airshape analyze STROKES.json   — show corner/circularity measurements
    airshape camera --task circle   — run the live camera loop
    airshape config -o airshape.yml — write the default configuration
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

try:
    import typer
except ImportError:
    raise ImportError("typer is required for CLI. Install with: pip install typer")
import yaml

from airshape.config import EngineConfig
from airshape.recorder import load_strokes
from airshape.shapes import ShapeDetector

app = typer.Typer(
    name="airshape",
    help="✋ Finger counting and air-drawn shape recognition.",
    add_completion=False,
)

_config_option = typer.Option(None, "--config", "-c", help="Path to YAML config")


@app.callback()
def main(log_level: str = typer.Option("warning", help="Log level")):
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(path: Optional[str]) -> EngineConfig:
    if not path:
        return EngineConfig()
    try:
        return EngineConfig.from_yaml(path)
    except FileNotFoundError:
        typer.echo(f"❌ Config file not found: {path}", err=True)
        raise typer.Exit(1)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        typer.echo(f"❌ Invalid config file {path}: {e}", err=True)
        raise typer.Exit(1)


def _load_strokes_or_exit(path: str):
    try:
        return load_strokes(path)
    except FileNotFoundError:
        typer.echo(f"❌ Stroke file not found: {path}", err=True)
        raise typer.Exit(1)
    except (ValueError, json.JSONDecodeError) as e:
        typer.echo(f"❌ Could not read {path}: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def detect(
    strokes_file: str = typer.Argument(..., help="JSON file written by StrokeRecorder"),
    config: Optional[str] = _config_option,
):
    """Classify every stroke in a recording."""
    cfg = _load_config(config)
    detector = ShapeDetector(cfg.shapes)
    strokes = _load_strokes_or_exit(strokes_file)

    mismatches = 0
    for i, stroke in enumerate(strokes):
        shape = detector.detect(stroke.points)
        line = f"{i:3d}  {shape.value:<9}  ({len(stroke.points)} points)"
        if stroke.label:
            ok = shape.value == stroke.label
            mismatches += 0 if ok else 1
            line += f"  expected {stroke.label} {'✅' if ok else '❌'}"
        typer.echo(line)

    if mismatches:
        typer.echo(f"\n{mismatches} of {len(strokes)} strokes misclassified", err=True)
        raise typer.Exit(1)


@app.command()
def analyze(
    strokes_file: str = typer.Argument(..., help="JSON file written by StrokeRecorder"),
    config: Optional[str] = _config_option,
):
    """Print the measurements behind each classification as JSON lines."""
    cfg = _load_config(config)
    detector = ShapeDetector(cfg.shapes)

    for stroke in _load_strokes_or_exit(strokes_file):
        data = detector.analyze(stroke.points).to_dict()
        data["label"] = stroke.label
        typer.echo(json.dumps(data))


@app.command(name="config")
def write_config(
    output: str = typer.Option("airshape.yml", "-o", "--output", help="Output path"),
):
    """Write the default configuration to a YAML file."""
    EngineConfig().save_yaml(output)
    typer.echo(f"📝 Default configuration written to {output}")


@app.command()
def camera(
    task: str = typer.Option("circle", help="Finger count 1-5 or a shape name"),
    camera_index: Optional[int] = typer.Option(None, "--camera", help="Camera index (overrides config)"),
    duration: float = typer.Option(0, help="Seconds to run (0 = until Ctrl+C)"),
    record: Optional[str] = typer.Option(None, help="Save submitted strokes to this JSON file"),
    config: Optional[str] = _config_option,
):
    """Run the live loop: webcam → MediaPipe → finger count / shapes."""
    from airshape.classifier import LandmarkClassifier
    from airshape.detector import HandDetector
    from airshape.recorder import StrokeRecorder
    from airshape.scheduler import CancellationToken, OpenCVFrameSource, SamplingScheduler
    from airshape.strokes import StrokeAccumulator
    from airshape.tasks import AnswerMatcher, Task

    cfg = _load_config(config)
    try:
        current = Task.parse(task)
    except ValueError as e:
        typer.echo(f"❌ Invalid task: {e}", err=True)
        raise typer.Exit(1)

    sched_cfg = cfg.scheduler
    if camera_index is not None:
        sched_cfg.camera_index = camera_index
    source = OpenCVFrameSource(sched_cfg.camera_index, sched_cfg.camera_width, sched_cfg.camera_height)
    if not source.is_open:
        source.close()
        typer.echo("❌ Could not open camera", err=True)
        raise typer.Exit(1)

    detector = HandDetector(
        min_detection_confidence=sched_cfg.min_detection_confidence,
        min_tracking_confidence=sched_cfg.min_tracking_confidence,
    )
    accumulator = StrokeAccumulator(
        detector=ShapeDetector(cfg.shapes),
        inactivity_timeout=cfg.strokes.inactivity_timeout,
        min_points=cfg.strokes.min_points,
    )
    recorder = StrokeRecorder(label=current.answer if isinstance(current.answer, str) else None)
    if record:
        accumulator.on_result(recorder.add_result)

    accumulator.on_result(lambda r: typer.echo(f"✏️  Stroke: {r.shape.value} ({r.point_count} points)"))
    matcher = AnswerMatcher()
    matcher.bind(accumulator)
    matcher.on_correct(lambda t: typer.echo(f"✅ Correct: {t.question}"))
    matcher.on_incorrect(lambda t, s: typer.echo(f"❌ Got {s.value}, try again"))
    matcher.set_task(current)

    scheduler = SamplingScheduler(
        source,
        detector,
        classifier=LandmarkClassifier(cfg.classifier.draw_threshold),
        accumulator=accumulator,
        min_interval=sched_cfg.min_interval,
        poll_interval=sched_cfg.poll_interval,
        surface_size=(float(sched_cfg.camera_width), float(sched_cfg.camera_height)),
    )
    scheduler.on_sample(matcher.check_gesture)

    async def _run():
        token = CancellationToken()
        loop_task = asyncio.create_task(scheduler.run(token))
        if duration > 0:
            await asyncio.sleep(duration)
            token.cancel()
        await loop_task

    typer.echo(f"🎥 {current.question} — press Ctrl+C to stop")
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        typer.echo("\n⏹️  Stopped")
    finally:
        detector.close()
        source.close()

    stats = scheduler.stats
    typer.echo(
        f"📊 {stats.frames_sampled} samples, {stats.hands_detected} with a hand, "
        f"{stats.detector_errors} detector errors"
    )
    if record:
        recorder.save(record)
        typer.echo(f"💾 Saved {len(recorder)} strokes to {Path(record)}")


if __name__ == "__main__":
    app()
