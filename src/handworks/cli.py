"""HandWorks CLI.

Usage:
    handworks run          Live webcam fireworks window
    handworks demo         Render a scripted session without a camera
    handworks classify     Classify landmarks stored in a JSON file
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

try:
    import typer
except ImportError:
    raise ImportError("typer is required for CLI. Install with: pip install typer")

app = typer.Typer(
    name="handworks",
    help="🎆 Gesture-controlled fireworks from your webcam.",
    add_completion=False,
)


def _setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


@app.command()
def run(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
    camera: Optional[int] = typer.Option(None, help="Camera device index"),
    fps: Optional[float] = typer.Option(None, help="Target animation frame rate"),
    seed: Optional[int] = typer.Option(None, help="Random seed for reproducible bursts"),
    log_level: Optional[str] = typer.Option(None, help="Log level"),
):
    """Start the live webcam session. Press q or Esc to quit."""
    from handworks.app import HandWorksApp
    from handworks.config import AppConfig

    if config:
        path = Path(config)
        if not path.exists():
            typer.echo(f"❌ Config not found: {config}", err=True)
            raise typer.Exit(1)
        cfg = AppConfig.from_yaml(path)
    else:
        cfg = AppConfig()

    cfg = cfg.override(camera_index=camera, fps=fps, seed=seed, log_level=log_level)
    _setup_logging(cfg.log_level)

    typer.echo(f"🎥 Starting camera {cfg.camera_index}...")
    typer.echo("   Open hand to explode, closed fist to clear. Press 'q' to quit.")

    try:
        HandWorksApp(cfg).run()
    except (RuntimeError, ImportError) as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)


@app.command()
def demo(
    frames: int = typer.Option(240, help="Number of frames to render"),
    output: str = typer.Option("handworks_demo.png", "-o", help="Where to save the last frame"),
    width: int = typer.Option(640, help="Canvas width"),
    height: int = typer.Option(480, help="Canvas height"),
    seed: int = typer.Option(0, help="Random seed"),
    log_level: str = typer.Option("warning", help="Log level"),
):
    """Render a scripted gesture session headlessly and save the last frame."""
    import cv2
    from handworks.demo import run_demo

    _setup_logging(log_level)
    result = run_demo(frames=frames, width=width, height=height, seed=seed)

    out = Path(output)
    out.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(out), result.surface.image):
        typer.echo(f"❌ Could not write {output}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✅ Rendered {result.frames} frames ({result.duration:.1f}s simulated)")
    typer.echo(f"   Bursts:    {result.bursts}")
    typer.echo(f"   Particles: {result.particles}")
    typer.echo(f"💾 Saved to: {output}")


@app.command()
def classify(
    path: str = typer.Argument(..., help="JSON file with 21 [x, y] or [x, y, z] points"),
):
    """Classify a saved landmark set as OPEN, CLOSED, NEUTRAL or UNKNOWN."""
    import numpy as np
    from handworks.gestures import classify as classify_landmarks

    file = Path(path)
    if not file.exists():
        typer.echo(f"❌ File not found: {path}", err=True)
        raise typer.Exit(1)

    with open(file) as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("landmarks")

    try:
        landmarks = np.array(data, dtype=np.float64) if data is not None else None
    except (TypeError, ValueError):
        landmarks = None

    typer.echo(classify_landmarks(landmarks).value)


def main():
    app()


if __name__ == "__main__":
    main()
