"""
main.py - Command line entry point for batch curve tessellation.

Usage:
    python -m runner.main curves.json --points 200 --output-dir out --preview

The input file holds a JSON list of records, one per curve instance:

    [
      {"kind": "arc", "x0": 0, "y0": 0, "r": 1, "start": 0, "end": 1.57,
       "group": "a", "gradient": {"size": [0.5, 3]}, "constant": {"colour": "tomato"}},
      {"kind": "bezier", "points": [[0, 0], [1, 2], [2, 0]]}
    ]

Writes ``curves_<timestamp>.json`` (flattened point records) and, with
``--preview``, a PNG rendering of the batch.
"""

import os
import json
import time
import logging
import argparse
from pathlib import Path
from typing import Any, Optional, Sequence

import matplotlib
matplotlib.use("Agg")  # headless rendering for previews
import matplotlib.pyplot as plt

from curves.batch import CurveBatch, CurveInstance, instance_from_record
from curves.errors import BatchFailure, CurveError
from curves.mpl_render import draw_batch
from curves.resolution import SampleResolution

from .config import RunnerConfig, default_processes
from .logging_utils import configure_logging
from .orchestration import run_parallel

DEFAULT_POINTS = 100


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="curves",
        description="Tessellate arcs, Beziers, b-splines and links into point sequences.",
    )
    parser.add_argument("input", type=Path, help="JSON file with a list of curve records")
    parser.add_argument("--points", type=int, default=None,
                        help=f"fixed points per curve (default {DEFAULT_POINTS})")
    parser.add_argument("--max-angle", type=float, default=None,
                        help="adaptive: max radians per step (arcs, circles)")
    parser.add_argument("--max-chord", type=float, default=None,
                        help="adaptive: max segment length")
    parser.add_argument("--processes", type=int, default=None,
                        help="worker processes (default: 75%% of cores)")
    parser.add_argument("--chunk-size", type=int, default=256)
    parser.add_argument("--output-dir", type=Path, default=Path("./out"))
    parser.add_argument("--log-dir", type=Path, default=Path("./logs"))
    parser.add_argument("--no-log-file", action="store_true", help="log to console only")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--preview", action="store_true", help="also render a PNG preview")
    parser.add_argument("--color-by", default=None, help="attribute used for preview colors")
    parser.add_argument("--width-by", default=None, help="attribute used for preview line widths")
    return parser.parse_args(argv)


def load_instances(path: Path) -> list[CurveInstance]:
    """Read curve records from ``path``; record errors carry their index."""
    with open(path, "r", encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"{path} must contain a JSON list of records, got {type(records).__name__}.")

    instances = []
    for i, record in enumerate(records):
        try:
            instances.append(instance_from_record(record))
        except (CurveError, TypeError) as e:
            group = record.get("group") if isinstance(record, dict) else None
            raise BatchFailure(i, group, e) from e
    return instances


def write_output(batch: CurveBatch, output_dir: Path) -> Path:
    ts = time.strftime("%Y%m%d_%H%M%S")
    out = Path(output_dir) / f"curves_{ts}.json"
    payload: dict[str, Any] = {
        "groups": list(batch.groups),
        "closed": list(batch.closed),
        "points": batch.to_records(),
    }
    with open(out, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False, allow_nan=False, default=str)
    return out


def write_preview(batch: CurveBatch, config: RunnerConfig, path: Path,
                  color: Optional[str] = None, linewidth: Optional[str] = None) -> Path:
    width_in = config.preview_size[0] / config.dpi
    height_in = config.preview_size[1] / config.dpi
    fig, ax = plt.subplots(figsize=(width_in, height_in))
    try:
        ax.set_aspect("equal")
        ax.axis("off")
        draw_batch(ax, batch, color=color, linewidth=linewidth)
        fig.savefig(path, dpi=config.dpi)
    finally:
        plt.close(fig)
    return path


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Run batch tessellation from the command line."""
    args = parse_args(argv)
    try:
        config = RunnerConfig(
            logger_level=getattr(logging, args.log_level),
            processes=args.processes if args.processes is not None else default_processes(),
            chunk_size=args.chunk_size,
            output_dir=args.output_dir,
            log_dir=None if args.no_log_file else args.log_dir,
        )
    except ValueError as e:
        raise SystemExit(f"Invalid configuration: {e}")

    log_path = configure_logging(
        level=config.logger_level,
        log_dir=config.log_dir,
        name=None,
        run_prefix=f"main_{os.getpid()}",
    )
    logger = logging.getLogger("runner")
    logger.info(f"RunnerConfig: {config}")
    logger.info(f"Logs written to: {log_path}")

    if args.points is None and args.max_angle is None and args.max_chord is None:
        resolution = SampleResolution(n=DEFAULT_POINTS)
    else:
        resolution = SampleResolution(n=args.points, max_angle=args.max_angle, max_chord=args.max_chord)

    try:
        instances = load_instances(args.input)
        batch = run_parallel(instances, resolution, config)
    except (CurveError, ValueError, OSError) as e:
        logger.critical(f"Run aborted: {e}")
        raise SystemExit(1)

    out = write_output(batch, config.output_dir)
    logger.info(f"Wrote {len(batch)} points for {len(batch.groups)} curve(s) to {out}")

    if args.preview:
        try:
            png = write_preview(batch, config, out.with_suffix(".png"), args.color_by, args.width_by)
        except ValueError as e:
            logger.critical(f"Preview failed: {e}")
            raise SystemExit(1)
        logger.info(f"Preview written: {png}")


if __name__ == "__main__":
    main()
