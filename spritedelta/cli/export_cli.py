"""
CLI command for exporting a sprite project as an optimized package.

Usage:
    spritedelta export hero.yaml -o dist/
    spritedelta export hero.yaml --threshold 4 --tile-size 16 --format webp
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from tqdm import tqdm

from ..config import ExportConfig, load_export_config, parse_frame_size
from ..exceptions import SpriteDeltaError
from ..package import DirectoryPackageBuilder, ZipPackageBuilder
from ..pipeline import export_optimized_sprite, write_optimized_package
from ..progress import ProgressEvent
from ..project import load_project


class ProgressBar:
    """tqdm bar on stderr driven by pipeline progress events."""

    def __init__(self) -> None:
        self._bar = tqdm(
            total=100, desc="Starting", file=sys.stderr, dynamic_ncols=True,
            bar_format="{desc}: {percentage:3.0f}%|{bar}| [{elapsed}{postfix}]",
        )

    def __call__(self, event: ProgressEvent) -> None:
        self._bar.set_description_str(event.stage, refresh=False)
        if event.detail:
            self._bar.set_postfix_str(event.detail, refresh=False)
        self._bar.n = event.percent
        self._bar.refresh()

    def close(self) -> None:
        self._bar.close()


def _build_config(args: argparse.Namespace, project_fps: float) -> ExportConfig:
    """Merge a config file (if any) with command-line overrides."""
    if args.config:
        base = load_export_config(args.config, fps=project_fps)
    else:
        base = ExportConfig(fps=project_fps)
    overrides = {
        "threshold": args.threshold,
        "tile_size": args.tile_size,
        "image_format": args.format,
        "image_quality": args.quality,
        "target": args.target,
        "fps": args.fps,
    }
    values = {
        "threshold": base.threshold,
        "tile_size": base.tile_size,
        "frame_size": base.frame_size,
        "image_format": base.image_format,
        "image_quality": base.image_quality,
        "target": base.target,
        "fps": base.fps,
        "include_guide": base.include_guide and not args.no_guide,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    if args.frame_size:
        values["frame_size"] = parse_frame_size(args.frame_size)
    return ExportConfig(**values)


def cmd_export(args: argparse.Namespace) -> int:
    """Main handler for ``spritedelta export``."""
    project_file = Path(args.project)
    if not project_file.is_file():
        print(f"Error: file not found: {project_file}", file=sys.stderr)
        return 1

    progress = None
    try:
        project = load_project(project_file)
        config = _build_config(args, project.fps)
        if not args.quiet:
            progress = ProgressBar()

        result = export_optimized_sprite(project.tracks, config, on_progress=progress)
        if result is None:
            print("Nothing to export: no frame could be rendered.", file=sys.stderr)
            return 0

        output_dir = Path(args.output) if args.output else Path.cwd()
        if args.dir:
            builder = DirectoryPackageBuilder(output_dir / f"{project.name}-optimized")
        else:
            builder = ZipPackageBuilder(output_dir, project.name)
        path = write_optimized_package(result, builder, config, progress)
    except SpriteDeltaError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        if progress is not None:
            progress.close()

    print(result.stats().summary())
    print(f"Done! {result.metadata.frame_count} frames -> {path}")
    return 0


def build_export_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``export`` subcommand and its arguments."""
    p = subparsers.add_parser(
        "export",
        help="Export a sprite project as an optimized package",
        description="Split a sprite animation into a static base image, a "
                    "delta tile atlas and playback metadata.",
    )
    p.add_argument("project", help="Path to the project file (.yaml or .json)")
    p.add_argument(
        "--config", default=None,
        help="YAML file with export options; command-line flags win",
    )
    p.add_argument(
        "--threshold", type=float, default=None,
        help="Per-pixel RGBA difference tolerated as unchanged, 0-20 (default: 0)",
    )
    p.add_argument(
        "--tile-size", type=float, default=None,
        help="Delta tile size in pixels, 8-128 (default: 32)",
    )
    p.add_argument(
        "--frame-size", default=None,
        help="Explicit canvas size as WIDTHxHEIGHT (default: auto)",
    )
    p.add_argument(
        "--format", choices=["png", "webp"], default=None,
        help="Image format for base and atlas (default: png)",
    )
    p.add_argument(
        "--quality", type=float, default=None,
        help="WebP quality, 0.1-1.0 (default: 0.9)",
    )
    p.add_argument(
        "--fps", type=float, default=None,
        help="Playback frame rate (default: project fps)",
    )
    p.add_argument(
        "--target", choices=["canvas", "phaser", "pixi", "custom"], default=None,
        help="Target runtime named in the guide (default: canvas)",
    )
    p.add_argument(
        "--no-guide", action="store_true",
        help="Do not include GUIDE.md",
    )
    p.add_argument(
        "--dir", action="store_true",
        help="Write loose files into a directory instead of a zip",
    )
    p.add_argument(
        "-q", "--quiet", action="store_true",
        help="Suppress progress output",
    )
    p.add_argument(
        "-o", "--output", default=None,
        help="Output directory (default: current directory)",
    )
    p.set_defaults(func=cmd_export)
