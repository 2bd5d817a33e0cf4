"""
CLI commands for examining an existing package.

Usage:
    spritedelta inspect hero-optimized.zip
    spritedelta preview hero-optimized.zip 3 -o frame3.png
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from ..exceptions import SpriteDeltaError
from ..package import load_package
from ..playback import render_playback_frame


def cmd_inspect(args: argparse.Namespace) -> int:
    """Main handler for ``spritedelta inspect``."""
    try:
        pkg = load_package(args.package)
    except SpriteDeltaError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    meta = pkg.metadata
    print(f"Source size: {meta.source_size.width}x{meta.source_size.height}")
    print(f"Frames: {meta.frame_count} @ {meta.fps} fps (target: {meta.target})")
    print(f"Base: {meta.base_file}")
    if meta.delta is None:
        print("Delta: none (all frames match the base image)")
    else:
        d = meta.delta
        w, h = pkg.atlas_image.size
        print(f"Delta: {d.file}, tile {d.tile_size}px, "
              f"{d.columns}x{d.rows} cells ({w}x{h} px), {d.patch_count} patches")
    if args.frames:
        for frame in meta.frames:
            print(f"  frame {frame.index}: {len(frame.patches)} patch(es)")
    return 0


def cmd_preview(args: argparse.Namespace) -> int:
    """Main handler for ``spritedelta preview``."""
    try:
        pkg = load_package(args.package)
        image = render_playback_frame(pkg.base_image, pkg.atlas_image,
                                      pkg.metadata, args.frame)
    except (SpriteDeltaError, IndexError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    output = Path(args.output) if args.output else Path(f"frame_{args.frame:04d}.png")
    image.save(str(output), format="PNG")
    print(f"Frame {args.frame} -> {output}")
    return 0


def build_inspect_parsers(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``inspect`` and ``preview`` subcommands."""
    p = subparsers.add_parser(
        "inspect",
        help="Summarise an optimized package",
    )
    p.add_argument("package", help="Package zip file or directory")
    p.add_argument(
        "--frames", action="store_true",
        help="List patch counts per frame",
    )
    p.set_defaults(func=cmd_inspect)

    p = subparsers.add_parser(
        "preview",
        help="Reconstruct one frame of a package as PNG",
    )
    p.add_argument("package", help="Package zip file or directory")
    p.add_argument("frame", type=int, help="Frame position (0-based)")
    p.add_argument(
        "-o", "--output", default=None,
        help="Output PNG path (default: frame_NNNN.png)",
    )
    p.set_defaults(func=cmd_preview)
