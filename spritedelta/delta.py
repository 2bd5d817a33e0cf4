"""
Tile-granularity delta encoding.

Every resolved frame is re-composited and split into a TileSize grid
(edge tiles clipped to the canvas).  A tile is *changed* when any of its
pixels differs from the delta baseline by more than the threshold, where
the baseline is the reference pixel for static pixels and transparent
black for dynamic ones.  Each changed tile becomes a ``Patch`` with the
next atlas index; identical tiles in different frames are stored twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from spritedelta.analysis import (StaticAnalysis, channel_difference,
                                  pixels_at_size, static_baseline)
from spritedelta.compositor import FrameCompositor
from spritedelta.progress import ProgressReporter, should_report
from spritedelta.types import FramePatchList, Patch, SpriteTrack

logger = logging.getLogger(__name__)

Rect = Tuple[int, int, int, int]


def tile_grid(width: int, height: int, tile_size: int) -> List[Rect]:
    """All (x, y, w, h) tiles of a canvas in row-major order."""
    return [
        (x, y, min(tile_size, width - x), min(tile_size, height - y))
        for y in range(0, height, tile_size)
        for x in range(0, width, tile_size)
    ]


def changed_tile_rects(
    frame_pixels: np.ndarray,
    baseline_pixels: np.ndarray,
    tile_size: int,
    threshold: int,
) -> List[Rect]:
    """Tiles of *frame_pixels* containing at least one pixel over *threshold*."""
    height, width = frame_pixels.shape[:2]
    changed = channel_difference(frame_pixels, baseline_pixels) > threshold
    if not changed.any():
        return []
    return [
        (x, y, w, h)
        for x, y, w, h in tile_grid(width, height, tile_size)
        if changed[y:y + h, x:x + w].any()
    ]


@dataclass(frozen=True)
class TileDeltaResult:
    frames: tuple[FramePatchList, ...]
    patch_count: int


def encode_tile_deltas(
    tracks: Sequence[SpriteTrack],
    analysis: StaticAnalysis,
    tile_size: int,
    threshold: int,
    compositor: FrameCompositor,
    progress: Optional[ProgressReporter] = None,
) -> TileDeltaResult:
    """Find the changed tiles of every resolved frame.

    Frames that fail to re-composite get an empty patch list; the export
    continues.
    """
    progress = progress or ProgressReporter()
    baseline = static_baseline(analysis)
    frames = []
    patch_count = 0
    total = len(analysis.indices)

    for position, index in enumerate(analysis.indices):
        pixels = pixels_at_size(
            compositor.composite(tracks, index, analysis.size), analysis.size,
        )
        if pixels is None:
            logger.warning("Frame %d failed to re-composite; emitting no patches.",
                           index)
            frames.append(FramePatchList(position, ()))
        else:
            patches = []
            for x, y, w, h in changed_tile_rects(pixels, baseline, tile_size,
                                                 threshold):
                patches.append(Patch(patch_count, x, y, w, h))
                patch_count += 1
            frames.append(FramePatchList(position, tuple(patches)))
            logger.debug("Frame %d: %d changed tile(s).", index, len(patches))

        if should_report(position, total):
            progress.span("Analyzing tiles", 60, 72, position + 1, total,
                          f"{position + 1}/{total} ({patch_count} patches)")

    logger.info("Tile delta: %d patch(es) across %d frame(s), tile size %d.",
                patch_count, total, tile_size)
    return TileDeltaResult(frames=tuple(frames), patch_count=patch_count)
