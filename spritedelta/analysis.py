"""
Static region analysis and base image generation.

One streaming pass over the resolved frames:
    1. The first frame that composites becomes the reference raster.
    2. Every later frame is compared against that fixed reference, but
       only on pixels that are still static.
    3. A pixel whose summed RGBA difference exceeds the threshold is
       marked dynamic for the rest of the pass.

The base image is the reference with every dynamic pixel cleared to
transparent black.  Only one composited frame is held at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from PIL import Image

from spritedelta.compositor import FrameCompositor
from spritedelta.progress import ProgressReporter, should_report
from spritedelta.types import CompositedFrame, OutputSize, SpriteTrack

logger = logging.getLogger(__name__)


def channel_difference(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Per-pixel sum of absolute R, G, B and A differences, shape ``(h, w)``."""
    return np.abs(a.astype(np.int16) - b.astype(np.int16)).sum(axis=-1)


def pixels_at_size(frame: Optional[CompositedFrame],
                   size: OutputSize) -> Optional[np.ndarray]:
    """Pixels of *frame*, or None when it is missing or the wrong size."""
    if frame is None:
        return None
    if (frame.width, frame.height) != size.as_tuple():
        logger.warning("Frame %d composited at %dx%d, expected %dx%d; ignoring it.",
                       frame.index, frame.width, frame.height,
                       size.width, size.height)
        return None
    return frame.pixels()


@dataclass(frozen=True)
class StaticAnalysis:
    """Result of the static region pass.  Arrays are read-only."""
    size: OutputSize
    reference: np.ndarray         # (h, w, 4) uint8
    static_mask: np.ndarray       # (h, w) bool, True = static
    indices: tuple[int, ...]      # timeline indices that composited

    @property
    def static_pixel_count(self) -> int:
        return int(np.count_nonzero(self.static_mask))

    @property
    def static_ratio(self) -> float:
        return self.static_pixel_count / max(1, self.size.pixel_count)


def analyze_static_regions(
    tracks: Sequence[SpriteTrack],
    indices: Sequence[int],
    size: OutputSize,
    threshold: int,
    compositor: FrameCompositor,
    progress: Optional[ProgressReporter] = None,
) -> Optional[StaticAnalysis]:
    """Build the reference raster and static mask.  None if nothing composites."""
    progress = progress or ProgressReporter()
    mask = np.ones((size.height, size.width), dtype=bool)
    reference: Optional[np.ndarray] = None
    resolved = []
    total = len(indices)

    for i, index in enumerate(indices):
        pixels = pixels_at_size(compositor.composite(tracks, index, size), size)
        if pixels is None:
            logger.warning("Frame %d failed to composite during analysis; dropping it.",
                           index)
        else:
            resolved.append(index)
            if reference is None:
                reference = pixels.copy()
                reference.flags.writeable = False
            else:
                # The mask only ever loses pixels; dynamic never reverts to static.
                changed = channel_difference(pixels, reference) > threshold
                mask &= ~changed
        if should_report(i, total):
            progress.span("Analyzing frames", 20, 55, i + 1, total,
                          f"{i + 1}/{total}")

    if reference is None:
        logger.info("No frame composited at %dx%d; nothing to analyze.",
                    size.width, size.height)
        return None

    mask.flags.writeable = False
    analysis = StaticAnalysis(size=size, reference=reference,
                              static_mask=mask, indices=tuple(resolved))
    logger.info("Static analysis: %d frames, %.1f%% static pixels.",
                len(resolved), analysis.static_ratio * 100)
    return analysis


def static_baseline(analysis: StaticAnalysis) -> np.ndarray:
    """Reference pixels where static, transparent black where dynamic."""
    baseline = np.where(analysis.static_mask[..., None], analysis.reference, 0)
    return baseline.astype(np.uint8)


def generate_base_image(analysis: StaticAnalysis) -> Image.Image:
    """Static-only background layer of the exported animation."""
    return Image.fromarray(static_baseline(analysis))
