"""
Frame selection and canvas-size resolution.

    tracks  -->  [candidate_indices]  -->  timeline indices
            -->  [resolve_output_size] -->  (OutputSize, renderable indices)

Both stages run before any pixel analysis.  An empty result from either
one means there is nothing to export.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from spritedelta.compositor import FrameCompositor, track_frame_index
from spritedelta.progress import ProgressReporter, should_report
from spritedelta.types import OutputSize, SpriteTrack

logger = logging.getLogger(__name__)


def max_frame_count(tracks: Sequence[SpriteTrack]) -> int:
    return max((len(t.frames) for t in tracks), default=0)


def candidate_indices(tracks: Sequence[SpriteTrack]) -> List[int]:
    """Timeline indices where at least one visible track shows an enabled frame."""
    total = max_frame_count(tracks)
    if total == 0:
        return []

    visible = [t for t in tracks if t.visible and t.frames]
    indices = []
    for i in range(total):
        all_disabled = True
        for track in visible:
            idx = track_frame_index(track, i)
            if idx is not None and not track.frames[idx].disabled:
                all_disabled = False
                break
        if not all_disabled:
            indices.append(i)
    return indices


@dataclass(frozen=True)
class SizeResolution:
    size: OutputSize
    indices: tuple[int, ...]      # timeline indices still in play


def resolve_output_size(
    tracks: Sequence[SpriteTrack],
    candidates: Sequence[int],
    compositor: FrameCompositor,
    frame_size: Optional[OutputSize] = None,
    progress: Optional[ProgressReporter] = None,
) -> Optional[SizeResolution]:
    """Determine the export canvas size.

    An explicit *frame_size* (already normalised) is used as-is without
    rendering anything.  Otherwise every candidate is composited at its
    natural size; the canvas is the running maximum, and candidates that
    fail to render are dropped for the rest of the export.
    """
    progress = progress or ProgressReporter()
    if frame_size is not None:
        return SizeResolution(frame_size, tuple(candidates))

    max_w = max_h = 0
    renderable = []
    total = len(candidates)
    for i, index in enumerate(candidates):
        frame = compositor.composite(tracks, index, None)
        if frame is None:
            logger.warning("Frame %d could not be composited; dropping it.", index)
        else:
            renderable.append(index)
            max_w = max(max_w, frame.width)
            max_h = max(max_h, frame.height)
        if should_report(i, total, every=8):
            progress.span("Resolving canvas size", 5, 15, i + 1, total,
                          f"{i + 1}/{total}")

    if not renderable or max_w == 0 or max_h == 0:
        logger.info("No candidate frame rendered; canvas size is unresolvable.")
        return None

    logger.info("Resolved canvas size %dx%d from %d/%d frames.",
                max_w, max_h, len(renderable), total)
    return SizeResolution(OutputSize(max_w, max_h), tuple(renderable))
