"""
Delta atlas packing.

All patches of all frames are laid out in one square-ish grid of
TileSize cells, in atlas-index order:

    columns = ceil(sqrt(patch_count))
    rows    = ceil(patch_count / columns)
    cell(i) = (i % columns, i // columns)

Each frame with patches is re-composited once and its changed tiles are
copied into their cells.  Edge patches smaller than a tile occupy the
top-left corner of their cell.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Tuple

from PIL import Image

from spritedelta.analysis import StaticAnalysis
from spritedelta.compositor import FrameCompositor
from spritedelta.delta import TileDeltaResult
from spritedelta.progress import ProgressReporter, should_report
from spritedelta.types import DeltaAtlas, SpriteTrack

logger = logging.getLogger(__name__)


def atlas_geometry(patch_count: int) -> Tuple[int, int]:
    """Return (columns, rows) for *patch_count* cells."""
    if patch_count <= 0:
        return (0, 0)
    columns = max(1, math.ceil(math.sqrt(patch_count)))
    rows = max(1, math.ceil(patch_count / columns))
    return columns, rows


def atlas_cell(atlas_index: int, columns: int) -> Tuple[int, int]:
    """Return the (column, row) cell of *atlas_index*."""
    return atlas_index % columns, atlas_index // columns


def pack_delta_atlas(
    tracks: Sequence[SpriteTrack],
    analysis: StaticAnalysis,
    deltas: TileDeltaResult,
    tile_size: int,
    compositor: FrameCompositor,
    progress: Optional[ProgressReporter] = None,
) -> Optional[DeltaAtlas]:
    """Copy every patch into its atlas cell.  None when there are no patches."""
    if deltas.patch_count <= 0:
        logger.info("No changed tiles; skipping the delta atlas.")
        return None

    progress = progress or ProgressReporter()
    columns, rows = atlas_geometry(deltas.patch_count)
    sheet = Image.new("RGBA", (columns * tile_size, rows * tile_size), (0, 0, 0, 0))
    total = len(analysis.indices)

    for position, index in enumerate(analysis.indices):
        frame_meta = deltas.frames[position]
        if not frame_meta.patches:
            continue

        frame = compositor.composite(tracks, index, analysis.size)
        if frame is None or (frame.width, frame.height) != analysis.size.as_tuple():
            logger.warning("Frame %d failed to re-composite for the atlas; "
                           "its %d cell(s) stay transparent.",
                           index, len(frame_meta.patches))
            continue

        source = frame.image.convert("RGBA")
        for patch in frame_meta.patches:
            col, row = atlas_cell(patch.atlas_index, columns)
            sheet.paste(source.crop(patch.box), (col * tile_size, row * tile_size))

        if should_report(position, total):
            progress.span("Generating tile atlas", 72, 84, position + 1, total,
                          f"{position + 1}/{total}")

    logger.info("Delta atlas: %dx%d cells (%dx%d px) for %d patch(es).",
                columns, rows, sheet.width, sheet.height, deltas.patch_count)
    return DeltaAtlas(image=sheet, columns=columns, rows=rows,
                      patch_count=deltas.patch_count, tile_size=tile_size)
