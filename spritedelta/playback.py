"""
Reference player for optimized sprite packages.

Mirrors what a runtime does for every frame: redraw the base layer, then
blit the frame's patches from the atlas.  Patches are not cumulative, so
a frame never depends on the one before it.

Patches are pasted: they replace the base pixels under them rather than
being alpha-composited over them.  A canvas runtime gets the same result
by clearing each patch rectangle before drawing it, as the GUIDE.md
example does; a plain source-over ``drawImage`` would blend
semi-transparent patch pixels with the static base.
"""

from __future__ import annotations

from PIL import Image

from spritedelta.atlas import atlas_cell
from spritedelta.metadata import SpriteMetadata


def render_playback_frame(
    base: Image.Image,
    atlas: Image.Image | None,
    metadata: SpriteMetadata,
    position: int,
) -> Image.Image:
    """Reconstruct exported frame *position* from a package's pieces."""
    if not 0 <= position < len(metadata.frames):
        raise IndexError(f"Frame {position} out of range (0..{len(metadata.frames) - 1})")

    canvas = base.convert("RGBA").copy()
    frame = metadata.frames[position]
    if metadata.delta is None or atlas is None:
        return canvas

    tile = metadata.delta.tile_size
    columns = metadata.delta.columns
    for patch in frame.patches:
        col, row = atlas_cell(patch.atlas_index, columns)
        left, top = col * tile, row * tile
        tile_img = atlas.crop((left, top, left + patch.w, top + patch.h))
        canvas.paste(tile_img, (patch.x, patch.y))
    return canvas


def render_all_frames(base: Image.Image, atlas: Image.Image | None,
                      metadata: SpriteMetadata) -> list[Image.Image]:
    return [render_playback_frame(base, atlas, metadata, i)
            for i in range(len(metadata.frames))]
