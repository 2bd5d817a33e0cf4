"""
Frame compositors.

A compositor renders one timeline index of a multi-track animation into
a single RGBA raster.  The export pipeline only depends on the abstract
``FrameCompositor`` interface; ``LayerCompositor`` is the Pillow-based
implementation used by the CLI and the test-suite.

Compositing rules for ``LayerCompositor``:
    * tracks are listed top-most first and drawn bottom-most first;
    * hidden and empty tracks are ignored;
    * a track contributes the frame chosen by ``track_frame_index``
      when that frame has an image and is not disabled;
    * each layer is alpha-composited at its offset, with its alpha
      scaled by ``opacity / 100``, and clipped to the canvas.
"""

from __future__ import annotations

import abc
import logging
from typing import Optional, Sequence

from PIL import Image

from spritedelta.exceptions import CompositeError
from spritedelta.types import CompositedFrame, OutputSize, SpriteFrame, SpriteTrack

logger = logging.getLogger(__name__)


def track_frame_index(track: SpriteTrack, index: int) -> Optional[int]:
    """Return the frame of *track* shown at timeline *index*, or None.

    Shorter tracks either wrap around (``loop``) or stop contributing.
    """
    n = len(track.frames)
    if n == 0:
        return None
    if index < n:
        return index
    if track.loop:
        return index % n
    return None


class FrameCompositor(abc.ABC):
    """Abstract interface that every compositor must implement."""

    name: str = "abstract"

    @abc.abstractmethod
    def composite(
        self,
        tracks: Sequence[SpriteTrack],
        index: int,
        output_size: Optional[OutputSize] = None,
    ) -> Optional[CompositedFrame]:
        """Render timeline *index* at *output_size*.

        When *output_size* is None the natural bounds of the contributing
        frames are used.  Returns None for empty or out-of-range frames.
        """


class LayerCompositor(FrameCompositor):
    """Pillow compositor drawing each track's frame as one layer."""

    name = "layer"

    def composite(
        self,
        tracks: Sequence[SpriteTrack],
        index: int,
        output_size: Optional[OutputSize] = None,
    ) -> Optional[CompositedFrame]:
        if index < 0:
            raise CompositeError(f"Timeline index must be >= 0, got {index}")

        layers: list[tuple[SpriteFrame, float]] = []
        for track in reversed(list(tracks)):
            if not track.visible or not track.frames:
                continue
            idx = track_frame_index(track, index)
            if idx is None:
                continue
            frame = track.frames[idx]
            if frame.image is None or frame.disabled:
                continue
            layers.append((frame, track.opacity))

        if not layers:
            return None

        if output_size is not None:
            width, height = output_size.width, output_size.height
        else:
            width = height = 0
            for frame, _ in layers:
                ox, oy = frame.offset
                width = max(width, frame.image.width + ox)
                height = max(height, frame.image.height + oy)

        if width <= 0 or height <= 0:
            return None

        canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        for frame, opacity in layers:
            layer = _apply_opacity(frame.image.convert("RGBA"), opacity)
            _composite_clipped(canvas, layer, frame.offset)

        logger.debug("Composited index %d from %d layer(s) at %dx%d",
                     index, len(layers), width, height)
        return CompositedFrame(index=index, image=canvas)


def _apply_opacity(layer: Image.Image, opacity: float) -> Image.Image:
    """Scale the alpha band of *layer* by ``opacity / 100``."""
    factor = max(0.0, min(100.0, float(opacity))) / 100.0
    if factor >= 1.0:
        return layer
    alpha = layer.getchannel("A").point(lambda a: int(round(a * factor)))
    layer = layer.copy()
    layer.putalpha(alpha)
    return layer


def _composite_clipped(canvas: Image.Image, layer: Image.Image,
                       offset: tuple[int, int]) -> None:
    """Alpha-composite *layer* onto *canvas* at *offset*, clipping both ways.

    ``Image.alpha_composite`` rejects negative destinations, so the part
    of the layer left of / above the canvas is cropped away first.
    """
    ox, oy = int(offset[0]), int(offset[1])
    src_left = max(0, -ox)
    src_top = max(0, -oy)
    dest_x = max(0, ox)
    dest_y = max(0, oy)
    src_right = min(layer.width, canvas.width - ox)
    src_bottom = min(layer.height, canvas.height - oy)
    if src_right <= src_left or src_bottom <= src_top:
        return
    clipped = layer.crop((src_left, src_top, src_right, src_bottom))
    canvas.alpha_composite(clipped, dest=(dest_x, dest_y))
