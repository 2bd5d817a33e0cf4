"""
Core data structures shared by every pipeline stage.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from PIL import Image


@dataclass(frozen=True)
class OutputSize:
    """Export canvas size in pixels.  Both dimensions are >= 1."""
    width: int
    height: int

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def as_tuple(self) -> tuple[int, int]:
        return (self.width, self.height)

    def to_dict(self) -> dict[str, int]:
        """Size in the ``{"w": ..., "h": ...}`` form used by metadata.json."""
        return {"w": self.width, "h": self.height}


@dataclass
class SpriteFrame:
    """One cell of a track.  ``image`` may be missing for placeholder frames."""
    image: Image.Image | None = None
    offset: tuple[int, int] = (0, 0)
    disabled: bool = False
    name: str = ""


@dataclass
class SpriteTrack:
    """A layer of the animation.  Track lists are ordered top-most first."""
    name: str = ""
    frames: list[SpriteFrame] = field(default_factory=list)
    visible: bool = True
    loop: bool = False
    opacity: float = 100.0        # 0 -- 100


@dataclass(frozen=True)
class CompositedFrame:
    """Result of compositing one timeline index."""
    index: int                    # TimelineIndex that was rendered
    image: Image.Image            # RGBA

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def pixels(self) -> np.ndarray:
        """Return the raster as a read-only ``(height, width, 4)`` uint8 array."""
        arr = np.array(self.image.convert("RGBA"), dtype=np.uint8)
        arr.flags.writeable = False
        return arr


@dataclass(frozen=True)
class Patch:
    """One changed tile of one frame, stored once in the delta atlas."""
    atlas_index: int
    x: int
    y: int
    w: int
    h: int

    @property
    def box(self) -> tuple[int, int, int, int]:
        """PIL crop box (left, upper, right, lower) of the source tile."""
        return (self.x, self.y, self.x + self.w, self.y + self.h)

    def to_dict(self) -> dict[str, int]:
        return {
            "atlasIndex": self.atlas_index,
            "x": self.x,
            "y": self.y,
            "w": self.w,
            "h": self.h,
        }


@dataclass(frozen=True)
class FramePatchList:
    """Patches of one exported frame.

    ``index`` is the 0-based position in the resolved candidate sequence,
    not the TimelineIndex.
    """
    index: int
    patches: tuple[Patch, ...] = ()

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "patches": [p.to_dict() for p in self.patches],
        }


@dataclass(frozen=True)
class DeltaAtlas:
    """Packed raster holding every patch of every frame."""
    image: Image.Image
    columns: int
    rows: int
    patch_count: int
    tile_size: int

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size
