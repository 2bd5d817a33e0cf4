"""
Test helpers shared across modules: a scripted compositor, image factories
and a project-file writer.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import yaml
from PIL import Image

from spritedelta.compositor import FrameCompositor
from spritedelta.types import CompositedFrame, OutputSize, SpriteFrame, SpriteTrack


class FakeCompositor(FrameCompositor):
    """Compositor serving pre-rendered images keyed by timeline index.

    ``None`` entries (and missing keys) simulate frames that fail to
    composite.  Images are returned as-is at their natural size; with an
    explicit output size they are pasted onto a transparent canvas.
    Every call is recorded in ``calls``.
    """

    name = "fake"

    def __init__(self, frames: dict[int, Optional[Image.Image]]) -> None:
        self.frames = frames
        self.calls: list[tuple[int, Optional[OutputSize]]] = []

    def composite(
        self,
        tracks: Sequence[SpriteTrack],
        index: int,
        output_size: Optional[OutputSize] = None,
    ) -> Optional[CompositedFrame]:
        self.calls.append((index, output_size))
        img = self.frames.get(index)
        if img is None:
            return None
        if output_size is not None and img.size != output_size.as_tuple():
            canvas = Image.new("RGBA", output_size.as_tuple(), (0, 0, 0, 0))
            canvas.paste(img, (0, 0))
            img = canvas
        return CompositedFrame(index=index, image=img.copy())


def solid(size: tuple[int, int], color: tuple[int, int, int, int]) -> Image.Image:
    return Image.new("RGBA", size, color)


def tracks_for(n: int) -> list[SpriteTrack]:
    """A single visible track with *n* enabled (image-less) frames.

    Enough for candidate selection when a FakeCompositor does the drawing.
    """
    return [SpriteTrack(name="t", frames=[SpriteFrame() for _ in range(n)])]


def write_project(directory: Path, frames: Sequence[Image.Image], name: str = "dot",
                  fps: int = 12) -> Path:
    """Save *frames* as PNGs and write a one-track project file next to them."""
    frame_dir = directory / "frames"
    frame_dir.mkdir(parents=True, exist_ok=True)
    entries = []
    for i, img in enumerate(frames):
        img.save(frame_dir / f"frame_{i:03d}.png")
        entries.append({"image": f"frames/frame_{i:03d}.png"})
    project = {"name": name, "fps": fps, "tracks": [{"name": "main", "frames": entries}]}
    path = directory / f"{name}.yaml"
    path.write_text(yaml.safe_dump(project, sort_keys=False), encoding="utf-8")
    return path
