"""
Sprite project files.

A project is a YAML (or JSON) document listing the animation's tracks,
top-most first.  Frame images are resolved relative to the project file::

    name: hero-idle
    fps: 12
    tracks:
      - name: body
        visible: true
        loop: false
        opacity: 100
        frames:
          - image: frames/body_000.png
            offset: [0, 0]
          - image: frames/body_001.png
            disabled: true
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from PIL import Image, UnidentifiedImageError

from spritedelta.exceptions import ProjectError
from spritedelta.types import SpriteFrame, SpriteTrack

logger = logging.getLogger(__name__)


@dataclass
class SpriteProject:
    name: str
    fps: float = 12
    tracks: list[SpriteTrack] = field(default_factory=list)


def _parse_offset(value: Any, where: str) -> tuple[int, int]:
    if value is None:
        return (0, 0)
    if isinstance(value, dict):
        value = (value.get("x", 0), value.get("y", 0))
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ProjectError(f"{where}: offset must be [x, y], got {value!r}")
    try:
        return (int(value[0]), int(value[1]))
    except (TypeError, ValueError) as exc:
        raise ProjectError(f"{where}: invalid offset {value!r}") from exc


def _load_image(path: Path, where: str) -> Image.Image:
    try:
        with Image.open(path) as img:
            return img.convert("RGBA")
    except FileNotFoundError as exc:
        raise ProjectError(f"{where}: image not found: {path}") from exc
    except (OSError, UnidentifiedImageError) as exc:
        raise ProjectError(f"{where}: cannot read image {path}: {exc}") from exc


def _parse_frame(raw: Any, base_dir: Path, where: str) -> SpriteFrame:
    if not isinstance(raw, dict):
        raise ProjectError(f"{where}: frame entry must be a mapping")
    image = None
    if raw.get("image"):
        image = _load_image(base_dir / raw["image"], where)
    return SpriteFrame(
        image=image,
        offset=_parse_offset(raw.get("offset"), where),
        disabled=bool(raw.get("disabled", False)),
        name=str(raw.get("name", "")),
    )


def _parse_track(raw: Any, base_dir: Path, position: int) -> SpriteTrack:
    if not isinstance(raw, dict):
        raise ProjectError(f"track {position}: entry must be a mapping")
    name = str(raw.get("name", f"track-{position}"))
    frames_raw = raw.get("frames") or []
    if not isinstance(frames_raw, list):
        raise ProjectError(f"track {name!r}: frames must be a list")
    frames = [
        _parse_frame(f, base_dir, f"track {name!r} frame {i}")
        for i, f in enumerate(frames_raw)
    ]
    return SpriteTrack(
        name=name,
        frames=frames,
        visible=bool(raw.get("visible", True)),
        loop=bool(raw.get("loop", False)),
        opacity=float(raw.get("opacity", 100)),
    )


def parse_project(data: Any, base_dir: Path, default_name: str = "sprite") -> SpriteProject:
    """Build a SpriteProject from an already-decoded document."""
    if not isinstance(data, dict):
        raise ProjectError("Project document must be a mapping")
    tracks_raw = data.get("tracks") or []
    if not isinstance(tracks_raw, list):
        raise ProjectError("'tracks' must be a list")
    tracks = [_parse_track(t, base_dir, i) for i, t in enumerate(tracks_raw)]
    try:
        fps = float(data.get("fps", 12))
    except (TypeError, ValueError) as exc:
        raise ProjectError(f"Invalid fps: {data.get('fps')!r}") from exc
    return SpriteProject(name=str(data.get("name") or default_name), fps=fps, tracks=tracks)


def load_project(path: Path | str) -> SpriteProject:
    """Load a project file and every image it references."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProjectError(f"Cannot read project file {path}: {exc}") from exc
    try:
        # YAML is a superset of JSON, so one loader covers both.
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ProjectError(f"Invalid project file {path}: {exc}") from exc

    project = parse_project(data, path.parent, default_name=path.stem)
    logger.info("Loaded project %r: %d track(s), %d frame(s) max.",
                project.name, len(project.tracks),
                max((len(t.frames) for t in project.tracks), default=0))
    return project
