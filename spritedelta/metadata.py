"""
Playback metadata (``metadata.json``) and the companion usage guide.

The JSON layout is a fixed contract with runtime players::

    {
      "meta":   {"format", "version", "fps", "sourceSize", "frameCount", "target"},
      "base":   {"file", "size"},
      "delta":  {"file", "tileSize", "atlas": {"columns", "rows", "patchCount"}} | null,
      "frames": [{"index", "patches": [{"atlasIndex", "x", "y", "w", "h"}]}]
    }

Frame ``index`` values are positions in the exported sequence, not the
original timeline indices.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from spritedelta.analysis import StaticAnalysis
from spritedelta.config import ExportConfig, TargetFramework
from spritedelta.delta import TileDeltaResult
from spritedelta.types import DeltaAtlas, FramePatchList, OutputSize, Patch

FORMAT_TAG = "artkit-optimized-sprite"
FORMAT_VERSION = "1.0"
METADATA_FILE = "metadata.json"
GUIDE_FILE = "GUIDE.md"


def _json_number(value: float) -> int | float:
    """Emit integral floats as ints so ``12.0`` fps serialises as ``12``."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


@dataclass(frozen=True)
class DeltaDescriptor:
    file: str
    tile_size: int
    columns: int
    rows: int
    patch_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "tileSize": self.tile_size,
            "atlas": {
                "columns": self.columns,
                "rows": self.rows,
                "patchCount": self.patch_count,
            },
        }


@dataclass(frozen=True)
class SpriteMetadata:
    fps: float
    source_size: OutputSize
    frame_count: int
    target: str
    base_file: str
    delta: Optional[DeltaDescriptor]
    frames: tuple[FramePatchList, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "meta": {
                "format": FORMAT_TAG,
                "version": FORMAT_VERSION,
                "fps": _json_number(self.fps),
                "sourceSize": self.source_size.to_dict(),
                "frameCount": self.frame_count,
                "target": self.target,
            },
            "base": {
                "file": self.base_file,
                "size": self.source_size.to_dict(),
            },
            "delta": self.delta.to_dict() if self.delta is not None else None,
            "frames": [f.to_dict() for f in self.frames],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SpriteMetadata:
        """Parse a metadata.json document produced by ``to_dict``."""
        meta = data["meta"]
        if meta.get("format") != FORMAT_TAG:
            raise ValueError(f"Not an optimized sprite package: {meta.get('format')!r}")
        size = OutputSize(meta["sourceSize"]["w"], meta["sourceSize"]["h"])
        delta_raw = data.get("delta")
        delta = None
        if delta_raw is not None:
            atlas = delta_raw["atlas"]
            delta = DeltaDescriptor(
                file=delta_raw["file"],
                tile_size=delta_raw["tileSize"],
                columns=atlas["columns"],
                rows=atlas["rows"],
                patch_count=atlas["patchCount"],
            )
        frames = tuple(
            FramePatchList(
                index=f["index"],
                patches=tuple(
                    Patch(p["atlasIndex"], p["x"], p["y"], p["w"], p["h"])
                    for p in f["patches"]
                ),
            )
            for f in data["frames"]
        )
        return cls(
            fps=meta["fps"],
            source_size=size,
            frame_count=meta["frameCount"],
            target=meta["target"],
            base_file=data["base"]["file"],
            delta=delta,
            frames=frames,
        )


def build_metadata(
    analysis: StaticAnalysis,
    deltas: TileDeltaResult,
    atlas: Optional[DeltaAtlas],
    config: ExportConfig,
) -> SpriteMetadata:
    """Aggregate the stage results into the playback contract."""
    delta = None
    if atlas is not None:
        delta = DeltaDescriptor(
            file=config.delta_file,
            tile_size=atlas.tile_size,
            columns=atlas.columns,
            rows=atlas.rows,
            patch_count=atlas.patch_count,
        )
    return SpriteMetadata(
        fps=config.fps,
        source_size=analysis.size,
        frame_count=len(analysis.indices),
        target=config.target.value,
        base_file=config.base_file,
        delta=delta,
        frames=deltas.frames,
    )


# ---------------------------------------------------------------------------
# GUIDE.md
# ---------------------------------------------------------------------------

_ENGINE_NAMES = {
    TargetFramework.PHASER: "Phaser 3",
    TargetFramework.PIXI: "PixiJS",
}


def _canvas_example(metadata: SpriteMetadata) -> str:
    src = metadata.source_size
    if metadata.delta is None:
        return (
            "const img = new Image();\n"
            f"img.src = '{metadata.base_file}';\n"
            "img.onload = () => ctx.drawImage(img, 0, 0);"
        )
    return f"""const canvas = document.getElementById('game');
const ctx = canvas.getContext('2d');
const baseImg = new Image();
const deltaImg = new Image();

async function load() {{
  const meta = await fetch('{METADATA_FILE}').then((r) => r.json());
  baseImg.src = meta.base.file;
  deltaImg.src = meta.delta.file;
  await Promise.all([
    new Promise((resolve) => {{ baseImg.onload = resolve; }}),
    new Promise((resolve) => {{ deltaImg.onload = resolve; }}),
  ]);
  return meta;
}}

function drawFrame(meta, frameIndex) {{
  ctx.clearRect(0, 0, {src.width}, {src.height});
  ctx.drawImage(baseImg, 0, 0);

  const frame = meta.frames[frameIndex];
  if (!frame || !meta.delta) return;

  const tileSize = meta.delta.tileSize;
  const atlasColumns = meta.delta.atlas.columns;
  for (const patch of frame.patches) {{
    const atlasCol = patch.atlasIndex % atlasColumns;
    const atlasRow = Math.floor(patch.atlasIndex / atlasColumns);

    // Patches replace the base pixels underneath; clear before drawing.
    ctx.clearRect(patch.x, patch.y, patch.w, patch.h);
    ctx.drawImage(
      deltaImg,
      atlasCol * tileSize,
      atlasRow * tileSize,
      patch.w,
      patch.h,
      patch.x,
      patch.y,
      patch.w,
      patch.h,
    );
  }}
}}

load().then((meta) => {{
  let frameIndex = 0;
  setInterval(() => {{
    drawFrame(meta, frameIndex);
    frameIndex = (frameIndex + 1) % meta.meta.frameCount;
  }}, 1000 / meta.meta.fps);
}});"""


def generate_guide_markdown(metadata: SpriteMetadata,
                            target: TargetFramework) -> str:
    """Render the GUIDE.md shipped next to metadata.json."""
    src = metadata.source_size
    base_file = metadata.base_file
    delta = metadata.delta
    delta_file = delta.file if delta is not None else "delta-spritesheet.(png|webp)"

    if delta is not None:
        engine = _ENGINE_NAMES.get(target, "custom engines")
        runtime_note = (
            f"For {engine}, keep one static base layer ({base_file}) and blit "
            f"per-frame patches from {delta_file} using {METADATA_FILE}."
        )
        delta_info = (
            f"- **{delta.file}**: Tile atlas for changed pixels only\n"
            f"- Tile size: {delta.tile_size}px\n"
            f"- Atlas: {delta.columns} x {delta.rows} tiles "
            f"({delta.patch_count} patches)"
        )
    else:
        runtime_note = "No delta patches are needed because all frames are identical."
        delta_info = "- No delta atlas (all frames identical)"

    fps = _json_number(metadata.fps)
    return f"""# Optimized Sprite Sheet Guide

## Files
- **{base_file}**: Static base layer ({src.width}x{src.height})
{delta_info}
- **{METADATA_FILE}**: Patch layout and animation config

## How It Works
1. Draw `{base_file}`
2. For each frame, clear and redraw only that frame's changed tile patches from `{delta_file}`
   (patches replace the pixels underneath; they are not alpha-blended onto the base)
3. Repeat at configured FPS

## Animation Config
- **Frame count**: {metadata.frame_count}
- **FPS**: {fps}
- **Source size**: {src.width} x {src.height}

## Runtime Note
{runtime_note}

## Canvas Example

```javascript
{_canvas_example(metadata)}
```

## Metadata Schema

```json
{{
  "meta": {{
    "format": "{FORMAT_TAG}",
    "version": "{FORMAT_VERSION}",
    "fps": <number>,
    "sourceSize": {{ "w": <number>, "h": <number> }},
    "frameCount": <number>,
    "target": "<framework>"
  }},
  "base": {{
    "file": "{base_file}",
    "size": {{ "w": <number>, "h": <number> }}
  }},
  "delta": {{
    "file": "{delta_file}",
    "tileSize": <number>,
    "atlas": {{
      "columns": <number>,
      "rows": <number>,
      "patchCount": <number>
    }}
  }} | null,
  "frames": [
    {{
      "index": 0,
      "patches": [
        {{ "atlasIndex": 0, "x": <number>, "y": <number>, "w": <number>, "h": <number> }}
      ]
    }}
  ]
}}
```

---
*Generated by spritedelta*
"""
