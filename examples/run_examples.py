"""
Build the demo sprite projects and export them with spritedelta.

Usage:
    python examples/run_examples.py
"""

from __future__ import annotations

import math
import subprocess
import sys
from pathlib import Path

import yaml
from PIL import Image, ImageDraw

EXAMPLES_DIR = Path(__file__).parent
BUILD_DIR = EXAMPLES_DIR / "build"


def _bouncing_ball(root: Path, steps: int) -> Path:
    """Static sky background track plus a ball track bouncing across it."""
    frames_dir = root / "frames"
    frames_dir.mkdir(parents=True, exist_ok=True)

    sky = Image.new("RGBA", (128, 96), (120, 180, 230, 255))
    draw = ImageDraw.Draw(sky)
    draw.rectangle((0, 80, 127, 95), fill=(70, 140, 60, 255))
    sky.save(frames_dir / "sky.png")

    ball_frames = []
    for i in range(steps):
        img = Image.new("RGBA", (16, 16), (0, 0, 0, 0))
        ImageDraw.Draw(img).ellipse((0, 0, 15, 15), fill=(220, 60, 40, 255))
        name = f"ball_{i:03d}.png"
        img.save(frames_dir / name)
        x = int(4 + i * (108 / max(1, steps - 1)))
        y = int(64 - abs(math.sin(i / steps * 2 * math.pi)) * 56)
        ball_frames.append({"image": f"frames/{name}", "offset": [x, y]})

    project = {
        "name": "bouncing-ball",
        "fps": 12,
        "tracks": [
            {"name": "ball", "frames": ball_frames},
            {"name": "sky", "loop": True, "frames": [{"image": "frames/sky.png"}]},
        ],
    }
    path = root / "bouncing-ball.yaml"
    path.write_text(yaml.safe_dump(project, sort_keys=False), encoding="utf-8")
    return path


def main() -> None:
    examples = [
        ("bouncing ball (png)", 24, []),
        ("bouncing ball (webp, 16px tiles)", 24,
         ["--format", "webp", "--tile-size", "16", "--dir"]),
    ]

    for label, steps, extra in examples:
        project = _bouncing_ball(BUILD_DIR / "src", steps)
        print(f"Exporting {label} -> {BUILD_DIR}")
        cmd = [
            sys.executable, "-m", "spritedelta",
            "export", str(project),
            "-o", str(BUILD_DIR),
            "-q",
            *extra,
        ]
        subprocess.run(cmd, check=True)
        print("  Done")


if __name__ == "__main__":
    main()
