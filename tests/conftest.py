"""
Shared fixtures for the spritedelta test suite.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest
from PIL import Image

from spritedelta.types import SpriteFrame, SpriteTrack


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory(prefix="spritedelta_test_") as d:
        yield Path(d)


@pytest.fixture
def moving_dot_frames():
    """Eight 64x64 frames: grey background, a 6x6 black dot moving right."""
    frames = []
    for i in range(8):
        img = Image.new("RGBA", (64, 64), (128, 128, 128, 255))
        x0 = 4 + i * 7
        for x in range(x0, x0 + 6):
            for y in range(29, 35):
                img.putpixel((x, y), (0, 0, 0, 255))
        frames.append(img)
    return frames


@pytest.fixture
def moving_dot_track(moving_dot_frames):
    """The moving dot as a real single-track animation."""
    return [SpriteTrack(
        name="dot",
        frames=[SpriteFrame(image=img) for img in moving_dot_frames],
    )]
