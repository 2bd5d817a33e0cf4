"""
spritedelta -- Delta-compressed sprite-sheet export.

Turns a multi-track frame animation into a static base layer, a packed
atlas of changed tiles, and a JSON playback description.
"""

__version__ = "0.1.0"

from spritedelta.config import ExportConfig, ImageFormat, TargetFramework
from spritedelta.pipeline import (
    ExportResult,
    download_optimized_sprite,
    export_optimized_sprite,
    write_optimized_package,
)
from spritedelta.types import (
    CompositedFrame,
    OutputSize,
    Patch,
    SpriteFrame,
    SpriteTrack,
)

__all__ = [
    "CompositedFrame",
    "ExportConfig",
    "ExportResult",
    "ImageFormat",
    "OutputSize",
    "Patch",
    "SpriteFrame",
    "SpriteTrack",
    "TargetFramework",
    "download_optimized_sprite",
    "export_optimized_sprite",
    "write_optimized_package",
]
