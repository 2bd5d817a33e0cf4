"""
Export configuration and option normalisation.

Every user-facing option is clamped into its legal range instead of being
rejected, so a configuration object is always usable once constructed.
Options may be given in code, as a mapping, or in a YAML file.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from spritedelta.exceptions import ConfigError
from spritedelta.types import OutputSize

THRESHOLD_MIN = 0
THRESHOLD_MAX = 20
TILE_SIZE_MIN = 8
TILE_SIZE_MAX = 128
TILE_SIZE_DEFAULT = 32
QUALITY_MIN = 0.1
QUALITY_MAX = 1.0
QUALITY_DEFAULT = 0.9


class ImageFormat(enum.Enum):
    """Raster encoding used for the base image and delta atlas."""
    PNG = "png"
    WEBP = "webp"

    @property
    def extension(self) -> str:
        return self.value


class TargetFramework(enum.Enum):
    """Runtime the package is meant for.  Only affects the guide text."""
    CANVAS = "canvas"
    PHASER = "phaser"
    PIXI = "pixi"
    CUSTOM = "custom"


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def clamp_threshold(value: Any) -> int:
    """Floor and clamp to [0, 20]; anything non-numeric becomes 0."""
    if not _is_finite_number(value):
        return THRESHOLD_MIN
    return max(THRESHOLD_MIN, min(THRESHOLD_MAX, math.floor(float(value))))


def clamp_tile_size(value: Any) -> int:
    """Round half up and clamp to [8, 128]; anything non-numeric becomes 32."""
    if not _is_finite_number(value):
        return TILE_SIZE_DEFAULT
    rounded = math.floor(float(value) + 0.5)
    return max(TILE_SIZE_MIN, min(TILE_SIZE_MAX, rounded))


def normalize_image_format(value: Any) -> ImageFormat:
    if isinstance(value, ImageFormat):
        return value
    if isinstance(value, str) and value.strip().lower() == "webp":
        return ImageFormat.WEBP
    return ImageFormat.PNG


def clamp_image_quality(value: Any) -> float:
    """Clamp encoder quality to [0.1, 1.0]; anything non-numeric becomes 0.9."""
    if not _is_finite_number(value):
        return QUALITY_DEFAULT
    return max(QUALITY_MIN, min(QUALITY_MAX, float(value)))


def normalize_target(value: Any) -> TargetFramework:
    if isinstance(value, TargetFramework):
        return value
    try:
        return TargetFramework(str(value).strip().lower())
    except ValueError:
        return TargetFramework.CUSTOM


def normalize_frame_size(width: Any, height: Any) -> OutputSize | None:
    """Floor an explicit frame size.

    Returns None (meaning "resolve automatically") when either dimension
    is non-finite or smaller than 1 after flooring.
    """
    if not (_is_finite_number(width) and _is_finite_number(height)):
        return None
    w = math.floor(float(width))
    h = math.floor(float(height))
    if w < 1 or h < 1:
        return None
    return OutputSize(w, h)


def parse_frame_size(text: str) -> OutputSize | None:
    """Parse ``"WxH"`` (e.g. ``"64x48"``) into an OutputSize."""
    parts = text.lower().replace(" ", "").split("x")
    if len(parts) != 2:
        raise ConfigError(f"Frame size must look like WIDTHxHEIGHT, got {text!r}")
    try:
        return normalize_frame_size(float(parts[0]), float(parts[1]))
    except ValueError as exc:
        raise ConfigError(f"Invalid frame size {text!r}: {exc}") from exc


@dataclass
class ExportConfig:
    """Full configuration for one optimized export.

    Values are normalised in ``__post_init__``; the stored fields are
    always within range.
    """
    threshold: int = 0
    tile_size: int = TILE_SIZE_DEFAULT
    frame_size: OutputSize | None = None   # None = auto-resolve from frames
    image_format: ImageFormat = ImageFormat.PNG
    image_quality: float = QUALITY_DEFAULT
    target: TargetFramework = TargetFramework.CANVAS
    fps: float = 12
    include_guide: bool = True

    def __post_init__(self) -> None:
        self.threshold = clamp_threshold(self.threshold)
        self.tile_size = clamp_tile_size(self.tile_size)
        self.image_format = normalize_image_format(self.image_format)
        self.image_quality = clamp_image_quality(self.image_quality)
        self.target = normalize_target(self.target)
        if self.frame_size is not None:
            self.frame_size = normalize_frame_size(
                self.frame_size.width, self.frame_size.height,
            )
        if not _is_finite_number(self.fps) or float(self.fps) <= 0:
            raise ConfigError(f"fps must be a positive number, got {self.fps!r}")

    @property
    def base_file(self) -> str:
        return f"base.{self.image_format.extension}"

    @property
    def delta_file(self) -> str:
        return f"delta-spritesheet.{self.image_format.extension}"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ExportConfig:
        """Build a config from a mapping using snake_case or camelCase keys."""
        aliases = {
            "tileSize": "tile_size",
            "frameSize": "frame_size",
            "imageFormat": "image_format",
            "imageQuality": "image_quality",
            "includeGuide": "include_guide",
        }
        known = {
            "threshold", "tile_size", "frame_size", "image_format",
            "image_quality", "target", "fps", "include_guide",
        }
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name not in known:
                raise ConfigError(f"Unknown export option: {key!r}")
            kwargs[name] = value

        frame_size = kwargs.get("frame_size")
        if isinstance(frame_size, Mapping):
            kwargs["frame_size"] = normalize_frame_size(
                frame_size.get("width"), frame_size.get("height"),
            )
        elif isinstance(frame_size, str):
            kwargs["frame_size"] = parse_frame_size(frame_size)
        elif frame_size is not None and not isinstance(frame_size, OutputSize):
            raise ConfigError(f"Unsupported frame_size value: {frame_size!r}")

        if "include_guide" in kwargs:
            kwargs["include_guide"] = bool(kwargs["include_guide"])
        return cls(**kwargs)


def load_export_config(path: Path | str, **defaults: Any) -> ExportConfig:
    """Read an ExportConfig from a YAML (or JSON) file.

    Keyword *defaults* (e.g. ``fps=24``) apply to options the file leaves unset.
    """
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping.")
    return ExportConfig.from_mapping({**defaults, **raw})
