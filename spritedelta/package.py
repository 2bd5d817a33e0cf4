"""
Playback package writers and reader.

A package holds:

    base.<ext>                 static background layer
    delta-spritesheet.<ext>    tile atlas (absent when metadata "delta" is null)
    metadata.json              playback contract
    GUIDE.md                   optional usage guide

Builders own raster encoding and file naming; they never see pipeline
internals beyond these four artifacts.
"""

from __future__ import annotations

import abc
import io
import json
import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from spritedelta.config import ImageFormat
from spritedelta.exceptions import PackageError
from spritedelta.metadata import GUIDE_FILE, METADATA_FILE, SpriteMetadata

logger = logging.getLogger(__name__)


def encode_image(image: Image.Image, fmt: ImageFormat, quality: float) -> bytes:
    """Encode *image* to PNG (lossless) or WebP (``quality`` in 0.1 -- 1.0)."""
    buf = io.BytesIO()
    rgba = image.convert("RGBA")
    if fmt == ImageFormat.WEBP:
        rgba.save(buf, format="WEBP", quality=int(round(quality * 100)), method=4)
    else:
        rgba.save(buf, format="PNG")
    return buf.getvalue()


@dataclass
class PackageArtifacts:
    """Everything a builder needs to write one package."""
    base_image: Image.Image
    atlas_image: Optional[Image.Image]
    metadata: SpriteMetadata
    guide: Optional[str] = None
    image_format: ImageFormat = ImageFormat.PNG
    image_quality: float = 0.9

    def files(self) -> dict[str, bytes]:
        """Encoded package members keyed by file name, in archive order."""
        if (self.atlas_image is None) != (self.metadata.delta is None):
            raise PackageError("Delta atlas and metadata 'delta' entry disagree.")
        members = {
            self.metadata.base_file: encode_image(
                self.base_image, self.image_format, self.image_quality),
        }
        if self.atlas_image is not None:
            members[self.metadata.delta.file] = encode_image(
                self.atlas_image, self.image_format, self.image_quality)
        members[METADATA_FILE] = self.metadata.to_json().encode("utf-8")
        if self.guide is not None:
            members[GUIDE_FILE] = self.guide.encode("utf-8")
        return members


class PackageBuilder(abc.ABC):
    """Abstract interface for package writers."""

    @abc.abstractmethod
    def build(self, artifacts: PackageArtifacts) -> Path:
        """Write the package and return its path.  Raises PackageError."""


class ZipPackageBuilder(PackageBuilder):
    """Write ``<project>-optimized.zip`` (DEFLATE, level 9)."""

    def __init__(self, output_dir: Path | str, project_name: str) -> None:
        self.output_dir = Path(output_dir)
        self.project_name = project_name

    @property
    def output_path(self) -> Path:
        return self.output_dir / f"{self.project_name}-optimized.zip"

    def build(self, artifacts: PackageArtifacts) -> Path:
        members = artifacts.files()
        path = self.output_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED,
                                 compresslevel=9) as zf:
                for name, data in members.items():
                    zf.writestr(name, data)
        except OSError as exc:
            raise PackageError(f"Cannot write package: {exc}", str(path)) from exc
        logger.info("Wrote %s (%d files, %d bytes).",
                    path, len(members), path.stat().st_size)
        return path


class DirectoryPackageBuilder(PackageBuilder):
    """Write the package members as loose files into a directory."""

    def __init__(self, output_dir: Path | str) -> None:
        self.output_dir = Path(output_dir)

    def build(self, artifacts: PackageArtifacts) -> Path:
        members = artifacts.files()
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            for name, data in members.items():
                (self.output_dir / name).write_bytes(data)
        except OSError as exc:
            raise PackageError(f"Cannot write package: {exc}",
                               str(self.output_dir)) from exc
        logger.info("Wrote %d files to %s.", len(members), self.output_dir)
        return self.output_dir


# ---------------------------------------------------------------------------
# Reading packages back
# ---------------------------------------------------------------------------

@dataclass
class LoadedPackage:
    base_image: Image.Image
    atlas_image: Optional[Image.Image]
    metadata: SpriteMetadata
    guide: Optional[str] = None


def _decode(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img.convert("RGBA")


def _read_members(path: Path) -> dict[str, bytes]:
    if path.is_dir():
        return {p.name: p.read_bytes() for p in path.iterdir() if p.is_file()}
    with zipfile.ZipFile(path) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


def load_package(path: Path | str) -> LoadedPackage:
    """Read a zip or directory package written by a PackageBuilder."""
    path = Path(path)
    try:
        members = _read_members(path)
    except (OSError, zipfile.BadZipFile) as exc:
        raise PackageError(f"Cannot read package: {exc}", str(path)) from exc

    if METADATA_FILE not in members:
        raise PackageError(f"{METADATA_FILE} missing from package", str(path))
    try:
        metadata = SpriteMetadata.from_dict(json.loads(members[METADATA_FILE]))
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        raise PackageError(f"Invalid {METADATA_FILE}: {exc}", str(path)) from exc

    try:
        base = _decode(members[metadata.base_file])
        atlas = None
        if metadata.delta is not None:
            atlas = _decode(members[metadata.delta.file])
    except KeyError as exc:
        raise PackageError(f"Package member {exc} missing", str(path)) from exc
    except (OSError, UnidentifiedImageError) as exc:
        raise PackageError(f"Cannot decode package image: {exc}", str(path)) from exc

    guide = members.get(GUIDE_FILE)
    return LoadedPackage(
        base_image=base,
        atlas_image=atlas,
        metadata=metadata,
        guide=guide.decode("utf-8") if guide is not None else None,
    )
