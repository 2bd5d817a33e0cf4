"""
Top-level optimized export pipeline.

    tracks --> candidates --> canvas size --> static analysis
           --> base image --> tile deltas --> delta atlas --> metadata
           --> package builder

Stages run strictly in sequence with one composited frame in memory at
a time.  Nothing outside the returned ``ExportResult`` is touched until a
package builder is invoked, so abandoning a run (for instance by raising
``ExportCancelled`` from the progress callback) needs no cleanup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from PIL import Image

from spritedelta.analysis import (StaticAnalysis, analyze_static_regions,
                                  generate_base_image)
from spritedelta.atlas import pack_delta_atlas
from spritedelta.compositor import FrameCompositor, LayerCompositor
from spritedelta.config import ExportConfig
from spritedelta.delta import TileDeltaResult, encode_tile_deltas
from spritedelta.frames import candidate_indices, resolve_output_size
from spritedelta.metadata import SpriteMetadata, build_metadata, generate_guide_markdown
from spritedelta.package import PackageArtifacts, PackageBuilder, ZipPackageBuilder
from spritedelta.progress import ProgressCallback, ProgressReporter
from spritedelta.types import DeltaAtlas, OutputSize, SpriteTrack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportStats:
    """Size figures for one export, for comparing packers and settings."""
    frame_count: int
    patch_count: int
    static_ratio: float
    atlas_size: tuple[int, int]          # (0, 0) when there is no atlas
    raw_pixel_bytes: int                 # every frame stored as full RGBA
    packed_pixel_bytes: int              # base + atlas as RGBA

    @property
    def compression_ratio(self) -> float:
        return self.raw_pixel_bytes / max(1, self.packed_pixel_bytes)

    def summary(self) -> str:
        return (f"Frames: {self.frame_count}\n"
                f"Patches: {self.patch_count}\n"
                f"Static pixels: {self.static_ratio * 100:.1f}%\n"
                f"Atlas: {self.atlas_size[0]}x{self.atlas_size[1]} px\n"
                f"Raw RGBA: {self.raw_pixel_bytes} B, packed RGBA: "
                f"{self.packed_pixel_bytes} B ({self.compression_ratio:.2f}x)")


@dataclass
class ExportResult:
    """All artifacts of one export, ready for a PackageBuilder."""
    size: OutputSize
    base_image: Image.Image
    atlas: Optional[DeltaAtlas]
    metadata: SpriteMetadata
    timeline_indices: tuple[int, ...]    # TimelineIndex of each metadata frame
    analysis: StaticAnalysis
    deltas: TileDeltaResult

    def stats(self) -> ExportStats:
        frame_bytes = self.size.pixel_count * 4
        atlas_size = self.atlas.size if self.atlas is not None else (0, 0)
        return ExportStats(
            frame_count=len(self.timeline_indices),
            patch_count=self.deltas.patch_count,
            static_ratio=self.analysis.static_ratio,
            atlas_size=atlas_size,
            raw_pixel_bytes=frame_bytes * len(self.timeline_indices),
            packed_pixel_bytes=frame_bytes + atlas_size[0] * atlas_size[1] * 4,
        )


def export_optimized_sprite(
    tracks: Sequence[SpriteTrack],
    config: Optional[ExportConfig] = None,
    compositor: Optional[FrameCompositor] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Optional[ExportResult]:
    """Run every analysis stage.  Returns None when there is nothing to export."""
    config = config or ExportConfig()
    compositor = compositor or LayerCompositor()
    progress = ProgressReporter(on_progress)

    candidates = candidate_indices(tracks)
    if not candidates:
        logger.info("No candidate frames; nothing to export.")
        return None
    progress.report("Preparing frames", 5, f"{len(candidates)} candidates")

    resolution = resolve_output_size(tracks, candidates, compositor,
                                     config.frame_size, progress)
    if resolution is None:
        return None

    analysis = analyze_static_regions(tracks, resolution.indices, resolution.size,
                                      config.threshold, compositor, progress)
    if analysis is None:
        return None

    progress.report("Generating images", 55)
    base_image = generate_base_image(analysis)
    progress.report("Generating images", 60, "Base image ready")

    deltas = encode_tile_deltas(tracks, analysis, config.tile_size,
                                config.threshold, compositor, progress)
    atlas = pack_delta_atlas(tracks, analysis, deltas, config.tile_size,
                             compositor, progress)
    if atlas is not None:
        progress.report("Generating images", 84, "Tile atlas ready")

    progress.report("Building metadata", 86)
    metadata = build_metadata(analysis, deltas, atlas, config)

    logger.info("Export ready: %d frames at %dx%d, %d patch(es).",
                metadata.frame_count, analysis.size.width, analysis.size.height,
                deltas.patch_count)
    return ExportResult(
        size=analysis.size,
        base_image=base_image,
        atlas=atlas,
        metadata=metadata,
        timeline_indices=analysis.indices,
        analysis=analysis,
        deltas=deltas,
    )


def write_optimized_package(
    result: ExportResult,
    builder: PackageBuilder,
    config: Optional[ExportConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Path:
    """Hand the artifacts of *result* to *builder*."""
    config = config or ExportConfig()
    progress = ProgressReporter(on_progress)
    guide = None
    if config.include_guide:
        guide = generate_guide_markdown(result.metadata, config.target)

    progress.report("Packaging", 90, "Compressing...")
    path = builder.build(PackageArtifacts(
        base_image=result.base_image,
        atlas_image=result.atlas.image if result.atlas is not None else None,
        metadata=result.metadata,
        guide=guide,
        image_format=config.image_format,
        image_quality=config.image_quality,
    ))
    progress.report("Done", 100)
    return path


def download_optimized_sprite(
    tracks: Sequence[SpriteTrack],
    project_name: str,
    config: Optional[ExportConfig] = None,
    output_dir: Path | str = ".",
    compositor: Optional[FrameCompositor] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Optional[Path]:
    """Export *tracks* and write ``<project_name>-optimized.zip`` into *output_dir*."""
    config = config or ExportConfig()
    result = export_optimized_sprite(tracks, config, compositor, on_progress)
    if result is None:
        return None
    return write_optimized_package(result, ZipPackageBuilder(output_dir, project_name),
                                   config, on_progress)
