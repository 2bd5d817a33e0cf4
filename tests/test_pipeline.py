"""
End-to-end tests for the export pipeline.
"""

from __future__ import annotations

import zipfile

import numpy as np
import pytest

from helpers import FakeCompositor, solid, tracks_for
from spritedelta import download_optimized_sprite, export_optimized_sprite
from spritedelta.compositor import LayerCompositor
from spritedelta.config import ExportConfig
from spritedelta.exceptions import ExportCancelled
from spritedelta.types import OutputSize, SpriteFrame, SpriteTrack

CLEAR = (0, 0, 0, 0)


class TestNothingToExport:
    def test_no_tracks(self):
        assert export_optimized_sprite([]) is None

    def test_all_frames_disabled(self):
        tracks = [SpriteTrack(name="a", frames=[
            SpriteFrame(image=solid((4, 4), (1, 1, 1, 255)), disabled=True),
        ])]
        assert export_optimized_sprite(tracks) is None

    def test_nothing_composites(self):
        assert export_optimized_sprite(tracks_for(3), compositor=FakeCompositor({})) is None

    def test_download_writes_nothing(self, tmp_dir):
        assert download_optimized_sprite([], "empty", output_dir=tmp_dir) is None
        assert list(tmp_dir.iterdir()) == []


class TestScenarios:
    def test_identical_frames_have_no_delta(self):
        img = solid((2, 2), (40, 50, 60, 255))
        fake = FakeCompositor({0: img, 1: img, 2: img})
        result = export_optimized_sprite(tracks_for(3), ExportConfig(threshold=0), fake)
        assert result.deltas.patch_count == 0
        assert result.atlas is None
        assert result.metadata.delta is None
        assert result.metadata.frame_count == 3
        assert all(f.patches == () for f in result.metadata.frames)
        assert np.array_equal(np.array(result.base_image), np.array(img))

    def test_one_changed_tile(self):
        changed = solid((64, 64), CLEAR)
        changed.paste((255, 0, 0, 255), (0, 0, 32, 32))
        fake = FakeCompositor({0: solid((64, 64), CLEAR), 1: changed})
        result = export_optimized_sprite(tracks_for(2), ExportConfig(tile_size=32), fake)
        assert result.deltas.patch_count == 1
        assert result.metadata.frames[0].patches == ()
        assert result.metadata.frames[1].patches[0].box == (0, 0, 32, 32)
        assert (result.atlas.columns, result.atlas.rows) == (1, 1)

    def test_fractional_frame_size(self):
        frames = {i: solid((10, 10), (i, i, i, 255)) for i in range(2)}
        fake = FakeCompositor(frames)
        cfg = ExportConfig(frame_size=OutputSize(10, 10.7))
        result = export_optimized_sprite(tracks_for(2), cfg, fake)
        assert result.size == OutputSize(10, 10)
        assert all(size == OutputSize(10, 10) for _, size in fake.calls)

    def test_invalid_frame_size_resolves_automatically(self):
        fake = FakeCompositor({0: solid((6, 3), (1, 1, 1, 255))})
        cfg = ExportConfig(frame_size=OutputSize(0, 10))
        result = export_optimized_sprite(tracks_for(1), cfg, fake)
        assert result.size == OutputSize(6, 3)
        assert fake.calls[0] == (0, None)


class TestExportResult:
    def test_dropped_frames_are_not_exported(self):
        fake = FakeCompositor({0: solid((4, 4), CLEAR), 1: None,
                               2: solid((4, 4), (9, 9, 9, 255))})
        result = export_optimized_sprite(tracks_for(3), compositor=fake)
        assert result.timeline_indices == (0, 2)
        assert [f.index for f in result.metadata.frames] == [0, 1]

    def test_disabled_frame_skipped_in_timeline(self, moving_dot_frames):
        frames = [SpriteFrame(image=img) for img in moving_dot_frames[:4]]
        frames[1].disabled = True
        tracks = [SpriteTrack(name="dot", frames=frames)]
        result = export_optimized_sprite(tracks)
        assert result.timeline_indices == (0, 2, 3)
        assert result.metadata.frame_count == 3

    def test_deterministic(self, moving_dot_track):
        a = export_optimized_sprite(moving_dot_track, ExportConfig(tile_size=16))
        b = export_optimized_sprite(moving_dot_track, ExportConfig(tile_size=16))
        assert a.metadata.to_json() == b.metadata.to_json()
        assert np.array_equal(np.array(a.base_image), np.array(b.base_image))
        assert np.array_equal(np.array(a.atlas.image), np.array(b.atlas.image))

    def test_stats(self, moving_dot_track):
        result = export_optimized_sprite(moving_dot_track, ExportConfig(tile_size=32))
        stats = result.stats()
        assert stats.frame_count == 8
        # the dot's path crosses all four tiles and every frame redraws them
        assert stats.patch_count == 32
        assert stats.atlas_size == (192, 192)
        assert stats.raw_pixel_bytes == 64 * 64 * 4 * 8
        assert stats.packed_pixel_bytes == 64 * 64 * 4 + 192 * 192 * 4
        assert 0 < stats.static_ratio < 1
        assert "Patches: 32" in stats.summary()

    def test_uses_layer_compositor_by_default(self, moving_dot_track):
        result = export_optimized_sprite(moving_dot_track)
        assert result.size == OutputSize(64, 64)


class TestProgress:
    def test_monotonic_and_complete(self, tmp_dir, moving_dot_track):
        events = []
        path = download_optimized_sprite(moving_dot_track, "dot", ExportConfig(),
                                         output_dir=tmp_dir, on_progress=events.append)
        percents = [e.percent for e in events]
        assert percents == sorted(percents)
        assert events[0].stage == "Preparing frames"
        assert events[-1].stage == "Done"
        assert events[-1].percent == 100
        stages = {e.stage for e in events}
        assert {"Resolving canvas size", "Analyzing frames", "Generating images",
                "Analyzing tiles", "Generating tile atlas", "Building metadata",
                "Packaging"} <= stages
        assert path == tmp_dir / "dot-optimized.zip"

    def test_cancel_from_callback(self, tmp_dir, moving_dot_track):
        def cancel(event):
            if event.stage == "Analyzing tiles":
                raise ExportCancelled("stopped by user")

        with pytest.raises(ExportCancelled):
            download_optimized_sprite(moving_dot_track, "dot", output_dir=tmp_dir,
                                      on_progress=cancel)
        assert list(tmp_dir.iterdir()) == []


class TestDownload:
    def test_zip_contents(self, tmp_dir, moving_dot_track):
        cfg = ExportConfig(image_format="webp", include_guide=False)
        path = download_optimized_sprite(moving_dot_track, "walk", cfg, tmp_dir,
                                         LayerCompositor())
        with zipfile.ZipFile(path) as zf:
            assert zf.namelist() == ["base.webp", "delta-spritesheet.webp",
                                     "metadata.json"]
