"""
Tests for delta atlas layout and packing.
"""

from __future__ import annotations

import math

import pytest

from helpers import FakeCompositor, solid, tracks_for
from spritedelta.analysis import analyze_static_regions
from spritedelta.atlas import atlas_cell, atlas_geometry, pack_delta_atlas
from spritedelta.delta import encode_tile_deltas
from spritedelta.types import OutputSize

CLEAR = (0, 0, 0, 0)


def _pack(frames, size, tile_size):
    fake = FakeCompositor(dict(enumerate(frames)))
    tracks = tracks_for(len(frames))
    analysis = analyze_static_regions(tracks, list(range(len(frames))), size, 0, fake)
    deltas = encode_tile_deltas(tracks, analysis, tile_size, 0, fake)
    fake.calls.clear()
    atlas = pack_delta_atlas(tracks, analysis, deltas, tile_size, fake)
    return atlas, deltas, fake


class TestAtlasGeometry:
    @pytest.mark.parametrize("n,expected", [
        (0, (0, 0)), (1, (1, 1)), (2, (2, 1)), (3, (2, 2)), (4, (2, 2)),
        (5, (3, 2)), (9, (3, 3)), (10, (4, 3)),
    ])
    def test_known_values(self, n, expected):
        assert atlas_geometry(n) == expected

    def test_every_count_fits(self):
        for n in range(1, 300):
            columns, rows = atlas_geometry(n)
            assert columns == math.ceil(math.sqrt(n))
            assert columns * rows >= n
            assert columns * (rows - 1) < n

    def test_cell(self):
        assert atlas_cell(0, 3) == (0, 0)
        assert atlas_cell(5, 3) == (2, 1)
        assert atlas_cell(6, 3) == (0, 2)


class TestPackDeltaAtlas:
    def test_no_patches(self):
        img = solid((8, 8), (3, 3, 3, 255))
        atlas, deltas, fake = _pack([img, img.copy()], OutputSize(8, 8), 8)
        assert atlas is None
        assert fake.calls == []

    def test_cells_hold_patch_pixels(self):
        colors = [(255, 0, 0, 255), (0, 255, 0, 255), (0, 0, 255, 255)]
        frames = [solid((8, 8), CLEAR)] + [solid((8, 8), c) for c in colors]
        atlas, deltas, fake = _pack(frames, OutputSize(8, 8), 8)
        assert (atlas.columns, atlas.rows, atlas.patch_count) == (2, 2, 3)
        assert atlas.size == (16, 16)
        assert atlas.image.getpixel((0, 0)) == colors[0]
        assert atlas.image.getpixel((8, 0)) == colors[1]
        assert atlas.image.getpixel((0, 8)) == colors[2]
        assert atlas.image.getpixel((8, 8)) == CLEAR

    def test_frames_without_patches_not_recomposited(self):
        frames = [solid((8, 8), CLEAR), solid((8, 8), CLEAR),
                  solid((8, 8), (1, 2, 3, 255))]
        atlas, deltas, fake = _pack(frames, OutputSize(8, 8), 8)
        assert [c[0] for c in fake.calls] == [2]

    def test_edge_patch_in_top_left_of_cell(self):
        size = OutputSize(12, 4)
        moved = solid((12, 4), CLEAR)
        moved.paste((9, 9, 9, 255), (8, 0, 12, 4))
        atlas, deltas, fake = _pack([solid((12, 4), CLEAR), moved], size, 8)
        (patch,) = deltas.frames[1].patches
        assert (patch.w, patch.h) == (4, 4)
        assert atlas.image.size == (8, 8)
        assert atlas.image.getpixel((3, 3)) == (9, 9, 9, 255)
        assert atlas.image.getpixel((4, 4)) == CLEAR
