"""
Tests for loading sprite project files.
"""

from __future__ import annotations

import json

import pytest

from helpers import solid, write_project
from spritedelta.exceptions import ProjectError
from spritedelta.project import load_project, parse_project


class TestLoadProject:
    def test_yaml_project(self, tmp_dir, moving_dot_frames):
        path = write_project(tmp_dir, moving_dot_frames, name="dot", fps=8)
        project = load_project(path)
        assert project.name == "dot"
        assert project.fps == 8
        (track,) = project.tracks
        assert track.name == "main"
        assert len(track.frames) == 8
        assert track.frames[0].image.mode == "RGBA"
        assert track.frames[0].image.size == (64, 64)

    def test_json_project(self, tmp_dir):
        solid((3, 3), (1, 2, 3, 255)).save(tmp_dir / "a.png")
        doc = {
            "tracks": [
                {"name": "fx", "visible": False, "loop": True, "opacity": 40,
                 "frames": [{"image": "a.png", "offset": {"x": 2, "y": -1}},
                            {"disabled": True}]},
            ],
        }
        path = tmp_dir / "fx.json"
        path.write_text(json.dumps(doc))
        project = load_project(path)
        assert project.name == "fx"
        assert project.fps == 12
        track = project.tracks[0]
        assert (track.visible, track.loop, track.opacity) == (False, True, 40.0)
        assert track.frames[0].offset == (2, -1)
        assert track.frames[1].image is None
        assert track.frames[1].disabled is True

    def test_missing_image(self, tmp_dir):
        path = tmp_dir / "p.yaml"
        path.write_text("tracks:\n  - frames:\n      - image: nope.png\n")
        with pytest.raises(ProjectError, match="image not found"):
            load_project(path)

    def test_unreadable_image(self, tmp_dir):
        (tmp_dir / "bad.png").write_bytes(b"definitely not a png")
        path = tmp_dir / "p.yaml"
        path.write_text("tracks:\n  - frames:\n      - image: bad.png\n")
        with pytest.raises(ProjectError, match="cannot read image"):
            load_project(path)

    def test_invalid_yaml(self, tmp_dir):
        path = tmp_dir / "p.yaml"
        path.write_text("tracks: [\n")
        with pytest.raises(ProjectError):
            load_project(path)

    def test_missing_file(self, tmp_dir):
        with pytest.raises(ProjectError):
            load_project(tmp_dir / "gone.yaml")


class TestParseProject:
    def test_not_a_mapping(self, tmp_dir):
        with pytest.raises(ProjectError):
            parse_project(["a"], tmp_dir)

    def test_bad_offset(self, tmp_dir):
        doc = {"tracks": [{"frames": [{"offset": [1, 2, 3]}]}]}
        with pytest.raises(ProjectError, match="offset"):
            parse_project(doc, tmp_dir)

    def test_bad_fps(self, tmp_dir):
        with pytest.raises(ProjectError):
            parse_project({"fps": "quick"}, tmp_dir)

    def test_defaults(self, tmp_dir):
        project = parse_project({"tracks": [{"frames": [{}]}]}, tmp_dir, "demo")
        assert project.name == "demo"
        track = project.tracks[0]
        assert track.name == "track-0"
        assert (track.visible, track.loop, track.opacity) == (True, False, 100.0)
        assert track.frames[0].offset == (0, 0)
