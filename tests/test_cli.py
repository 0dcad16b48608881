"""Tests for the command-line interface."""

import numpy as np

from variablur.cli import main
from variablur.exporters import decode_png


def test_validate_prints_summary(write_effect, glass_effect, capsys):
    assert main(["validate", str(write_effect(glass_effect))]) == 0
    out = capsys.readouterr().out
    assert "Element: 120x80 px" in out
    assert "Layers (4):" in out
    assert "Glass: refraction 1.6" in out


def test_missing_config_returns_2(tmp_path):
    assert main(["validate", str(tmp_path / "missing.yaml")]) == 2
    assert main(["render", str(tmp_path / "missing.yaml")]) == 2
    assert main(["preview", str(tmp_path / "missing.yaml"), "--output", str(tmp_path / "p.png")]) == 2


def test_invalid_config_returns_1(write_effect):
    path = write_effect({"element": {"width": -1, "height": 10}})
    assert main(["validate", str(path)]) == 1
    assert main(["render", str(path)]) == 1


def test_render_writes_artefacts(tmp_path, write_effect, glass_effect):
    path = write_effect(glass_effect)
    assert main(["render", str(path), "--output", str(tmp_path / "out"), "--timestamp", "cli"]) == 0
    output_dir = tmp_path / "out" / "effects" / "cli"
    assert (output_dir / "glass_card_layers.json").exists()
    assert (output_dir / "glass_card_displacement.png").exists()


def test_synthesize_writes_map(tmp_path):
    target = tmp_path / "map.png"
    args = ["synthesize", "--width", "40", "--height", "30", "--refraction", "2", "--offset", "5", "--output", str(target)]
    assert main(args) == 0
    pixels = decode_png(target.read_bytes())
    assert pixels.shape == (30, 40, 4)
    assert (pixels[0, 10:30, 2] < 127).all()


def test_synthesize_rejects_bad_geometry(tmp_path):
    args = ["synthesize", "--width", "0", "--height", "30", "--output", str(tmp_path / "x.png")]
    assert main(args) == 1


def test_preview_writes_image(tmp_path, write_effect, glass_effect):
    target = tmp_path / "preview.png"
    assert main(["preview", str(write_effect(glass_effect)), "--output", str(target)]) == 0
    assert target.stat().st_size > 0


def test_preview_without_glass_fails(tmp_path, write_effect):
    path = write_effect({"element": {"width": 10, "height": 10}})
    assert main(["preview", str(path), "--output", str(tmp_path / "p.png")]) == 1
