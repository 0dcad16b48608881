"""Tests for artefact export."""

import json

import cv2
import numpy as np
import pytest

from variablur.config import load_effect_config
from variablur.core.layers import plan_effect
from variablur.core.refraction import synthesize
from variablur.exporters import (
    decode_png,
    determine_effect_name,
    encode_png,
    export_effect_outputs,
    png_data_url,
    prepare_output_directory,
    write_png,
)


def test_png_round_trip_is_lossless():
    field = synthesize(1.9, 12, 97, 61, 14)
    decoded = decode_png(encode_png(field))
    np.testing.assert_array_equal(decoded, field.pixels)


def test_png_round_trip_of_random_data():
    data = np.random.default_rng(3).integers(0, 256, (17, 23, 4), dtype=np.uint8)
    np.testing.assert_array_equal(decode_png(encode_png(data)), data)


def test_encode_rejects_non_rgba():
    with pytest.raises(ValueError):
        encode_png(np.zeros((4, 4, 3), dtype=np.uint8))


def test_decode_rejects_garbage():
    with pytest.raises(ValueError):
        decode_png(b"not a png")


def test_data_url():
    url = png_data_url(synthesize(1.5, 4, 8, 8, 0))
    assert url.startswith("data:image/png;base64,")


def test_write_png_keeps_channel_order(tmp_path):
    field = synthesize(2.0, 4, 16, 16, 0)
    path = tmp_path / "maps" / "map.png"
    write_png(field, path)
    raw = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    # OpenCV reads BGRA: index 2 is red (horizontal), index 0 is blue (vertical)
    np.testing.assert_array_equal(raw[..., 2], field.horizontal)
    np.testing.assert_array_equal(raw[..., 0], field.vertical)


def test_prepare_output_directory_avoids_collisions(tmp_path):
    first = prepare_output_directory(tmp_path, timestamp="run")
    second = prepare_output_directory(tmp_path, timestamp="run")
    assert first == tmp_path / "effects" / "run"
    assert second == tmp_path / "effects" / "run_1"


def test_export_effect_outputs(tmp_path, write_effect, glass_effect):
    config = load_effect_config(write_effect(glass_effect))
    plan = plan_effect(config.style(), config.box())
    output_dir = export_effect_outputs(plan, config, output_root=tmp_path / "out", timestamp="fixed")

    assert output_dir == tmp_path / "out" / "effects" / "fixed"
    manifest = json.loads((output_dir / "glass_card_layers.json").read_text(encoding="utf-8"))
    assert manifest["direction"] == "top"
    assert len(manifest["layers"]) == 4
    assert manifest["displacement"]["file"] == "glass_card_displacement.png"
    assert manifest["metadata"] == {"name": "Glass Card"}

    decoded = decode_png((output_dir / "glass_card_displacement.png").read_bytes())
    np.testing.assert_array_equal(decoded, plan.displacement.pixels)


def test_export_defaults_to_settings_root(tmp_path, write_effect):
    config = load_effect_config(write_effect({"element": {"width": 20, "height": 20}, "filter": "blur(4px)"}))
    plan = plan_effect(config.style(), config.box())
    output_dir = export_effect_outputs(plan, config, timestamp="t")
    assert output_dir == (tmp_path / "outputs").resolve() / "effects" / "t"
    assert (output_dir / "effect_layers.json").exists()
    assert not list(output_dir.glob("*.png"))


def test_effect_name_sanitised(write_effect):
    config = load_effect_config(write_effect({"element": {"width": 5, "height": 5}, "metadata": {"name": "My Card!"}}))
    assert determine_effect_name(config) == "my_card_"
