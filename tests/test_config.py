"""Tests for effect configuration loading."""

import pytest
from pydantic import ValidationError

from variablur.config import EffectConfig, load_effect_config, resolve_length
from variablur.core.mask import Direction
from variablur.errors import InvalidArgument
from variablur.settings import get_settings, reset_settings_cache


def test_load_glass_effect(write_effect, glass_effect):
    config = load_effect_config(write_effect(glass_effect))
    assert config.direction is Direction.TOP
    assert config.layers == 4
    assert config.resolved_offset() == pytest.approx(40.0)
    assert config.resolved_glass_offset() == pytest.approx(10.0)
    assert config.glass.refraction == pytest.approx(1.6)


def test_style_and_box(write_effect, glass_effect):
    config = load_effect_config(write_effect(glass_effect))
    style = config.style()
    box = config.box()
    assert [item.name for item in style.filters] == ["blur", "brightness"]
    assert style.glass_refraction == pytest.approx(1.6)
    assert style.refraction_options.lens_damping == pytest.approx(0.75)
    assert (box.width, box.height, box.radius) == (120, 80, 12)


def test_direction_falls_back_to_bottom(write_effect):
    config = load_effect_config(write_effect({"element": {"width": 10, "height": 20}, "direction": "sideways"}))
    assert config.direction is Direction.BOTTOM
    assert config.resolved_offset() == pytest.approx(20.0)
    assert config.glass is None
    assert config.style().glass_refraction is None


def test_horizontal_offset_uses_width(write_effect):
    data = {"element": {"width": 300, "height": 20}, "direction": "LEFT", "offset": "25%"}
    config = load_effect_config(write_effect(data))
    assert config.resolved_offset() == pytest.approx(75.0)


def test_glass_percentage_uses_shorter_side():
    config = EffectConfig.model_validate(
        {"element": {"width": 300, "height": 50}, "glass": {"refraction": 1.2, "offset": "10%"}}
    )
    assert config.resolved_glass_offset() == pytest.approx(5.0)


@pytest.mark.parametrize(
    "data",
    [
        {"element": {"width": 0, "height": 10}},
        {"element": {"width": 10, "height": 10}, "layers": 0},
        {"element": {"width": 10, "height": 10}, "offset": "3em"},
        {"element": {"width": 10, "height": 10}, "glass": {"offset": "wide"}},
        {"element": {"width": 10, "height": 10, "radius": -2}},
    ],
)
def test_invalid_configurations(data):
    with pytest.raises(ValidationError):
        EffectConfig.model_validate(data)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_effect_config(tmp_path / "absent.yaml")


def test_layer_default_comes_from_settings(monkeypatch):
    monkeypatch.setenv("VARIABLUR_LAYERS", "7")
    reset_settings_cache()
    config = EffectConfig.model_validate({"element": {"width": 10, "height": 10}})
    assert config.layers == 7


def test_settings_output_root(tmp_path):
    assert get_settings().outputs == (tmp_path / "outputs").resolve()


@pytest.mark.parametrize(
    "value, extent, expected",
    [(12, 100, 12.0), ("12px", 100, 12.0), ("50%", 80, 40.0), (" 2.5 ", 10, 2.5), ("-10px", 10, -10.0)],
)
def test_resolve_length(value, extent, expected):
    assert resolve_length(value, extent) == pytest.approx(expected)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("calc(50% + 20px)", 70.0),
        ("calc(100% - 4px)", 96.0),
        ("CALC(width / 2)", 50.0),
        ("calc(height - 10px)", 30.0),
        ("calc((25% + 5px) * 2)", 60.0),
        ("calc(-10px)", -10.0),
    ],
)
def test_resolve_length_calc(value, expected):
    assert resolve_length(value, 100, 40) == pytest.approx(expected)


def test_calc_height_defaults_to_extent():
    assert resolve_length("calc(height / 4)", 80) == pytest.approx(20.0)


@pytest.mark.parametrize(
    "value",
    [
        "calc(__import__('os').getcwd())",
        "calc(2 ** 8)",
        "calc(depth + 1px)",
        "calc(10px / 0)",
        "calc(10px +)",
        "calc('a')",
        "10em",
    ],
)
def test_resolve_length_rejects_unsupported(value):
    with pytest.raises(InvalidArgument):
        resolve_length(value, 100)


def test_calc_offset_in_effect_file(write_effect, glass_effect):
    glass_effect["offset"] = "calc(50% + 20px)"
    glass_effect["glass"]["offset"] = "calc(height / 8)"
    config = load_effect_config(write_effect(glass_effect))
    assert config.resolved_offset() == pytest.approx(60.0)
    assert config.resolved_glass_offset() == pytest.approx(15.0)


def test_invalid_calc_rejected_at_load():
    with pytest.raises(ValidationError):
        EffectConfig.model_validate({"element": {"width": 10, "height": 10}, "offset": "calc(foo)"})


def test_glass_falloff_option_reaches_refraction():
    config = EffectConfig.model_validate(
        {"element": {"width": 40, "height": 40}, "glass": {"refraction": 1.5, "falloff": "glass"}}
    )
    assert config.style().refraction_options.falloff == "glass"
