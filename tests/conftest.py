from pathlib import Path

import pytest
import yaml

from variablur.settings import reset_settings_cache


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("VARIABLUR_OUTPUTS", str(tmp_path / "outputs"))
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def write_effect(tmp_path):
    def _write(data: dict, name: str = "effect.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def glass_effect() -> dict:
    return {
        "element": {"width": 120, "height": 80, "radius": 12},
        "filter": "blur(24px) brightness(1.1)",
        "direction": "top",
        "offset": "50%",
        "layers": 4,
        "color": "rgba(255,255,255,0.2)",
        "glass": {"refraction": 1.6, "offset": 10},
        "metadata": {"name": "Glass Card"},
    }
