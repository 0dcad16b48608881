"""Application settings loaded from the environment / .env via pydantic-settings."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class VariablurSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VARIABLUR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    outputs: Path = Field(default=Path("outputs"), description="Root directory for exported artefacts")
    layers: int = Field(default=5, gt=0, description="Layer count used when an effect file omits it")

    @field_validator("outputs", mode="before")
    @classmethod
    def _expand_root(cls, value: Path) -> Path:
        return Path(value).expanduser().resolve()


_settings: Optional[VariablurSettings] = None


def get_settings() -> VariablurSettings:
    global _settings
    if _settings is None:
        _settings = VariablurSettings()
        logger.debug("Loaded settings: outputs=%s layers=%d", _settings.outputs, _settings.layers)
    return _settings


def output_root() -> Path:
    return get_settings().outputs


def default_layer_count() -> int:
    return get_settings().layers


def reset_settings_cache() -> None:
    global _settings
    _settings = None
