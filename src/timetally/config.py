"""
TimeTally Configuration System

Loads configuration from:
1. Default config (config/default.yaml in package)
2. User config (~/.timetally/config/timetally.yaml)
3. Environment variables (TALLY_ prefix)

Uses Pydantic for validation and type coercion.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_CONFIG = Path(__file__).parent.parent.parent / "config" / "default.yaml"


def expand_path(path: str | Path | None) -> Path | None:
    """Expand ~ and environment variables in paths."""
    if path is None:
        return None
    expanded = os.path.expandvars(os.path.expanduser(str(path)))
    return Path(expanded)


class TallyMeta(BaseModel):
    """Core TimeTally metadata."""

    name: str = "TimeTally"
    version: str = "0.1.0"


class LogConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["auto", "json", "console"] = "auto"
    file: Path | None = None

    @field_validator("file", mode="before")
    @classmethod
    def expand_file_path(cls, v: Any) -> Path | None:
        return expand_path(v)


class StoreConfig(BaseModel):
    """Workspace persistence configuration."""

    path: Path = Path("~/.timetally/data/timetally.db")
    slot_key: str = "timeTallyData"
    # Mirrors the browser cookie budget the slot format was designed for;
    # 0 disables the limit.
    max_bytes: int = 0
    echo: bool = False

    @field_validator("path", mode="before")
    @classmethod
    def expand_store_path(cls, v: Any) -> Path:
        expanded = expand_path(v)
        return expanded if expanded else Path("~/.timetally/data/timetally.db")

    @field_validator("max_bytes")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_bytes must be >= 0")
        return v


class TimerConfig(BaseModel):
    """Countdown cadence configuration."""

    tick_interval: float = 1.0
    estimate_interval: float = 5.0


class AudioConfig(BaseModel):
    """Sound and speech output configuration."""

    enabled: bool = True
    sample_rate: int = 22050
    beep_frequency: float = 880.0
    beep_duration: float = 0.35
    beep_volume: float = 0.4
    piper_path: str | None = None  # Auto-detect if None
    models_dir: str | None = None  # Auto-detect if None


class TallyConfig(BaseSettings):
    """
    Main TimeTally configuration.

    Loads from YAML files and environment variables.
    Environment variables use TALLY_ prefix and __ for nesting.
    Example: TALLY_LOG__LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="TALLY_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    tally: TallyMeta = Field(default_factory=TallyMeta)
    log: LogConfig = Field(default_factory=LogConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    timer: TimerConfig = Field(default_factory=TimerConfig)
    audio: AudioConfig = Field(default_factory=AudioConfig)


def find_config_file() -> Path | None:
    """
    Find the configuration file.

    Search order:
    1. ~/.timetally/config/timetally.yaml (user config)
    2. ./config/default.yaml (development default)
    3. Package default (installed)
    """
    user_config = Path.home() / ".timetally" / "config" / "timetally.yaml"
    if user_config.exists():
        return user_config

    dev_config = Path.cwd() / "config" / "default.yaml"
    if dev_config.exists():
        return dev_config

    if PACKAGE_CONFIG.exists():
        return PACKAGE_CONFIG

    return None


def load_yaml_config(path: Path | None) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if path is None or not path.exists():
        return {}

    with open(path) as f:
        data = yaml.safe_load(f)

    return data if data else {}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_config(path: Path | None = None) -> TallyConfig:
    """
    Load complete configuration.

    Merges:
    1. Pydantic defaults
    2. Package default YAML, overlaid with the user YAML file
    3. Environment variables for keys the YAML files leave unset
    """
    yaml_config = deep_merge(
        load_yaml_config(PACKAGE_CONFIG),
        load_yaml_config(path or find_config_file()),
    )
    return TallyConfig(**yaml_config)


# Global config instance (lazy-loaded)
_config: TallyConfig | None = None


def get_config() -> TallyConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
