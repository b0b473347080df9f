"""
Configuration management for Dirmon.

Uses pydantic-settings to load configuration from CLI overrides, environment
variables (``DIRMON_*``) and ``.env`` files.
"""

from pathlib import Path
from typing import Any

from pydantic import ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dirmon.utils.helpers import normalise_path

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class DirmonError(Exception):
    """Base class for Dirmon errors."""


class ConfigError(DirmonError):
    """Raised when the monitor configuration is missing or invalid."""


class Settings(BaseSettings):
    """Monitor settings, fixed for the process lifetime once loaded."""

    # Directories
    monitor_dir: Path
    shadow_dir: Path

    # Shadow handling
    purge_shadow: bool = False
    suppress_binary_display: bool = False
    file_pattern: str = "*.*"

    # Worker Configuration
    max_pending: int = 0  # 0 = unbounded
    drain_on_stop: bool = True

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="DIRMON_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("shadow_dir")
    @classmethod
    def _normalise(cls, value: Path) -> Path:
        return normalise_path(value)

    @field_validator("monitor_dir")
    @classmethod
    def _monitor_dir_exists(cls, value: Path) -> Path:
        value = normalise_path(value)
        if not value.is_dir():
            raise ValueError(f"{value} is not an existing directory")
        return value

    @field_validator("file_pattern")
    @classmethod
    def _pattern_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("file pattern must not be empty")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}; expected one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("max_pending")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("max_pending must be 0 (unbounded) or positive")
        return value

    @model_validator(mode="after")
    def _distinct_directories(self) -> "Settings":
        if self.shadow_dir == self.monitor_dir:
            raise ValueError("shadow directory must differ from the monitored directory")
        return self


def load_settings(**overrides: Any) -> Settings:
    """
    Build settings from explicit overrides plus the environment.

    Args:
        **overrides: Field values taking priority over the environment.
            ``None`` values are ignored so unset CLI flags fall through.

    Returns:
        Validated settings

    Raises:
        ConfigError: If a required value is missing or invalid
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)
    except ValidationError as e:
        problems = []
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"]) or "settings"
            problems.append(f"  {location}: {error['msg']}")
        raise ConfigError("Invalid configuration:\n" + "\n".join(problems)) from e
