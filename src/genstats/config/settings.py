"""Centralized configuration for genstats.

Loads configuration from a .env file and the environment and provides typed
access to settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import pytz

from ..core.granularity import GranularityUnit, UnsupportedUnitError

__all__ = [
    "ConfigError",
    "Settings",
    "generate_example_env",
    "get_settings",
    "load_env_file",
    "load_settings",
]

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


@dataclass
class Settings:
    """Settings for genstats.

    Attributes
    ----------
    db_path : Path | None
        SQLite database file; None keeps records in memory
    reference_timezone : str
        Timezone for day/week/month/year buckets
    default_unit : str
        Granularity used when a query names none
    log_level : str
        Logging level
    log_dir : Path | None
        Directory for JSONL logs (console only when unset)
    api_host : str
        HTTP adapter bind host
    api_port : int
        HTTP adapter bind port
    """

    db_path: Path | None = None
    reference_timezone: str = "UTC"
    default_unit: str = "day"

    # Logging
    log_level: str = "INFO"
    log_dir: Path | None = None

    # HTTP adapter
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.db_path and isinstance(self.db_path, str):
            self.db_path = Path(self.db_path)

        if self.log_dir and isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)

        try:
            pytz.timezone(self.reference_timezone)
        except pytz.UnknownTimeZoneError as exc:
            raise ConfigError(
                f"Unknown timezone in GENSTATS_REFERENCE_TZ: {self.reference_timezone!r}. "
                "Use an IANA name such as UTC or Europe/Paris"
            ) from exc

        try:
            self.default_unit = GranularityUnit.parse(self.default_unit).value
        except UnsupportedUnitError as exc:
            raise ConfigError(f"Invalid GENSTATS_DEFAULT_UNIT: {exc}") from exc

        self.log_level = self.log_level.upper()
        if self.log_level not in _LOG_LEVELS:
            raise ConfigError(f"Invalid GENSTATS_LOG_LEVEL: {self.log_level!r} (expected one of {', '.join(_LOG_LEVELS)})")

        if not 0 < self.api_port < 65536:
            raise ConfigError(f"Invalid GENSTATS_API_PORT: {self.api_port}")

    @classmethod
    def from_env(cls, env_file: Path | str | None = None) -> Settings:
        """Load settings from environment.

        Loads from .env file if present, otherwise from os.environ.

        Parameters
        ----------
        env_file
            Path to .env file (default: .env in current directory)

        Returns
        -------
        Settings
            Loaded settings

        Raises
        ------
        ConfigError
            If settings are invalid
        """
        if env_file is None:
            env_file = Path(".env")
        if isinstance(env_file, str):
            env_file = Path(env_file)

        if env_file.exists():
            load_env_file(env_file)

        try:
            return cls(
                db_path=Path(os.environ["GENSTATS_DB_PATH"]) if os.environ.get("GENSTATS_DB_PATH") else None,
                reference_timezone=os.environ.get("GENSTATS_REFERENCE_TZ", "UTC"),
                default_unit=os.environ.get("GENSTATS_DEFAULT_UNIT", "day"),
                log_level=os.environ.get("GENSTATS_LOG_LEVEL", "INFO"),
                log_dir=Path(os.environ["GENSTATS_LOG_DIR"]) if os.environ.get("GENSTATS_LOG_DIR") else None,
                api_host=os.environ.get("GENSTATS_API_HOST", "127.0.0.1"),
                api_port=int(os.environ.get("GENSTATS_API_PORT", "8000")),
            )
        except (ValueError, KeyError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc


def load_env_file(env_file: Path) -> None:
    """Load environment variables from .env file.

    Variables already present in the environment are overwritten.

    Parameters
    ----------
    env_file
        Path to .env file
    """
    with open(env_file) as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]

                os.environ[key] = value


# Global settings instance
_settings: Settings | None = None


def load_settings(env_file: Path | str | None = None) -> Settings:
    """Load settings from environment and keep them as current.

    Parameters
    ----------
    env_file
        Path to .env file

    Returns
    -------
    Settings
        Loaded settings

    Raises
    ------
    ConfigError
        If settings are invalid
    """
    global _settings
    _settings = Settings.from_env(env_file)
    return _settings


def get_settings() -> Settings:
    """Get current settings.

    Returns
    -------
    Settings
        Current settings

    Raises
    ------
    ConfigError
        If settings not loaded
    """
    if _settings is None:
        raise ConfigError("Settings not loaded. Call load_settings() first.")
    return _settings


def generate_example_env(output_path: Path | None = None) -> str:
    """Generate example .env file with all settings.

    Parameters
    ----------
    output_path
        Optional path to write .env file

    Returns
    -------
    str
        Example .env contents
    """
    example = """# genstats configuration
# Copy this to .env and adjust values

# ====================
# Storage
# ====================

# SQLite database file (optional, records are kept in memory if not set)
GENSTATS_DB_PATH=artifacts/genstats.db

# ====================
# Aggregation
# ====================

# Timezone for day/week/month/year buckets (optional, default: UTC)
# Examples: UTC, America/New_York, Europe/Paris
GENSTATS_REFERENCE_TZ=UTC

# Granularity used when none is given (optional, default: day)
# Options: hour, day, week, month, year
GENSTATS_DEFAULT_UNIT=day

# ====================
# Logging
# ====================

# Log level (optional, default: INFO)
# Options: DEBUG, INFO, WARNING, ERROR, CRITICAL
GENSTATS_LOG_LEVEL=INFO

# Directory for JSONL logs (optional, logs to console if not set)
# GENSTATS_LOG_DIR=logs

# ====================
# HTTP adapter
# ====================

GENSTATS_API_HOST=127.0.0.1
GENSTATS_API_PORT=8000
"""

    if output_path:
        output_path.write_text(example)

    return example
