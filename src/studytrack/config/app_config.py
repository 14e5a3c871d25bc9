"""Application configuration loader.

Loads configuration from data/config/studytrack_v1.yaml, falling back to
built-in defaults when the file is absent.

Usage:
    from studytrack.config.app_config import load_app_config, get_db_path

    config = load_app_config()
    window = config.schedule.window_days
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to working directory)
CONFIG_FILE = Path("data/config/studytrack_v1.yaml")

# Environment override for the database location
DB_PATH_ENV = "STUDYTRACK_DB_PATH"


@dataclass
class ScheduleConfig:
    """Configuration for test scheduling and the priority feed."""

    window_days: int = 7
    test_hour: int = 20
    refresh_interval_seconds: int = 60


@dataclass
class AppConfig:
    """Application-wide configuration."""

    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    paths: dict[str, str] = field(default_factory=dict)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "schedule": {
            "window_days": 7,
            "test_hour": 20,
            "refresh_interval_seconds": 60,
        },
        "paths": {
            "db_path": "db/studytrack.db",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    schedule_data = {**defaults["schedule"], **(data.get("schedule") or {})}
    test_hour = int(schedule_data["test_hour"])
    if not 0 <= test_hour <= 23:
        logger.warning("invalid_test_hour", test_hour=test_hour, fallback=20)
        test_hour = 20

    schedule = ScheduleConfig(
        window_days=max(0, int(schedule_data["window_days"])),
        test_hour=test_hour,
        refresh_interval_seconds=max(1, int(schedule_data["refresh_interval_seconds"])),
    )

    paths = {**defaults["paths"], **(data.get("paths") or {})}

    return AppConfig(schedule=schedule, paths=paths)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.debug("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def get_db_path() -> Path:
    """Database path: $STUDYTRACK_DB_PATH, else paths.db_path from config."""
    env_path = os.environ.get(DB_PATH_ENV)
    if env_path:
        return Path(env_path)
    return Path(load_app_config().paths["db_path"])


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
