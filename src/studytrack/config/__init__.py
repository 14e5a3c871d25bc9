"""Configuration package for the study tracker."""

from studytrack.config.app_config import (
    AppConfig,
    ScheduleConfig,
    clear_config_cache,
    get_db_path,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "ScheduleConfig",
    "clear_config_cache",
    "get_db_path",
    "load_app_config",
]
