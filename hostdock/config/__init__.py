"""Host settings and per-application configuration."""

from hostdock.config.app import (
    AppConfig,
    HealthConfig,
    MigrationsConfig,
    dump_app_config,
    load_app_config,
    parse_duration,
)
from hostdock.config.settings import Settings

__all__ = [
    "AppConfig",
    "HealthConfig",
    "MigrationsConfig",
    "Settings",
    "dump_app_config",
    "load_app_config",
    "parse_duration",
]
