"""Configuration module."""

from cue.config.loader import load_config, parse_config
from cue.config.models import (
    AuthConfig,
    CacheConfig,
    ClientConfig,
    ConfigError,
    CueConfig,
    DatabaseConfig,
    SoundtrackConfig,
    WorkerConfig,
)
from cue.config.paths import (
    get_config_path,
    get_cue_home,
    get_database_path,
    get_logs_path,
)

__all__ = [
    "AuthConfig",
    "CacheConfig",
    "ClientConfig",
    "ConfigError",
    "CueConfig",
    "DatabaseConfig",
    "SoundtrackConfig",
    "WorkerConfig",
    "get_config_path",
    "get_cue_home",
    "get_database_path",
    "get_logs_path",
    "load_config",
    "parse_config",
]
