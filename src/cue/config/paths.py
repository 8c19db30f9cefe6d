"""Centralized path management for cue.

All local state (config, database, logs) lives under a single base directory.
The base directory can be overridden with the CUE_HOME environment variable.

Default locations:
- Linux/macOS: ~/.cue
- Windows: %USERPROFILE%\\.cue
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "CUE_HOME"


@lru_cache(maxsize=1)
def get_cue_home() -> Path:
    """Get the base directory for all cue data.

    Resolution order:
    1. CUE_HOME environment variable (if set)
    2. Platform default (~/.cue)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".cue"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_cue_home() / "config.toml"


def get_database_path() -> Path:
    """Get the default SQLite database path."""
    return get_cue_home() / "cue.db"


def get_logs_path() -> Path:
    """Get the JSONL log directory."""
    return get_cue_home() / "logs"
