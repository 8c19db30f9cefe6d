"""Load cue configuration from TOML, with environment variables as fallback.

Values written in the file win. The environment only fills keys the file
leaves unset, so a deployment can keep its token out of the config file.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import SecretStr, ValidationError

from cue.config.models import ConfigError, CueConfig
from cue.config.paths import get_config_path

# (section, key, environment variable, is secret)
ENV_FALLBACKS: tuple[tuple[str, str, str, bool], ...] = (
    ("soundtrack", "api_token", "SOUNDTRACK_API_TOKEN", True),
    ("soundtrack", "url", "SOUNDTRACK_API_URL", False),
    ("soundtrack", "mode", "SOUNDTRACK_API_MODE", False),
    ("worker", "interval", "WORKER_INTERVAL", False),
    ("database", "url", "CUE_DATABASE_URL", False),
)


def config_search_paths() -> list[Path]:
    """Where to look for config.toml when no path is given, in order."""
    return [
        Path.cwd() / "config.toml",
        get_config_path(),
        Path("/etc/cue/config.toml"),
    ]


def find_config_file(path: Path | str | None = None) -> Path | None:
    """Resolve the config file to read.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
    """
    if path is not None:
        explicit = Path(path).expanduser()
        if not explicit.exists():
            raise FileNotFoundError(f"Config file not found: {explicit}")
        return explicit
    return next((p for p in config_search_paths() if p.exists()), None)


def _apply_env_fallbacks(raw: dict[str, Any]) -> dict[str, Any]:
    for section_name, key, env_var, secret in ENV_FALLBACKS:
        value = os.environ.get(env_var)
        if not value:
            continue
        section = raw.setdefault(section_name, {})
        if section.get(key) is None:
            section[key] = SecretStr(value) if secret else value
    return raw


def parse_config(raw_config: dict[str, Any]) -> CueConfig:
    """Validate a raw config mapping after applying environment fallbacks.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    try:
        return CueConfig.model_validate(_apply_env_fallbacks(raw_config))
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(path: Path | None = None) -> CueConfig:
    """Load and validate configuration.

    Without a config file anywhere on the search path, the configuration
    comes from environment variables alone.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigError: If the file is not valid TOML or the values are invalid.
    """
    config_file = find_config_file(path)
    if config_file is None:
        return parse_config({})

    try:
        raw = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_file}: {e}") from e
    return parse_config(raw)
