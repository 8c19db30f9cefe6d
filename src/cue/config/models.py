"""Configuration models using Pydantic."""

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, PositiveInt, SecretStr, model_validator

from cue.config.paths import get_database_path

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.soundtrackyourbrand.com/v2"


class ConfigError(Exception):
    """Configuration error."""

    pass


class SoundtrackConfig(BaseModel):
    """Connection settings for the Soundtrack API.

    In "token" mode every request carries the shared API token as a Basic
    credential. In "user" mode requests carry a Bearer token obtained through
    `cue auth login` and refreshed automatically.
    """

    url: str = DEFAULT_API_URL
    mode: Literal["token", "user"] = "token"
    api_token: SecretStr | None = None

    @model_validator(mode="after")
    def _require_token_in_token_mode(self) -> "SoundtrackConfig":
        if self.mode == "token" and self.api_token is None:
            raise ValueError(
                "api_token is required in token mode "
                "(set [soundtrack].api_token or SOUNDTRACK_API_TOKEN)"
            )
        return self


class ClientConfig(BaseModel):
    """Remote API client limits.

    max_concurrency models the per-key rate limit published by the API.
    max_attempts counts the first try, so 3 means up to two retries.
    """

    max_concurrency: PositiveInt = 3
    max_attempts: PositiveInt = 3
    backoff_seconds: float = Field(default=10.0, ge=0)
    timeout_seconds: float = Field(default=30.0, gt=0)


class WorkerConfig(BaseModel):
    """Configuration for the schedule poller."""

    interval: PositiveInt = 60


class AuthConfig(BaseModel):
    """User-mode token lifecycle settings."""

    refresh_margin_seconds: float = Field(default=60.0, ge=0)


class CacheConfig(BaseModel):
    """Response cache backend selection."""

    backend: Literal["memory", "database"] = "memory"


class DatabaseConfig(BaseModel):
    """Database location. `url` takes precedence over `path`."""

    path: Path = Field(default_factory=get_database_path)
    url: str | None = None


class CueConfig(BaseModel):
    """Root configuration model."""

    soundtrack: SoundtrackConfig
    client: ClientConfig = Field(default_factory=ClientConfig)
    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
