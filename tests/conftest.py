"""Shared test fixtures and factories."""

import json
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import httpx
import pytest

from cue.config.models import CueConfig, SoundtrackConfig
from cue.db.engine import Database
from cue.soundtrack.client import ApiTokenAuth, GraphQLClient
from cue.soundtrack.retry import RetryConfig
from cue.soundtrack.types import LoginResponse
from cue.store.sql import SqlStore

API_URL = "https://api.test/v2"

# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep tests away from the real ~/.cue and any exported settings."""
    for var in (
        "SOUNDTRACK_API_TOKEN",
        "SOUNDTRACK_API_URL",
        "SOUNDTRACK_API_MODE",
        "WORKER_INTERVAL",
        "CUE_DATABASE_URL",
        "CUE_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("CUE_HOME", str(tmp_path / "cue-home"))
    monkeypatch.chdir(tmp_path)

    from cue.config.paths import get_cue_home

    get_cue_home.cache_clear()


@pytest.fixture
def minimal_config(tmp_path: Path) -> CueConfig:
    """Token-mode configuration backed by a temporary database."""
    return CueConfig.model_validate(
        {
            "soundtrack": {"url": API_URL, "api_token": "test-token"},
            "client": {"backoff_seconds": 0},
            "database": {"path": str(tmp_path / "cue.db")},
        }
    )


@pytest.fixture
def soundtrack_config() -> SoundtrackConfig:
    return SoundtrackConfig(url=API_URL, api_token="test-token")


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Temporary SQLite database with all tables created."""
    db = Database(database_path=tmp_path / "test.db")
    await db.connect()
    await db.create_all()
    yield db
    await db.disconnect()


@pytest.fixture
async def store(database: Database) -> SqlStore:
    return SqlStore(database)


# =============================================================================
# Clock Fixtures
# =============================================================================


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 5, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def clock(now: datetime) -> Callable[[], datetime]:
    return lambda: now


# =============================================================================
# HTTP / GraphQL Fixtures
# =============================================================================


def graphql_response(
    data: Any = None,
    errors: list[Any] | None = None,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    payload: dict[str, Any] = {"data": data}
    if errors:
        payload["errors"] = errors
    return httpx.Response(status_code, json=payload, headers=headers)


def request_body(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


def make_client(
    handler: Callable[[httpx.Request], Any],
    *,
    max_concurrency: int = 3,
    max_attempts: int = 3,
    token: str = "test-token",
) -> GraphQLClient:
    """GraphQLClient over an httpx.MockTransport calling `handler`."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GraphQLClient(
        API_URL,
        ApiTokenAuth(token),
        http_client=http,
        max_concurrency=max_concurrency,
        retry=RetryConfig(max_attempts=max_attempts, backoff_seconds=0),
    )


# =============================================================================
# Fake API Fixtures
# =============================================================================


class FakeMusicApi:
    """Records assignments; zones listed in `failing` raise."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.assigned: list[tuple[str, str]] = []

    async def assign_music(self, zone_id: str, play_from_id: str) -> None:
        if zone_id in self.failing:
            raise RuntimeError(f"zone {zone_id} rejected assignment")
        self.assigned.append((zone_id, play_from_id))


class FakeTokenExchange:
    """Issues tokens that expire `lifetime` after the call."""

    def __init__(self, lifetime: timedelta = timedelta(hours=1)) -> None:
        self.lifetime = lifetime
        self.logins: list[tuple[str, str]] = []
        self.refreshes: list[str] = []

    async def login(self, email: str, password: str) -> LoginResponse:
        self.logins.append((email, password))
        return self._issue(f"login-{len(self.logins)}")

    async def refresh(self, refresh_token: str) -> LoginResponse:
        self.refreshes.append(refresh_token)
        return self._issue(f"refreshed-{len(self.refreshes)}")

    def _issue(self, token: str) -> LoginResponse:
        return LoginResponse(
            token=token,
            expires_at=datetime.now(UTC) + self.lifetime,
            refresh_token=f"{token}-refresh",
        )


@pytest.fixture
def fake_api() -> FakeMusicApi:
    return FakeMusicApi()


@pytest.fixture
def fake_exchange() -> FakeTokenExchange:
    return FakeTokenExchange()


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture
def cli_config(tmp_path: Path) -> Path:
    """Token-mode config file with a database under tmp_path."""
    path = tmp_path / "cli.toml"
    path.write_text(
        f"""
[soundtrack]
url = "{API_URL}"
api_token = "test-token"

[database]
path = "{tmp_path / "cli.db"}"
"""
    )
    return path


@pytest.fixture
def user_cli_config(tmp_path: Path) -> Path:
    """User-mode config file with a database under tmp_path."""
    path = tmp_path / "user.toml"
    path.write_text(
        f"""
[soundtrack]
url = "{API_URL}"
mode = "user"

[database]
path = "{tmp_path / "user.db"}"
"""
    )
    return path
