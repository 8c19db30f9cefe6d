"""Tests for wiring the worker components."""

import httpx
import pytest

from cue.auth import TokenManager
from cue.cache import DatabaseCache, InMemoryCache
from cue.config import parse_config
from cue.soundtrack.client import ApiTokenAuth
from cue.worker import create_components, open_worker


class TestOpenWorker:
    """Tests for open_worker."""

    @pytest.mark.asyncio
    async def test_token_mode_wiring(self, minimal_config):
        async with open_worker(minimal_config) as components:
            assert isinstance(components.client.authorizer, ApiTokenAuth)
            assert components.tokens is None
            assert components.client.max_concurrency == 3
            assert components.poller.interval == 60
            assert isinstance(components.cache.backend, InMemoryCache)
            assert await components.store.count_runs() == 0

    @pytest.mark.asyncio
    async def test_user_mode_uses_token_manager(self, tmp_path):
        config = parse_config(
            {
                "soundtrack": {"mode": "user"},
                "client": {"max_concurrency": 2},
                "worker": {"interval": 15},
                "cache": {"backend": "database"},
                "database": {"path": str(tmp_path / "user.db")},
            }
        )
        async with open_worker(config) as components:
            assert isinstance(components.tokens, TokenManager)
            assert components.client.authorizer is components.tokens
            assert components.client.max_concurrency == 2
            assert components.poller.interval == 15
            assert isinstance(components.cache.backend, DatabaseCache)

    @pytest.mark.asyncio
    async def test_single_client_shared(self, minimal_config, database):
        async with httpx.AsyncClient() as http:
            components = create_components(minimal_config, database, http)

        assert components.api.client is components.client
