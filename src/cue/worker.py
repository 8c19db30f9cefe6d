"""Composition root: builds the services the CLI commands run.

Nothing in cue holds module-level state; every shared object (database,
HTTP client, concurrency ceiling, cache) is created here once and passed to
the components that need it.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta

import httpx

from cue.auth.tokens import TokenManager
from cue.cache import DatabaseCache, InMemoryCache, ResponseCache
from cue.cache.base import Cache
from cue.config.models import CueConfig
from cue.db.engine import Database
from cue.scheduling import ActionExecutor, SchedulePoller
from cue.soundtrack import ApiTokenAuth, GraphQLClient, RetryConfig, SoundtrackApi
from cue.store import SqlStore

logger = logging.getLogger(__name__)


@dataclass
class WorkerComponents:
    """Everything needed to run the poller or answer an ad-hoc command."""

    config: CueConfig
    database: Database
    store: SqlStore
    client: GraphQLClient
    api: SoundtrackApi
    cache: ResponseCache
    executor: ActionExecutor
    poller: SchedulePoller
    tokens: TokenManager | None = None


def create_database(config: CueConfig) -> Database:
    if config.database.url:
        return Database(database_url=config.database.url)
    return Database(database_path=config.database.path.expanduser())


def create_components(
    config: CueConfig,
    database: Database,
    http_client: httpx.AsyncClient,
) -> WorkerComponents:
    """Wire the services for a connected database and an open HTTP client."""
    store = SqlStore(database)

    backend: Cache
    if config.cache.backend == "database":
        backend = DatabaseCache(database)
    else:
        backend = InMemoryCache()
    cache = ResponseCache(backend)

    soundtrack = config.soundtrack
    authorizer = None
    if soundtrack.mode == "token" and soundtrack.api_token is not None:
        authorizer = ApiTokenAuth(soundtrack.api_token.get_secret_value())

    client = GraphQLClient(
        soundtrack.url,
        authorizer,
        http_client=http_client,
        max_concurrency=config.client.max_concurrency,
        retry=RetryConfig(
            max_attempts=config.client.max_attempts,
            backoff_seconds=config.client.backoff_seconds,
        ),
    )
    api = SoundtrackApi(client, cache)

    tokens = None
    if soundtrack.mode == "user":
        tokens = TokenManager(
            store,
            api,
            refresh_margin=timedelta(seconds=config.auth.refresh_margin_seconds),
        )
        client.authorizer = tokens

    executor = ActionExecutor(api, store, store)
    poller = SchedulePoller(executor, store, store, interval=config.worker.interval)

    logger.debug(
        "worker_components_created",
        extra={
            "soundtrack.mode": soundtrack.mode,
            "cache.backend": config.cache.backend,
            "client.max_concurrency": config.client.max_concurrency,
        },
    )
    return WorkerComponents(
        config=config,
        database=database,
        store=store,
        client=client,
        api=api,
        cache=cache,
        executor=executor,
        poller=poller,
        tokens=tokens,
    )


@asynccontextmanager
async def open_worker(config: CueConfig) -> AsyncGenerator[WorkerComponents, None]:
    """Connect the database and HTTP client, yield wired components, clean up.

    Usage:
        async with open_worker(config) as components:
            await components.poller.tick()
    """
    database = create_database(config)
    await database.connect()
    try:
        await database.create_all()
        async with httpx.AsyncClient(
            timeout=config.client.timeout_seconds
        ) as http_client:
            yield create_components(config, database, http_client)
    finally:
        await database.disconnect()
