"""Typed Soundtrack API operations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from cue.cache.response import ResponseCache
from cue.soundtrack import queries
from cue.soundtrack.client import GraphQLClient
from cue.soundtrack.errors import GraphQLResponseError
from cue.soundtrack.pagination import Page, paginate, parse_connection
from cue.soundtrack.types import (
    Account,
    AccountLibrary,
    Assignable,
    Location,
    LoginResponse,
    Zone,
    to_dict,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)


class SoundtrackApi:
    """Accounts, zones, music library and assignment on top of GraphQLClient.

    Reads of accounts, zones and libraries go through the response cache when
    one is configured; pass `skip_cache=True` to force a live fetch.
    """

    def __init__(
        self, client: GraphQLClient, cache: ResponseCache | None = None
    ) -> None:
        self._client = client
        self._cache = cache

    @property
    def client(self) -> GraphQLClient:
        return self._client

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def get_accounts(self, skip_cache: bool = False) -> list[Account]:
        async def fetch() -> list[Account]:
            res = await self._client.request(queries.ACCOUNTS)
            edges = res.data["me"]["accounts"]["edges"]
            return [Account.from_node(edge["node"]) for edge in edges]

        return await self._cached(
            "accounts",
            fetch,
            deserialize=lambda data: [Account(**item) for item in data],
            skip_cache=skip_cache,
        )

    async def get_account(self, account_id: str) -> Account:
        res = await self._client.request(queries.ACCOUNT, {"id": account_id})
        return Account.from_node(res.data["account"])

    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------

    async def get_account_zones(
        self, account_id: str, skip_cache: bool = False
    ) -> list[Zone]:
        """All zones of an account, following the connection cursor.

        Zones without a location produce GraphQL errors next to otherwise
        valid data; those are tolerated here.
        """

        async def fetch_page(cursor: str | None) -> Page[Zone]:
            res = await self._client.request(
                queries.ACCOUNT_ZONES,
                {"id": account_id, "cursor": cursor},
                error_policy="all",
            )
            if not res.data or not res.data.get("account"):
                raise GraphQLResponseError(res.errors, data=res.data)
            if res.errors:
                logger.warning(
                    "zones_partial_errors",
                    extra={
                        "account.id": account_id,
                        "graphql.error_count": len(res.errors),
                    },
                )
            return parse_connection(
                res.data["account"]["soundZones"],
                lambda node: Zone.from_node(node, account_id),
            )

        async def fetch() -> list[Zone]:
            return await paginate(fetch_page)

        return await self._cached(
            f"account:{account_id}:zones",
            fetch,
            deserialize=_zones_from_json,
            skip_cache=skip_cache,
        )

    async def get_zone(self, zone_id: str) -> Zone:
        res = await self._client.request(queries.ZONE, {"id": zone_id})
        node = res.data["soundZone"]
        return Zone.from_node(node, node["account"]["id"])

    async def get_zones(self, skip_cache: bool = False) -> list[Zone]:
        """Zones across every account, fetched concurrently per account."""

        async def fetch() -> list[Zone]:
            accounts = await self.get_accounts(skip_cache=skip_cache)
            per_account = await asyncio.gather(
                *(
                    self.get_account_zones(account.id, skip_cache=skip_cache)
                    for account in accounts
                )
            )
            return [zone for zones in per_account for zone in zones]

        return await self._cached(
            "zones", fetch, deserialize=_zones_from_json, skip_cache=skip_cache
        )

    # ------------------------------------------------------------------
    # Music
    # ------------------------------------------------------------------

    async def assign_music(self, zone_id: str, play_from_id: str) -> None:
        await self._client.request(
            queries.ASSIGN, {"zoneId": zone_id, "playFromId": play_from_id}
        )

    async def get_assignable(self, assignable_id: str) -> Assignable | None:
        """Look up a playlist or schedule by id.

        The id only resolves for one of the two types, so the other lookup
        always errors; only a response without any data is a failure.
        """
        res = await self._client.request(
            queries.ASSIGNABLE, {"assignableId": assignable_id}, error_policy="all"
        )
        if not res.data:
            logger.info(
                "assignable_lookup_failed",
                extra={"assignable.id": assignable_id, "error.message": repr(res.errors)},
            )
            raise GraphQLResponseError(res.errors, data=res.data)
        item = res.data.get("playlist") or res.data.get("schedule")
        return Assignable.from_node(item) if item else None

    async def get_library(
        self, account_id: str, skip_cache: bool = False
    ) -> AccountLibrary:
        async def fetch() -> AccountLibrary:
            res = await self._client.request(
                queries.LIBRARY, {"accountId": account_id}
            )
            library = res.data["account"]["musicLibrary"]
            return AccountLibrary(
                playlists=[
                    Assignable.from_node(edge["node"])
                    for edge in library["playlists"]["edges"]
                ],
                schedules=[
                    Assignable.from_node(edge["node"])
                    for edge in library["schedules"]["edges"]
                ],
            )

        return await self._cached(
            f"account:{account_id}:library",
            fetch,
            deserialize=_library_from_json,
            skip_cache=skip_cache,
        )

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> LoginResponse:
        res = await self._client.request(
            queries.LOGIN,
            {"email": email, "password": password},
            authenticate=False,
            retry=False,
        )
        return LoginResponse.from_payload(res.data["loginUser"])

    async def refresh(self, refresh_token: str) -> LoginResponse:
        """Exchange a refresh token. Not retried: a stale token fails fast."""
        res = await self._client.request(
            queries.REFRESH,
            {"refreshToken": refresh_token},
            authenticate=False,
            retry=False,
        )
        return LoginResponse.from_payload(res.data["refreshLogin"])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _cached(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        *,
        deserialize: Callable[[Any], T],
        skip_cache: bool,
    ) -> T:
        if self._cache is None:
            return await fetch()
        return await self._cache.get_or_fetch(
            key,
            fetch,
            serialize=to_dict,
            deserialize=deserialize,
            skip_cache=skip_cache,
        )


def _zone_from_json(data: dict[str, Any]) -> Zone:
    location = data.get("location")
    return Zone(
        id=data["id"],
        name=data["name"],
        account_id=data["account_id"],
        location=Location(**location) if location else None,
    )


def _zones_from_json(data: list[dict[str, Any]]) -> list[Zone]:
    return [_zone_from_json(item) for item in data]


def _library_from_json(data: dict[str, Any]) -> AccountLibrary:
    return AccountLibrary(
        playlists=[Assignable(**item) for item in data["playlists"]],
        schedules=[Assignable(**item) for item in data["schedules"]],
    )
