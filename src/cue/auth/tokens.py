"""User-mode token lifecycle.

The TokenManager is the only reader and writer of the persisted credential.
Every read, refresh, login and logout happens under one lock so concurrent
callers never refresh at the same time and invalidate each other's result.
"""

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from typing import Protocol

from cue.soundtrack.errors import AuthenticationError
from cue.soundtrack.types import LoginResponse
from cue.store.protocols import TokenStore
from cue.store.types import AuthToken

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_MARGIN = timedelta(seconds=60)


class TokenExchange(Protocol):
    """Remote operations that issue credentials."""

    async def login(self, email: str, password: str) -> LoginResponse: ...

    async def refresh(self, refresh_token: str) -> LoginResponse: ...


class TokenManager:
    """Hands out a usable bearer token, refreshing it when close to expiry.

    Also acts as the GraphQL client's authorizer in "user" mode.
    """

    def __init__(
        self,
        store: TokenStore,
        exchange: TokenExchange,
        refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN,
    ) -> None:
        self._store = store
        self._exchange = exchange
        self._refresh_margin = refresh_margin
        self._lock = asyncio.Lock()

    async def get_usable_token(self) -> str | None:
        """Return a token valid for longer than the refresh margin.

        Returns None when no credential is stored or it has expired without
        a refresh token; the user has to log in again.

        Raises:
            SoundtrackError: The refresh exchange failed.
        """
        async with self._lock:
            stored = await self._store.load_token()
            now = datetime.now(UTC)
            if stored is not None and stored.expires_at - now > self._refresh_margin:
                return stored.token

            if stored is None or not stored.refresh_token:
                logger.info("token_missing")
                return None

            logger.info(
                "token_refreshing",
                extra={"token.expires_at": stored.expires_at.isoformat()},
            )
            try:
                response = await self._exchange.refresh(stored.refresh_token)
            except Exception as e:
                logger.error("token_refresh_failed", extra={"error.message": str(e)})
                raise
            refreshed = _to_token(response)
            await self._store.save_token(refreshed)
            logger.info(
                "token_refreshed",
                extra={"token.expires_at": refreshed.expires_at.isoformat()},
            )
            return refreshed.token

    async def authorization(self) -> str:
        token = await self.get_usable_token()
        if token is None:
            raise AuthenticationError("Not logged in. Run `cue auth login` first.")
        return f"Bearer {token}"

    async def login(self, email: str, password: str) -> AuthToken:
        """Log in with user credentials and persist the resulting token."""
        async with self._lock:
            response = await self._exchange.login(email, password)
            token = _to_token(response)
            await self._store.save_token(token)
        logger.info(
            "token_login", extra={"token.expires_at": token.expires_at.isoformat()}
        )
        return token

    async def logout(self) -> bool:
        """Forget the stored credential. Returns False if there was none."""
        async with self._lock:
            removed = await self._store.delete_token()
        logger.info("token_logout", extra={"token.removed": removed})
        return removed

    async def current(self) -> AuthToken | None:
        """The stored credential, without refreshing it."""
        async with self._lock:
            return await self._store.load_token()


def _to_token(response: LoginResponse) -> AuthToken:
    return AuthToken(
        token=response.token,
        expires_at=response.expires_at,
        refresh_token=response.refresh_token,
    )
