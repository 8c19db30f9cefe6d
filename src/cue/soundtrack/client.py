"""GraphQL transport for the Soundtrack API.

One `GraphQLClient` instance is shared by everything in the process that
talks to the API. Its semaphore is the process-wide concurrency ceiling.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

import httpx

from cue.soundtrack.errors import (
    AuthenticationError,
    GraphQLResponseError,
    TransientTransportError,
)
from cue.soundtrack.retry import NO_RETRY, RetryConfig, with_retry

logger = logging.getLogger(__name__)

ErrorPolicy = Literal["none", "all"]

# Telemetry the API attaches to every response. Logged, never enforced.
RATE_LIMIT_HEADERS = {
    "x-ratelimiting-cost": "ratelimit.cost",
    "x-ratelimiting-tokens-available": "ratelimit.tokens_available",
}


class Authorizer(Protocol):
    """Produces the Authorization header value for a request."""

    async def authorization(self) -> str: ...


class ApiTokenAuth:
    """Shared API token sent as a Basic credential ("token" mode)."""

    def __init__(self, token: str) -> None:
        if not token:
            raise ValueError("API token cannot be empty")
        self._token = token

    async def authorization(self) -> str:
        return f"Basic {self._token}"


@dataclass
class GraphQLResponse:
    """Decoded `{data, errors}` body of a GraphQL response."""

    data: Any
    errors: list[Any] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class GraphQLClient:
    """Executes GraphQL operations with auth, bounded concurrency and retry.

    Example:
        async with httpx.AsyncClient() as http:
            client = GraphQLClient(url, ApiTokenAuth(token), http_client=http)
            response = await client.request(QUERY, {"id": "..."})
    """

    def __init__(
        self,
        url: str,
        authorizer: Authorizer | None,
        *,
        http_client: httpx.AsyncClient,
        max_concurrency: int = 3,
        retry: RetryConfig | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._url = url
        self._authorizer = authorizer
        self._http = http_client
        self._max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._retry = retry or RetryConfig()
        self._in_flight = 0

    @property
    def authorizer(self) -> Authorizer | None:
        return self._authorizer

    @authorizer.setter
    def authorizer(self, authorizer: Authorizer | None) -> None:
        # User mode wires the TokenManager in after the API it refreshes through.
        self._authorizer = authorizer

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @property
    def in_flight(self) -> int:
        """Requests currently holding a concurrency slot."""
        return self._in_flight

    async def request(
        self,
        document: str,
        variables: dict[str, Any] | None = None,
        *,
        error_policy: ErrorPolicy = "none",
        authenticate: bool = True,
        retry: bool = True,
    ) -> GraphQLResponse:
        """Run one GraphQL operation.

        Args:
            document: Query or mutation document.
            variables: Operation variables.
            error_policy: "none" raises on any GraphQL error; "all" returns
                partial data together with the errors.
            authenticate: Send the Authorization header. Disabled for login
                and token refresh.
            retry: Retry transient failures according to the retry config.

        Raises:
            AuthenticationError: Credentials are missing or were rejected.
            TransientTransportError: Network failure or non-2xx response after
                the retry budget is spent.
            GraphQLResponseError: The response had errors and error_policy is
                "none".
        """
        operation = _operation_name(document)
        body = {"query": document, "variables": variables or {}}
        logger.debug(
            "graphql_request",
            extra={"graphql.operation": operation, "graphql.body": json.dumps(body)},
        )

        async def attempt() -> GraphQLResponse:
            headers = {"Content-Type": "application/json"}
            if authenticate:
                headers["Authorization"] = await self._authorization()
            # Acquire the slot after the credential: a token refresh issues its
            # own request and must not wait behind a slot we are holding.
            async with self._semaphore:
                self._in_flight += 1
                try:
                    response = await self._http.post(
                        self._url, json=body, headers=headers
                    )
                except httpx.TransportError as e:
                    raise TransientTransportError(
                        f"GraphQL transport error: {e}"
                    ) from e
                finally:
                    self._in_flight -= 1
            return self._decode(operation, response)

        config = self._retry if retry else NO_RETRY
        result = await with_retry(attempt, config=config, operation_name=operation)

        if result.errors and error_policy != "all":
            for i, error in enumerate(result.errors, start=1):
                logger.error(
                    "graphql_error",
                    extra={
                        "graphql.operation": operation,
                        "graphql.error_index": f"{i}/{len(result.errors)}",
                        "error.message": repr(error),
                    },
                )
            raise GraphQLResponseError(result.errors, data=result.data)

        return result

    async def _authorization(self) -> str:
        if self._authorizer is None:
            raise AuthenticationError("No credentials configured")
        return await self._authorizer.authorization()

    def _decode(self, operation: str, response: httpx.Response) -> GraphQLResponse:
        self._log_rate_limit(operation, response)

        status = response.status_code
        if status in (401, 403):
            raise AuthenticationError(
                f"GraphQL request was rejected: {status}", status_code=status
            )
        if not response.is_success:
            logger.error(
                "graphql_unexpected_status",
                extra={"graphql.operation": operation, "http.status_code": status},
            )
            raise TransientTransportError(
                f"GraphQL request returned unexpected status: {status}",
                status_code=status,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TransientTransportError(
                f"GraphQL response was not valid JSON: {e}", status_code=status
            ) from e
        if not isinstance(payload, dict):
            raise TransientTransportError(
                "GraphQL response was not a JSON object", status_code=status
            )

        return GraphQLResponse(
            data=payload.get("data"),
            errors=list(payload.get("errors") or []),
        )

    def _log_rate_limit(self, operation: str, response: httpx.Response) -> None:
        telemetry = {
            key: response.headers[header]
            for header, key in RATE_LIMIT_HEADERS.items()
            if header in response.headers
        }
        if telemetry:
            logger.debug(
                "graphql_rate_limit",
                extra={"graphql.operation": operation, **telemetry},
            )


def _operation_name(document: str) -> str:
    """Best-effort operation name for logging, e.g. `Scheduler_Zones`."""
    for keyword in ("query", "mutation"):
        for line in document.splitlines():
            stripped = line.strip()
            if stripped.startswith(f"{keyword} "):
                name = stripped[len(keyword) + 1 :].split("(")[0].split("{")[0]
                return name.strip() or keyword
    return "anonymous"
