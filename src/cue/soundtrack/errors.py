"""Errors raised by the Soundtrack API client."""

from typing import Any


class SoundtrackError(Exception):
    """Base class for Soundtrack API failures."""


class TransientTransportError(SoundtrackError):
    """Network failure or non-2xx response. Retried by the client."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(SoundtrackError):
    """Missing or rejected credentials. Never retried."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GraphQLResponseError(SoundtrackError):
    """The response carried a GraphQL `errors` array."""

    def __init__(self, errors: list[Any], data: Any = None):
        self.errors = errors
        self.data = data
        super().__init__(
            f"GraphQL request returned {len(errors)} error(s): "
            + "; ".join(_error_message(e) for e in errors)
        )


def _error_message(error: Any) -> str:
    if isinstance(error, dict) and "message" in error:
        return str(error["message"])
    return repr(error)
