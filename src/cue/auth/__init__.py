"""Authentication for the Soundtrack API in user mode."""

from cue.auth.tokens import DEFAULT_REFRESH_MARGIN, TokenExchange, TokenManager

__all__ = [
    "DEFAULT_REFRESH_MARGIN",
    "TokenExchange",
    "TokenManager",
]
