"""Soundtrack API client.

Public API:
- GraphQLClient: transport with auth, concurrency ceiling and retry
- SoundtrackApi: typed operations (accounts, zones, library, assignment, login)
- paginate: cursor pagination over connection pages
"""

from cue.soundtrack.api import SoundtrackApi
from cue.soundtrack.client import (
    ApiTokenAuth,
    Authorizer,
    GraphQLClient,
    GraphQLResponse,
)
from cue.soundtrack.errors import (
    AuthenticationError,
    GraphQLResponseError,
    SoundtrackError,
    TransientTransportError,
)
from cue.soundtrack.pagination import Page, paginate, parse_connection
from cue.soundtrack.retry import RetryConfig, with_retry
from cue.soundtrack.types import (
    Account,
    AccountLibrary,
    Assignable,
    Location,
    LoginResponse,
    Zone,
)

__all__ = [
    "Account",
    "AccountLibrary",
    "ApiTokenAuth",
    "Assignable",
    "AuthenticationError",
    "Authorizer",
    "GraphQLClient",
    "GraphQLResponse",
    "GraphQLResponseError",
    "Location",
    "LoginResponse",
    "Page",
    "RetryConfig",
    "SoundtrackApi",
    "SoundtrackError",
    "TransientTransportError",
    "Zone",
    "paginate",
    "parse_connection",
    "with_retry",
]
