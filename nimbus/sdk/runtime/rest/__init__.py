"""REST runtime abstractions."""

from .auth import (
    AccessToken,
    BearerTokenPolicy,
    ChallengeHandler,
    ClaimsChallengeHandler,
    TokenCredential,
    parse_challenges,
)
from .http_client import HTTPClient, HttpResponse
from .runner import ResponseAdapter, RestEndpointSpec, RestRunner, ValueListAdapter, next_link
from .transport import RESTTransport

__all__ = [
    "AccessToken",
    "BearerTokenPolicy",
    "ChallengeHandler",
    "ClaimsChallengeHandler",
    "TokenCredential",
    "parse_challenges",
    "HTTPClient",
    "HttpResponse",
    "RESTTransport",
    "RestRunner",
    "RestEndpointSpec",
    "ResponseAdapter",
    "ValueListAdapter",
    "next_link",
]
