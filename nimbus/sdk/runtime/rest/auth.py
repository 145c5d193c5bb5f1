"""Bearer-token authentication for outbound requests.

Architecture:
    The transport treats authentication as "attach a credential to this
    request". BearerTokenPolicy caches an AccessToken obtained from a
    TokenCredential and writes the Authorization header. When the service
    answers 401 with a WWW-Authenticate challenge, the transport hands the
    challenge string to the policy, which asks its ChallengeHandler for a
    refreshed token; the request is retried once if one is produced.

Design Decisions:
    - Protocols for credential and challenge handler: Token acquisition is
      owned by an external identity library
    - Refresh margin: Tokens are renewed shortly before expiry, never after
    - Single retry on challenge: A second 401 is returned to the caller

See Also:
    - HTTPClient: Invokes authorize() and on_challenge()
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import re
import time
from collections.abc import Callable, MutableMapping, Sequence
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

_BEARER_SPLIT = re.compile(r"(?:^|,)\s*Bearer\s+", re.IGNORECASE)
_CHALLENGE_PARAM = re.compile(r'([\w-]+)="([^"]*)"')


@dataclass(frozen=True)
class AccessToken:
    """Bearer token and its absolute expiry (epoch seconds)."""

    token: str
    expires_on: float
    token_type: str = "Bearer"


class TokenCredential(Protocol):
    """Source of access tokens (supplied by an identity library)."""

    async def get_token(self, *scopes: str, claims: str | None = None) -> AccessToken: ...


class ChallengeHandler(Protocol):
    """Turns a WWW-Authenticate challenge into a refreshed token.

    Returns None when the challenge cannot be satisfied; the 401 response
    is then surfaced unchanged.
    """

    async def __call__(self, challenge: str) -> AccessToken | None: ...


def parse_challenges(header: str) -> list[dict[str, str]]:
    """Split a WWW-Authenticate header into Bearer challenge parameter maps.

    Example:
        ``Bearer a="b", c="d", Bearer d="e"`` -> ``[{"a": "b", "c": "d"}, {"d": "e"}]``
    """
    challenges: list[dict[str, str]] = []
    for segment in _BEARER_SPLIT.split(header.strip()):
        params = dict(_CHALLENGE_PARAM.findall(segment))
        if params:
            challenges.append(params)
    return challenges


def _decode_claims(value: str) -> str:
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded.replace("+", "-").replace("/", "_")).decode("utf-8")


class ClaimsChallengeHandler:
    """Handles Continuous Access Evaluation (claims) challenges.

    Example challenge:
        ``Bearer authorization_uri="https://login.example/", error="invalid_token",
        claims="eyJhY2Nlc3NfdG9rZW4iOnt9fQ=="``
    """

    def __init__(self, credential: TokenCredential, scopes: Sequence[str]) -> None:
        self._credential = credential
        self._scopes = tuple(scopes)

    async def __call__(self, challenge: str) -> AccessToken | None:
        parsed = next((c for c in parse_challenges(challenge) if c.get("claims")), None)
        if parsed is None:
            logger.info("WWW-Authenticate challenge has no claims; cannot re-authorize")
            return None

        try:
            claims = _decode_claims(parsed["claims"])
        except (binascii.Error, UnicodeDecodeError, ValueError):
            logger.warning("WWW-Authenticate claims are not valid base64")
            return None

        scopes = (parsed["scope"],) if parsed.get("scope") else self._scopes
        return await self._credential.get_token(*scopes, claims=claims)


class BearerTokenPolicy:
    """Attaches a cached bearer token to every request."""

    def __init__(
        self,
        credential: TokenCredential,
        scopes: Sequence[str],
        *,
        challenge_handler: ChallengeHandler | None = None,
        refresh_margin_seconds: float = 300.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._credential = credential
        self._scopes = tuple(scopes)
        self._challenge_handler = challenge_handler
        self._refresh_margin = refresh_margin_seconds
        self._clock = clock
        self._token: AccessToken | None = None
        self._lock = asyncio.Lock()

    def _needs_refresh(self) -> bool:
        return self._token is None or self._token.expires_on - self._clock() <= self._refresh_margin

    async def _get_token(self) -> AccessToken:
        async with self._lock:
            if self._token is None or self._needs_refresh():
                token = await self._credential.get_token(*self._scopes)
                self._token = token
                return token
            return self._token

    async def authorize(self, headers: MutableMapping[str, str]) -> None:
        """Write the Authorization header for an outbound request."""
        token = await self._get_token()
        headers["Authorization"] = f"{token.token_type} {token.token}"

    async def on_challenge(self, challenge: str) -> bool:
        """Try to satisfy a 401 challenge.

        Returns:
            True if a new token was obtained and the request should be retried
        """
        if self._challenge_handler is None:
            return False
        token = await self._challenge_handler(challenge)
        if token is None:
            return False
        async with self._lock:
            self._token = token
        return True
