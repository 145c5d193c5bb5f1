"""Unit tests for bearer-token authentication and claims challenges."""

from __future__ import annotations

import asyncio
import base64
import json
from unittest.mock import AsyncMock

import pytest

from nimbus.sdk.runtime.rest import (
    AccessToken,
    BearerTokenPolicy,
    ClaimsChallengeHandler,
    parse_challenges,
)

CLAIMS = '{"access_token":{"nbf":{"essential":true,"value":"1726077595"}}}'
ENCODED_CLAIMS = base64.b64encode(CLAIMS.encode()).decode().rstrip("=")


def test_parse_challenges_multiple():
    header = 'Bearer a="b", c="d", Bearer d="e", f="g"'
    assert parse_challenges(header) == [{"a": "b", "c": "d"}, {"d": "e", "f": "g"}]


def test_parse_challenges_without_params():
    assert parse_challenges("Basic") == []


class TestClaimsChallengeHandler:
    """Test CAE challenge handling."""

    @pytest.mark.asyncio
    async def test_decodes_claims_and_requests_token(self):
        """Test unpadded base64 claims are decoded and passed to the credential."""
        credential = AsyncMock()
        credential.get_token = AsyncMock(return_value=AccessToken("new", 9_999_999_999))
        handler = ClaimsChallengeHandler(credential, ["https://svc.example/.default"])
        challenge = (
            'Bearer authorization_uri="https://login.example/", '
            f'error="insufficient_claims", claims="{ENCODED_CLAIMS}"'
        )

        token = await handler(challenge)

        assert token.token == "new"
        credential.get_token.assert_awaited_once_with("https://svc.example/.default", claims=CLAIMS)
        assert json.loads(credential.get_token.call_args.kwargs["claims"])["access_token"]

    @pytest.mark.asyncio
    async def test_scope_in_challenge_overrides(self):
        credential = AsyncMock()
        credential.get_token = AsyncMock(return_value=AccessToken("new", 1))
        handler = ClaimsChallengeHandler(credential, ["default-scope"])

        await handler(f'Bearer scope="other-scope", claims="{ENCODED_CLAIMS}"')

        assert credential.get_token.call_args.args == ("other-scope",)

    @pytest.mark.asyncio
    async def test_challenge_without_claims(self):
        credential = AsyncMock()
        handler = ClaimsChallengeHandler(credential, ["scope"])

        assert await handler('Bearer error="invalid_token"') is None
        credential.get_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_claims(self):
        credential = AsyncMock()
        handler = ClaimsChallengeHandler(credential, ["scope"])

        assert await handler('Bearer claims="__79"') is None
        credential.get_token.assert_not_called()


class TestBearerTokenPolicy:
    """Test token caching, refresh and challenges."""

    @pytest.mark.asyncio
    async def test_token_is_cached_until_refresh_margin(self):
        now = [1000.0]
        credential = AsyncMock()
        credential.get_token = AsyncMock(
            side_effect=[AccessToken("t1", 2000.0), AccessToken("t2", 5000.0)]
        )
        policy = BearerTokenPolicy(
            credential, ["scope"], refresh_margin_seconds=300, clock=lambda: now[0]
        )

        headers: dict[str, str] = {}
        await policy.authorize(headers)
        await policy.authorize(headers)
        assert headers["Authorization"] == "Bearer t1"
        assert credential.get_token.await_count == 1

        now[0] = 1750.0  # inside the refresh margin
        await policy.authorize(headers)
        assert headers["Authorization"] == "Bearer t2"
        assert credential.get_token.await_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_fetch(self):
        credential = AsyncMock()
        credential.get_token = AsyncMock(return_value=AccessToken("t1", 9_999_999_999))
        policy = BearerTokenPolicy(credential, ["scope"])
        requests: list[dict[str, str]] = [{}, {}, {}]

        await asyncio.gather(*(policy.authorize(headers) for headers in requests))

        assert [headers["Authorization"] for headers in requests] == ["Bearer t1"] * 3
        credential.get_token.assert_awaited_once_with("scope")

    @pytest.mark.asyncio
    async def test_on_challenge_without_handler(self):
        policy = BearerTokenPolicy(AsyncMock(), ["scope"])
        assert await policy.on_challenge('Bearer claims="x"') is False

    @pytest.mark.asyncio
    async def test_on_challenge_replaces_token(self):
        credential = AsyncMock()
        credential.get_token = AsyncMock(return_value=AccessToken("old", 9_999_999_999))
        handler = AsyncMock(return_value=AccessToken("fresh", 9_999_999_999))
        policy = BearerTokenPolicy(credential, ["scope"], challenge_handler=handler)

        assert await policy.on_challenge('Bearer claims="x"') is True

        headers: dict[str, str] = {}
        await policy.authorize(headers)
        assert headers["Authorization"] == "Bearer fresh"
        credential.get_token.assert_not_called()
