"""Async HTTP client with throttling, response hooks and retries.

Architecture:
    HTTPClient is the transport collaborator of the polling and streaming
    runtimes. It owns the aiohttp session and absorbs transient failures
    (connection errors, timeouts, 408/429/5xx responses) before returning
    control, so the layers above only see either a response or a
    TransportError.

Design Decisions:
    - send() never raises for HTTP status codes; pollers need the status,
      headers and body of non-2xx responses
    - get()/post() keep the JSON convenience contract and raise ServiceError
    - Retry-After wins over computed backoff
    - Response hooks may return a delay that throttles the next request
"""

from __future__ import annotations

import asyncio
import inspect
import json as jsonlib
import logging
import random
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import aiohttp

from ...core.exceptions import RateLimitError, ServiceError, TransportError
from ...utils.http import get_header, is_retryable_status, parse_retry_after, resolve_url

if TYPE_CHECKING:
    from .auth import BearerTokenPolicy

logger = logging.getLogger(__name__)

ResponseHook = Callable[[aiohttp.ClientResponse], float | None | Awaitable[float | None]]


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        return get_header(self.headers, name)

    def text(self, encoding: str = "utf-8") -> str:
        return self.content.decode(encoding, errors="replace")

    def json(self) -> Any:
        """Parsed JSON body, or None for an empty or non-JSON body."""
        if not self.content:
            return None
        try:
            return jsonlib.loads(self.content)
        except ValueError:
            return None


class HTTPClient:
    """Async HTTP client wrapper."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        *,
        max_retries: int = 3,
        retry_backoff: float = 0.8,
        max_retry_backoff: float = 60.0,
        auth_policy: BearerTokenPolicy | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None
        self._response_hooks: list[ResponseHook] = []
        self._throttle_until: float | None = None
        self._max_retries = max_retries
        self._retry_backoff = retry_backoff
        self._max_retry_backoff = max_retry_backoff
        self._auth_policy = auth_policy

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    def add_response_hook(self, hook: ResponseHook) -> None:
        """Register a hook called with every raw response.

        A hook may return a delay in seconds (or an awaitable of one) to
        throttle the next request.
        """
        self._response_hooks.append(hook)

    def set_throttle(self, seconds: float) -> None:
        """Hold the next request for ``seconds``; never shortens a pending window."""
        if seconds <= 0:
            return
        until = time.time() + seconds
        if self._throttle_until is None or until > self._throttle_until:
            self._throttle_until = until

    async def _wait_for_throttle(self) -> None:
        if self._throttle_until is None:
            return
        delay = self._throttle_until - time.time()
        self._throttle_until = None
        if delay > 0:
            await asyncio.sleep(delay)

    async def _run_response_hooks(self, response: aiohttp.ClientResponse) -> None:
        for hook in self._response_hooks:
            try:
                delay = hook(response)
                if inspect.isawaitable(delay):
                    delay = await delay
                if delay:
                    self.set_throttle(float(delay))
            except Exception:  # noqa: BLE001
                logger.warning("response_hook_failed", exc_info=True)

    def _backoff(self, attempt: int) -> float:
        backoff = self._retry_backoff * (2**attempt)
        jitter = random.random() * 0.25 * backoff
        return min(backoff + jitter, self._max_retry_backoff)

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        """Issue a request and return the final response.

        Args:
            method: HTTP verb
            url: Absolute URL or path relative to base_url
            params: Query parameters
            json: JSON body
            headers: Extra request headers

        Returns:
            HttpResponse for the last attempt (any status code)

        Raises:
            TransportError: Connection errors or timeouts persisted past max_retries
        """
        target = resolve_url(self.base_url, url)
        attempt = 0
        challenged = False

        while True:
            await self._wait_for_throttle()
            request_headers = dict(headers or {})
            if self._auth_policy is not None:
                await self._auth_policy.authorize(request_headers)

            try:
                async with self.session.request(
                    method, target, params=params, json=json, headers=request_headers
                ) as response:
                    await self._run_response_hooks(response)
                    result = HttpResponse(
                        status=response.status,
                        url=str(response.url),
                        headers={k.lower(): v for k, v in response.headers.items()},
                        content=await response.read(),
                    )
            except (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError) as exc:
                if attempt >= self._max_retries:
                    raise TransportError(f"{method} {target} failed: {exc!r}", url=target) from exc
                delay = self._backoff(attempt)
                attempt += 1
                logger.warning(
                    "http_transport_retry",
                    extra={"url": target, "attempt": attempt, "delay": delay, "error": repr(exc)},
                )
                await asyncio.sleep(delay)
                continue

            if result.status == 401 and self._auth_policy is not None and not challenged:
                challenged = True
                challenge = result.header("WWW-Authenticate")
                if challenge and await self._auth_policy.on_challenge(challenge):
                    continue

            if is_retryable_status(result.status) and attempt < self._max_retries:
                delay = parse_retry_after(result.headers)
                if delay is None:
                    delay = self._backoff(attempt)
                delay = min(delay, self._max_retry_backoff)
                attempt += 1
                logger.warning(
                    "http_status_retry",
                    extra={"url": target, "status": result.status, "attempt": attempt, "delay": delay},
                )
                await asyncio.sleep(delay)
                continue

            return result

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        response = await self.send(method, url, params=params, json=json, headers=headers)
        if response.status == 429:
            retry_after = parse_retry_after(response.headers)
            raise RateLimitError(
                f"Rate limit exceeded for {method} {response.url}",
                retry_after=retry_after if retry_after is not None else 60,
            )
        if response.status >= 400:
            body = response.json()
            error = body.get("error") if isinstance(body, dict) else None
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            raise ServiceError(
                message or f"{method} {response.url} returned HTTP {response.status}",
                status_code=response.status,
                error_code=code,
            )
        return response.json()

    async def get(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """GET request returning the parsed JSON body."""
        return await self.request_json("GET", url, params=params, headers=headers)

    async def post(
        self,
        url: str,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """POST request returning the parsed JSON body."""
        return await self.request_json("POST", url, json=json, headers=headers)

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()
