"""REST transport facade over HTTPClient."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ...config import TransportSettings
from .auth import BearerTokenPolicy
from .http_client import HTTPClient, HttpResponse, ResponseHook


class RESTTransport:
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
        self._http = HTTPClient(
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            retry_backoff=retry_backoff,
            max_retry_backoff=max_retry_backoff,
            auth_policy=auth_policy,
        )

    @classmethod
    def from_settings(
        cls, settings: TransportSettings, *, auth_policy: BearerTokenPolicy | None = None
    ) -> RESTTransport:
        return cls(
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            max_retries=settings.max_retries,
            retry_backoff=settings.retry_backoff_seconds,
            max_retry_backoff=settings.max_retry_backoff_seconds,
            auth_policy=auth_policy,
        )

    def add_response_hook(self, hook: ResponseHook) -> None:
        self._http.add_response_hook(hook)

    async def get(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self._http.get(path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self._http.post(path, json=json_body, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self._http.request_json(
            method, path, params=params, json=json_body, headers=headers
        )

    async def send(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        return await self._http.send(method, path, params=params, json=json_body, headers=headers)

    async def close(self) -> None:
        await self._http.close()

    async def __aenter__(self) -> RESTTransport:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
