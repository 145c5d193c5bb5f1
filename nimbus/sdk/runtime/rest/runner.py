"""REST request runner using endpoint specs and response adapters.

Operations are described declaratively by RestEndpointSpec instead of
hand-written per-operation methods. The runner executes a spec once
(run), as a paged listing (paginate), or as the initiation of a
long-running operation (begin).
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ...core.context import TraceContext
from ...models.records import Page
from ..paging.pager import AsyncPager
from .transport import RESTTransport

if TYPE_CHECKING:
    from ...models.operation import OperationHandle
    from ..polling.poller import LROPoller


@dataclass(frozen=True)
class RestEndpointSpec:
    id: str
    method: str  # "GET" | "POST" | "PUT" | "PATCH" | "DELETE"
    build_path: Callable[[dict[str, Any]], str]
    build_query: Callable[[dict[str, Any]], dict[str, Any]] | None = None
    build_body: Callable[[dict[str, Any]], dict[str, Any]] | None = None
    build_headers: Callable[[dict[str, Any]], dict[str, str]] | None = None
    # Extracts the continuation token of a listing response (None on the last page)
    next_cursor: Callable[[Any], str | None] | None = None


class ResponseAdapter:
    def parse(self, response: Any, params: dict[str, Any]) -> Any:
        return response


class ValueListAdapter(ResponseAdapter):
    """Items of a ``{"value": [...], "nextLink": ...}`` listing page."""

    def __init__(self, items_key: str = "value") -> None:
        self.items_key = items_key

    def parse(self, response: Any, params: dict[str, Any]) -> list[Any]:
        if isinstance(response, list):
            return response
        if isinstance(response, dict):
            return list(response.get(self.items_key) or [])
        return []


def next_link(response: Any) -> str | None:
    """Default continuation extractor: the ``nextLink`` field."""
    if isinstance(response, dict):
        return response.get("nextLink") or None
    return None


def _is_absolute(url: str) -> bool:
    return url.startswith(("http://", "https://"))


class RestRunner:
    def __init__(self, transport: RESTTransport) -> None:
        self._t = transport

    async def _execute(self, spec: RestEndpointSpec, params: dict[str, Any]) -> Any:
        path = spec.build_path(params)
        query = spec.build_query(params) if spec.build_query else None
        body = spec.build_body(params) if spec.build_body else None
        headers = spec.build_headers(params) if spec.build_headers else None

        method = spec.method.upper()
        if method == "GET":
            return await self._t.get(path, params=query, headers=headers)
        if method == "POST":
            return await self._t.post(path, json_body=body, headers=headers)
        return await self._t.request(method, path, params=query, json_body=body, headers=headers)

    async def run(
        self, *, spec: RestEndpointSpec, adapter: ResponseAdapter, params: dict[str, Any]
    ) -> Any:
        data = await self._execute(spec, params)
        return adapter.parse(data, params)

    def paginate(
        self,
        *,
        spec: RestEndpointSpec,
        params: dict[str, Any],
        adapter: ResponseAdapter | None = None,
        max_page_size: int | None = None,
        continuation_token: str | None = None,
        cancel_event: asyncio.Event | None = None,
        context: TraceContext | None = None,
    ) -> AsyncPager[Any]:
        """Build a lazy pager over a listing endpoint.

        Builders receive ``params`` extended with ``continuation_token`` and
        ``max_page_size`` so they can encode them as the service expects.
        A continuation token that is an absolute URL (``nextLink``) is
        fetched as-is.
        """
        page_adapter = adapter or ValueListAdapter()
        extract = spec.next_cursor or next_link

        async def fetch_page(token: str | None, size: int | None) -> Page[Any]:
            page_params = {**params, "continuation_token": token, "max_page_size": size}
            if token and _is_absolute(token):
                headers = spec.build_headers(page_params) if spec.build_headers else None
                data = await self._t.get(token, headers=headers)
            else:
                data = await self._execute(spec, page_params)
            return Page(
                items=list(page_adapter.parse(data, page_params)),
                continuation_token=extract(data),
            )

        return AsyncPager(
            fetch_page,
            max_page_size=max_page_size,
            continuation_token=continuation_token,
            cancel_event=cancel_event,
            context=context,
        )

    async def begin(
        self,
        *,
        spec: RestEndpointSpec,
        params: dict[str, Any],
        poller: LROPoller,
        context: TraceContext | None = None,
    ) -> OperationHandle:
        """Initiate the long-running operation described by ``spec``."""
        return await poller.begin(
            spec.method,
            spec.build_path(params),
            params=spec.build_query(params) if spec.build_query else None,
            json_body=spec.build_body(params) if spec.build_body else None,
            headers=spec.build_headers(params) if spec.build_headers else None,
            context=context,
        )
