"""Lazy iteration over continuation-token paginated listings.

Architecture:
    AsyncPager wraps a ``fetch_page(continuation_token, max_page_size)``
    coroutine. Pages are requested only when the previous one has been
    consumed; iteration ends on the first page that carries no
    continuation token. Items can be consumed flat (``async for item in
    pager``) or page by page (``pager.by_page()``).

Design Decisions:
    - Page size is a hint: pages with fewer or more items are accepted,
      and empty pages with a token do not end iteration
    - A token handed back twice in a row raises PaginationError instead of
      looping forever
    - continuation_token exposes the token of the next unfetched page so a
      listing can be resumed in another process
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from time import perf_counter
from typing import Generic, TypeVar

from ...core.context import TraceContext, resolve_context
from ...core.exceptions import OperationCancelled, PaginationError
from ...models.records import Page

T = TypeVar("T")

FetchPage = Callable[[str | None, int | None], Awaitable[Page[T]]]


class AsyncPager(Generic[T]):
    """Async iterator over the items of a paginated listing."""

    def __init__(
        self,
        fetch_page: FetchPage[T],
        *,
        max_page_size: int | None = None,
        continuation_token: str | None = None,
        cancel_event: asyncio.Event | None = None,
        context: TraceContext | None = None,
    ) -> None:
        """Initialize pager.

        Args:
            fetch_page: Coroutine returning the page for a token (None = first page)
            max_page_size: Page size hint passed to fetch_page
            continuation_token: Token to start from (resumes a previous listing)
            cancel_event: Set to stop before the next page request
            context: Observability context
        """
        self._fetch_page = fetch_page
        self._max_page_size = max_page_size
        self._start_token = continuation_token
        self._continuation_token = continuation_token
        self._cancel_event = cancel_event
        self._exhausted = False
        self._context = resolve_context(context, "pager")

    @property
    def continuation_token(self) -> str | None:
        """Token of the next page that has not been fetched yet."""
        return self._continuation_token

    @property
    def is_exhausted(self) -> bool:
        """Whether the last page has been fetched."""
        return self._exhausted

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iter_items()

    async def _iter_items(self) -> AsyncIterator[T]:
        async for page in self.by_page():
            for item in page.items:
                yield item

    async def by_page(
        self,
        *,
        continuation_token: str | None = None,
        max_page_size: int | None = None,
    ) -> AsyncIterator[Page[T]]:
        """Iterate pages lazily.

        Args:
            continuation_token: Start from this token instead of the pager's
            max_page_size: Override the pager's page size hint

        Yields:
            Pages in service order

        Raises:
            PaginationError: If the service repeats a continuation token
            OperationCancelled: If cancel_event is set between pages
        """
        token = continuation_token if continuation_token is not None else self._start_token
        size = max_page_size if max_page_size is not None else self._max_page_size
        page_index = 0

        while True:
            if self._cancel_event is not None and self._cancel_event.is_set():
                raise OperationCancelled("Listing cancelled before next page request")

            started = perf_counter()
            page = await self._fetch_page(token, size)
            next_token = page.continuation_token or None
            self._context.debug(
                "page_fetched",
                page_index=page_index,
                items=len(page.items),
                has_more=next_token is not None,
                latency_ms=(perf_counter() - started) * 1000.0,
            )

            if next_token is not None and next_token == token:
                raise PaginationError(
                    "Service returned the same continuation token twice", continuation_token=token
                )

            self._continuation_token = next_token
            self._exhausted = next_token is None
            yield page

            if next_token is None:
                return
            token = next_token
            page_index += 1
