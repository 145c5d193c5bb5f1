"""Unit tests for AsyncPager continuation-token iteration."""

from __future__ import annotations

import asyncio

import pytest

from nimbus.sdk.core import OperationCancelled, PaginationError
from nimbus.sdk.models import Page
from nimbus.sdk.runtime.paging import AsyncPager


def _pages(*pages: Page[int]):
    """Build a fetch_page serving ``pages`` keyed by the token that leads to them."""
    by_token: dict[str | None, Page[int]] = {}
    token: str | None = None
    for page in pages:
        by_token[token] = page
        token = page.continuation_token
    calls: list[tuple[str | None, int | None]] = []

    async def fetch_page(token: str | None, size: int | None) -> Page[int]:
        calls.append((token, size))
        return by_token[token]

    return fetch_page, calls


class TestAsyncPager:
    """Test item and page iteration."""

    @pytest.mark.asyncio
    async def test_items_across_pages(self):
        """Test pages of 2, 2 and 1 items yield 5 items with three fetches."""
        fetch_page, calls = _pages(
            Page([1, 2], "t1"),
            Page([3, 4], "t2"),
            Page([5], None),
        )
        pager = AsyncPager(fetch_page, max_page_size=2)

        items = [item async for item in pager]

        assert items == [1, 2, 3, 4, 5]
        assert calls == [(None, 2), ("t1", 2), ("t2", 2)]
        assert pager.is_exhausted
        assert pager.continuation_token is None

    @pytest.mark.asyncio
    async def test_empty_page_with_token_continues(self):
        """Test an empty page carrying a token does not end iteration."""
        fetch_page, _ = _pages(Page([], "t1"), Page([], "t2"), Page([7], None))

        items = [item async for item in AsyncPager(fetch_page)]

        assert items == [7]

    @pytest.mark.asyncio
    async def test_lazy_fetching(self):
        """Test the next page is requested only after the current one is consumed."""
        fetch_page, calls = _pages(Page([1], "t1"), Page([2], None))
        pages = AsyncPager(fetch_page).by_page()

        first = await anext(pages)

        assert first.items == [1]
        assert len(calls) == 1
        await pages.aclose()

    @pytest.mark.asyncio
    async def test_continuation_token_resumes_listing(self):
        """Test the exposed token of an interrupted listing resumes it."""
        fetch_page, _ = _pages(Page([1, 2], "t1"), Page([3], None))
        pager = AsyncPager(fetch_page)
        pages = pager.by_page()
        await anext(pages)
        saved = pager.continuation_token
        await pages.aclose()

        resumed = [item async for item in AsyncPager(fetch_page, continuation_token=saved)]

        assert saved == "t1"
        assert resumed == [3]

    @pytest.mark.asyncio
    async def test_by_page_overrides(self):
        fetch_page, calls = _pages(Page([1], "t1"), Page([2], None))
        pager = AsyncPager(fetch_page, max_page_size=10)

        pages = [page async for page in pager.by_page(continuation_token="t1", max_page_size=1)]

        assert [page.items for page in pages] == [[2]]
        assert calls == [("t1", 1)]

    @pytest.mark.asyncio
    async def test_repeated_token_raises(self):
        """Test a token handed back twice in a row stops the listing."""

        async def fetch_page(token, size):
            return Page([1], "same")

        pager = AsyncPager(fetch_page)
        with pytest.raises(PaginationError) as exc_info:
            async for _ in pager:
                pass

        assert exc_info.value.continuation_token == "same"

    @pytest.mark.asyncio
    async def test_cancel_between_pages(self):
        cancel = asyncio.Event()
        fetch_page, calls = _pages(Page([1], "t1"), Page([2], None))
        pager = AsyncPager(fetch_page, cancel_event=cancel)

        seen = []
        with pytest.raises(OperationCancelled):
            async for item in pager:
                seen.append(item)
                cancel.set()

        assert seen == [1]
        assert len(calls) == 1
        assert pager.continuation_token == "t1"
