"""Continuation-token pagination."""

from .pager import AsyncPager, FetchPage

__all__ = ["AsyncPager", "FetchPage"]
