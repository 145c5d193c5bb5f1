"""Utility functions."""

from .http import get_header, is_retryable_status, parse_retry_after, resolve_url

__all__ = ["get_header", "is_retryable_status", "parse_retry_after", "resolve_url"]
