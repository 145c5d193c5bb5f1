"""HTTP header helpers."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from urllib.parse import urljoin


def get_header(headers: Mapping[str, str] | None, name: str) -> str | None:
    """Case-insensitive header lookup."""
    if not headers:
        return None
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def parse_retry_after(headers: Mapping[str, str] | None, *, now: datetime | None = None) -> float | None:
    """Extract a server-suggested delay in seconds.

    Checks ``retry-after-ms`` and ``x-ms-retry-after-ms`` (milliseconds)
    before ``Retry-After`` (delta-seconds or HTTP-date).

    Args:
        headers: Response headers
        now: Reference time for HTTP-date values (defaults to current UTC time)

    Returns:
        Non-negative delay in seconds, or None if no usable header is present
    """
    for name in ("retry-after-ms", "x-ms-retry-after-ms"):
        raw = get_header(headers, name)
        if raw is None:
            continue
        try:
            return max(float(raw) / 1000.0, 0.0)
        except ValueError:
            continue

    raw = get_header(headers, "Retry-After")
    if raw is None:
        return None
    raw = raw.strip()
    try:
        return max(float(raw), 0.0)
    except ValueError:
        pass

    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    reference = now or datetime.now(tz=UTC)
    return max((when - reference).total_seconds(), 0.0)


def resolve_url(base_url: str | None, url: str) -> str:
    """Join a relative ``url`` onto ``base_url``; absolute URLs pass through."""
    if url.startswith(("http://", "https://")) or not base_url:
        return url
    if url.startswith("/"):
        return f"{base_url.rstrip('/')}{url}"
    return urljoin(base_url.rstrip("/") + "/", url)


def is_retryable_status(status: int) -> bool:
    """Whether an HTTP status is worth retrying (408, 429 and 5xx)."""
    return status in (408, 429) or status >= 500
