"""Unit tests for HTTP header helpers."""

from datetime import UTC, datetime

import pytest

from nimbus.sdk.utils import get_header, is_retryable_status, parse_retry_after, resolve_url


def test_get_header_case_insensitive():
    headers = {"Operation-Location": "https://svc.example/op"}
    assert get_header(headers, "operation-location") == "https://svc.example/op"
    assert get_header(headers, "Location") is None
    assert get_header(None, "Location") is None


class TestParseRetryAfter:
    """Test Retry-After variants."""

    def test_seconds(self):
        assert parse_retry_after({"Retry-After": "5"}) == 5.0

    def test_milliseconds_win(self):
        headers = {"retry-after-ms": "1500", "Retry-After": "10"}
        assert parse_retry_after(headers) == 1.5

    def test_x_ms_milliseconds(self):
        assert parse_retry_after({"x-ms-retry-after-ms": "250"}) == 0.25

    def test_http_date(self):
        now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
        headers = {"Retry-After": "Mon, 01 Jan 2024 12:00:30 GMT"}
        assert parse_retry_after(headers, now=now) == pytest.approx(30.0)

    def test_past_http_date_is_zero(self):
        now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
        headers = {"Retry-After": "Mon, 01 Jan 2024 11:00:00 GMT"}
        assert parse_retry_after(headers, now=now) == 0.0

    def test_missing_or_garbage(self):
        assert parse_retry_after({}) is None
        assert parse_retry_after({"Retry-After": "soon"}) is None


@pytest.mark.parametrize(
    ("base", "url", "expected"),
    [
        (None, "/ops/1", "/ops/1"),
        ("https://svc.example", "/ops/1", "https://svc.example/ops/1"),
        ("https://svc.example/api/", "ops/1", "https://svc.example/api/ops/1"),
        ("https://svc.example", "https://other.example/x", "https://other.example/x"),
    ],
)
def test_resolve_url(base, url, expected):
    assert resolve_url(base, url) == expected


@pytest.mark.parametrize("status", [408, 429, 500, 503, 504, 599])
def test_retryable_status(status):
    assert is_retryable_status(status)


@pytest.mark.parametrize("status", [200, 400, 401, 404, 409, 418])
def test_non_retryable_status(status):
    assert not is_retryable_status(status)
