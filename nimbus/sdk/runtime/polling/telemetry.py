"""Structured logging for long-running operation polling.

This module provides telemetry hooks for the poller, emitting structured
records through the caller's TraceContext.
"""

from __future__ import annotations

from ...core.context import TraceContext
from ...models.operation import OperationHandle


def log_operation_started(context: TraceContext, *, handle: OperationHandle) -> None:
    """Log creation of an operation handle.

    Args:
        context: Observability context of the operation
        handle: Handle built from the initiating response
    """
    context.info(
        "lro_started",
        method=handle.method,
        request_url=handle.request_url,
        target_url=handle.target_url,
        strategy=handle.strategy.value,
        status=handle.status.value,
    )


def log_poll_completed(
    context: TraceContext,
    *,
    handle: OperationHandle,
    http_status: int,
    latency_ms: float,
) -> None:
    """Log one status check.

    Args:
        context: Observability context of the operation
        handle: Handle derived from the status response
        http_status: HTTP status code of the status response
        latency_ms: Round-trip latency in milliseconds
    """
    context.debug(
        "lro_poll_completed",
        target_url=handle.target_url,
        status=handle.status.value,
        http_status=http_status,
        poll_count=handle.poll_count,
        retry_after=handle.retry_after,
        latency_ms=latency_ms,
    )


def log_poll_transient_error(
    context: TraceContext,
    *,
    handle: OperationHandle,
    error_type: str,
    error_message: str,
    delay: float,
) -> None:
    """Log a transient status-check failure that will be retried."""
    context.warning(
        "lro_poll_transient_error",
        target_url=handle.target_url,
        status=handle.status.value,
        error_type=error_type,
        error_message=error_message,
        delay=delay,
    )


def log_operation_finished(context: TraceContext, *, handle: OperationHandle) -> None:
    """Log arrival at a terminal state."""
    fields: dict[str, object] = {
        "target_url": handle.target_url,
        "status": handle.status.value,
        "poll_count": handle.poll_count,
    }
    if handle.error is not None:
        fields["error_code"] = handle.error.code
        fields["error_message"] = handle.error.message
        context.error("lro_finished", **fields)
        return
    context.info("lro_finished", **fields)


def log_operation_cancelled(context: TraceContext, *, handle: OperationHandle, reason: str) -> None:
    """Log that the caller stopped waiting."""
    context.info(
        "lro_wait_cancelled",
        target_url=handle.target_url,
        status=handle.status.value,
        reason=reason,
    )
