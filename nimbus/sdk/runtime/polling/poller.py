"""Long-running operation poller.

Architecture:
    LROPoller drives an OperationHandle from initiation to a terminal
    state. It is stateless between calls: everything it needs is on the
    handle, so any poller instance (in this process or another one, via a
    resume token) can continue an operation.

    begin()            -> one side-effecting request, returns the first handle
    poll()             -> one side-effect-free status check, returns a new handle
    wait_until_done()  -> sleep/poll loop until terminal, cancellation or timeout
    result()           -> unwraps a terminal handle, raising OperationFailed

Design Decisions:
    - Transient status-check failures raise TransientPollError from poll()
      and are retried by wait_until_done(); terminal service failures are
      recorded on the handle
    - Cancellation is an asyncio.Event checked before every suspension
      point; waiting on it interrupts the sleep immediately
    - Cancelling the wait never cancels the server-side operation
    - Status polls for one handle are strictly sequential

See Also:
    - strategies: How responses map to statuses
    - definitions: Wait policies
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from time import perf_counter
from typing import Any

from ...config import PollingSettings
from ...core.context import TraceContext, resolve_context
from ...core.enums import OperationStatus
from ...core.exceptions import (
    OperationCancelled,
    OperationFailed,
    OperationNotDoneError,
    OperationTimeoutError,
    TransientPollError,
    TransportError,
)
from ...models.operation import OperationHandle
from ...utils.http import is_retryable_status, parse_retry_after
from ..rest.http_client import HttpResponse
from ..rest.transport import RESTTransport
from .definitions import ExponentialBackoff, WaitPolicy
from .strategies import (
    PollOutcome,
    handle_from_initial_response,
    interpret_final_response,
    interpret_poll_response,
)
from .telemetry import (
    log_operation_cancelled,
    log_operation_finished,
    log_operation_started,
    log_poll_completed,
    log_poll_transient_error,
)

ProgressCallback = Callable[[OperationHandle], None]


def _advance(handle: OperationHandle, **updates: Any) -> OperationHandle:
    # Rebuild instead of model_copy so the outcome invariants are validated
    return OperationHandle(**{**dict(handle), **updates})


class LROPoller:
    """Poller engine for long-running operations."""

    def __init__(
        self,
        transport: RESTTransport,
        *,
        wait_policy: WaitPolicy | None = None,
        settings: PollingSettings | None = None,
        context: TraceContext | None = None,
    ) -> None:
        """Initialize poller.

        Args:
            transport: Transport used for initiation and status requests
            wait_policy: Delay policy between polls (default: exponential
                backoff built from ``settings``)
            settings: Polling defaults, including the default wait timeout
            context: Parent observability context
        """
        self._transport = transport
        self._settings = settings or PollingSettings()
        self._wait_policy: WaitPolicy = wait_policy or ExponentialBackoff.from_settings(self._settings)
        self._context = context

    def _scope(self, context: TraceContext | None) -> TraceContext:
        return resolve_context(context or self._context, "lro")

    async def begin(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
        context: TraceContext | None = None,
    ) -> OperationHandle:
        """Start an operation and return its first handle.

        Raises:
            InitiationError: If the service rejected the request
            TransportError: If the request could not be delivered
        """
        ctx = self._scope(context)
        response = await self._transport.send(
            method, url, params=params, json_body=json_body, headers=headers
        )
        handle = handle_from_initial_response(method, response.url or url, response)
        log_operation_started(ctx, handle=handle)
        return handle

    def resume(self, token: str) -> OperationHandle:
        """Rebuild a handle from a resume token produced by any poller."""
        return OperationHandle.from_resume_token(token)

    async def _fetch(self, handle: OperationHandle, url: str) -> HttpResponse:
        try:
            response = await self._transport.send("GET", url)
        except TransportError as exc:
            raise TransientPollError(
                f"Status check for {url} failed: {exc}", handle=handle
            ) from exc
        if is_retryable_status(response.status):
            raise TransientPollError(
                f"Status check for {url} returned HTTP {response.status}",
                handle=handle,
                retry_after=parse_retry_after(response.headers),
                status_code=response.status,
            )
        return response

    async def _poll(self, handle: OperationHandle, ctx: TraceContext) -> OperationHandle:
        if handle.is_done:
            return handle

        started = perf_counter()
        response = await self._fetch(handle, handle.target_url)
        outcome: PollOutcome = interpret_poll_response(handle, response)
        retry_after = parse_retry_after(response.headers)

        if outcome.fetch_final and handle.final_url:
            final = await self._fetch(handle, handle.final_url)
            outcome = interpret_final_response(handle, final)

        updated = _advance(
            handle,
            status=outcome.status,
            result=outcome.result,
            error=outcome.error,
            retry_after=retry_after,
            poll_count=handle.poll_count + 1,
        )
        log_poll_completed(
            ctx,
            handle=updated,
            http_status=response.status,
            latency_ms=(perf_counter() - started) * 1000.0,
        )
        return updated

    async def poll(self, handle: OperationHandle, *, context: TraceContext | None = None) -> OperationHandle:
        """Issue one status check.

        Polling a terminal handle returns it unchanged without a request.

        Returns:
            New handle reflecting the observed status

        Raises:
            TransientPollError: Transport failure or retryable status; the
                handle status is unchanged
        """
        return await self._poll(handle, self._scope(context))

    def _check_cancelled(
        self,
        handle: OperationHandle,
        cancel_event: asyncio.Event | None,
        deadline: float | None,
        ctx: TraceContext,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            log_operation_cancelled(ctx, handle=handle, reason="cancel_event")
            raise OperationCancelled("Waiting for the operation was cancelled", handle=handle)
        if deadline is not None and asyncio.get_running_loop().time() >= deadline:
            log_operation_cancelled(ctx, handle=handle, reason="timeout")
            raise OperationTimeoutError("Timed out waiting for the operation", handle=handle)

    async def _sleep(
        self,
        handle: OperationHandle,
        delay: float,
        cancel_event: asyncio.Event | None,
        deadline: float | None,
        ctx: TraceContext,
    ) -> None:
        self._check_cancelled(handle, cancel_event, deadline, ctx)
        if deadline is not None:
            delay = min(delay, max(deadline - asyncio.get_running_loop().time(), 0.0))

        if cancel_event is None:
            await asyncio.sleep(delay)
        else:
            try:
                await asyncio.wait_for(cancel_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
        self._check_cancelled(handle, cancel_event, deadline, ctx)

    async def wait_until_done(
        self,
        handle: OperationHandle,
        *,
        cancel_event: asyncio.Event | None = None,
        timeout: float | None = None,
        on_progress: ProgressCallback | None = None,
        context: TraceContext | None = None,
    ) -> OperationHandle:
        """Poll until the operation reaches a terminal state.

        Args:
            handle: Handle returned by begin(), poll() or resume()
            cancel_event: Set to stop waiting; raises OperationCancelled
            timeout: Give up after this many seconds (default from settings)
            on_progress: Called with every handle observed by a successful poll
            context: Observability context

        Returns:
            Terminal handle; failures are reported on ``handle.error``

        Raises:
            OperationCancelled: cancel_event was set (handle = last observed)
            OperationTimeoutError: timeout elapsed (handle = last observed)
        """
        ctx = self._scope(context)
        if timeout is None:
            timeout = self._settings.timeout_seconds
        deadline = asyncio.get_running_loop().time() + timeout if timeout is not None else None

        attempt = 0
        retry_after = handle.retry_after
        while not handle.is_done:
            delay = self._wait_policy(attempt, retry_after)
            await self._sleep(handle, delay, cancel_event, deadline, ctx)
            try:
                handle = await self._poll(handle, ctx)
                retry_after = handle.retry_after
                if on_progress is not None:
                    on_progress(handle)
            except TransientPollError as exc:
                retry_after = exc.retry_after
                log_poll_transient_error(
                    ctx,
                    handle=handle,
                    error_type=type(exc.__cause__ or exc).__name__,
                    error_message=str(exc),
                    delay=self._wait_policy(attempt + 1, retry_after),
                )
            attempt += 1

        log_operation_finished(ctx, handle=handle)
        return handle

    def result(self, handle: OperationHandle) -> Any:
        """Return the result of a terminal handle.

        Raises:
            OperationNotDoneError: If the handle is not terminal
            OperationFailed: If the operation failed or was cancelled server-side
        """
        if not handle.is_done:
            raise OperationNotDoneError(
                f"Operation is still {handle.status.value}", handle=handle
            )
        if handle.status == OperationStatus.SUCCEEDED:
            return handle.result
        if handle.error is not None:
            message = f"Operation failed: {handle.error.code}: {handle.error.message}"
        else:
            message = f"Operation finished with status {handle.status.value}"
        raise OperationFailed(message, handle=handle)

    async def begin_and_wait(
        self,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
        cancel_event: asyncio.Event | None = None,
        timeout: float | None = None,
        context: TraceContext | None = None,
    ) -> Any:
        """Start an operation, wait for it and return its result."""
        handle = await self.begin(method, url, json_body=json_body, headers=headers, context=context)
        handle = await self.wait_until_done(
            handle, cancel_event=cancel_event, timeout=timeout, context=context
        )
        return self.result(handle)
