"""Status discovery for long-running operations.

Architecture:
    Services advertise the progress of an asynchronous operation in one of
    several ways. This module inspects the initiating response to pick a
    PollingStrategy and builds the first OperationHandle, then interprets
    each status response according to that strategy.

Strategies:
    - operation-location: ``Azure-AsyncOperation`` / ``Operation-Location``
      header points at a status monitor whose body has ``status``. After
      success the result is read from the resource (PUT/PATCH) or from the
      ``Location`` header (POST/DELETE) when present.
    - location: ``Location`` header is polled; 202 means running, any other
      2xx means done and carries the result.
    - body: PUT/PATCH resource carries ``properties.provisioningState``.
    - none: the initiating response is already the final answer.

See Also:
    - LROPoller: Issues the requests and applies the outcomes
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

from ...core.enums import OperationStatus, PollingStrategy
from ...core.exceptions import InitiationError
from ...models.operation import OperationError, OperationHandle
from ...utils.http import parse_retry_after
from ..rest.http_client import HttpResponse

OPERATION_LOCATION_HEADERS = ("Azure-AsyncOperation", "Operation-Location")
RESOURCE_METHODS = frozenset({"PUT", "PATCH"})


@dataclass(frozen=True)
class PollOutcome:
    """Interpretation of one status response.

    Attributes:
        status: Status derived from the response
        result: Result payload when succeeded (may be None)
        error: Fault when failed
        fetch_final: Whether the result must still be read from final_url
    """

    status: OperationStatus
    result: Any = None
    error: OperationError | None = None
    fetch_final: bool = False


def _provisioning_state(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    properties = body.get("properties")
    if isinstance(properties, dict) and properties.get("provisioningState") is not None:
        return str(properties["provisioningState"])
    return None


def _failure_error(body: Any, status: OperationStatus) -> OperationError:
    return OperationError.from_body(body, default_message=f"Operation finished with status {status.value}")


def handle_from_initial_response(
    method: str,
    request_url: str,
    response: HttpResponse,
) -> OperationHandle:
    """Build the first handle of an operation from its initiating response.

    Args:
        method: HTTP verb of the initiating request
        request_url: Absolute URL of the initiating request
        response: Initiating response

    Returns:
        OperationHandle in NotStarted/Running, or terminal for operations that
        completed synchronously

    Raises:
        InitiationError: If the response is not a success or advertises no way
            to track an accepted operation
    """
    verb = method.upper()
    body = response.json()

    if not response.ok:
        error = OperationError.from_body(
            body, default_message=f"{verb} {request_url} returned HTTP {response.status}"
        )
        raise InitiationError(error.message, status_code=response.status, error=error)

    retry_after = parse_retry_after(response.headers)
    location = response.header("Location")
    location_url = urljoin(request_url, location) if location else None

    operation_location = next(
        (value for name in OPERATION_LOCATION_HEADERS if (value := response.header(name))), None
    )
    if operation_location:
        final_url = request_url if verb in RESOURCE_METHODS else location_url
        return OperationHandle(
            target_url=urljoin(request_url, operation_location),
            status=OperationStatus.RUNNING,
            strategy=PollingStrategy.OPERATION_LOCATION,
            method=verb,
            request_url=request_url,
            final_url=final_url,
            retry_after=retry_after,
        )

    if location_url:
        return OperationHandle(
            target_url=location_url,
            status=OperationStatus.RUNNING,
            strategy=PollingStrategy.LOCATION,
            method=verb,
            request_url=request_url,
            retry_after=retry_after,
        )

    state = _provisioning_state(body)
    if verb in RESOURCE_METHODS and state is not None:
        status = OperationStatus.from_service(state)
        outcome = _terminal_outcome(status, body)
        return OperationHandle(
            target_url=request_url,
            status=status,
            strategy=PollingStrategy.BODY,
            method=verb,
            request_url=request_url,
            result=outcome.result,
            error=outcome.error,
            retry_after=retry_after,
        )

    if response.status == 202:
        raise InitiationError(
            f"{verb} {request_url} was accepted without a status endpoint",
            status_code=response.status,
        )

    return OperationHandle(
        target_url=request_url,
        status=OperationStatus.SUCCEEDED,
        strategy=PollingStrategy.NONE,
        method=verb,
        request_url=request_url,
        result=body,
    )


def _terminal_outcome(status: OperationStatus, body: Any) -> PollOutcome:
    if status == OperationStatus.SUCCEEDED:
        return PollOutcome(status=status, result=body)
    if status == OperationStatus.FAILED:
        return PollOutcome(status=status, error=_failure_error(body, status))
    return PollOutcome(status=status)


def interpret_poll_response(handle: OperationHandle, response: HttpResponse) -> PollOutcome:
    """Derive the new status of ``handle`` from a status response.

    Retryable statuses (408/429/5xx) must be filtered out by the caller;
    any other non-2xx response is a terminal failure of the operation.
    """
    body = response.json()

    if not response.ok:
        return PollOutcome(
            status=OperationStatus.FAILED,
            error=OperationError.from_body(
                body,
                default_message=f"Status check {handle.target_url} returned HTTP {response.status}",
            ),
        )

    if handle.strategy == PollingStrategy.OPERATION_LOCATION:
        raw = body.get("status") if isinstance(body, dict) else None
        status = OperationStatus.from_service(raw)
        if status == OperationStatus.SUCCEEDED:
            if handle.final_url:
                return PollOutcome(status=status, fetch_final=True)
            return PollOutcome(status=status, result=body)
        return _terminal_outcome(status, body) if status.is_terminal else PollOutcome(status=status)

    if handle.strategy == PollingStrategy.LOCATION:
        if response.status == 202:
            return PollOutcome(status=OperationStatus.RUNNING)
        return PollOutcome(status=OperationStatus.SUCCEEDED, result=body)

    if handle.strategy == PollingStrategy.BODY:
        state = _provisioning_state(body)
        status = OperationStatus.SUCCEEDED if state is None else OperationStatus.from_service(state)
        return _terminal_outcome(status, body) if status.is_terminal else PollOutcome(status=status)

    return PollOutcome(status=OperationStatus.SUCCEEDED, result=body)


def interpret_final_response(handle: OperationHandle, response: HttpResponse) -> PollOutcome:
    """Interpret the response of the final-result fetch after success."""
    body = response.json()
    if response.ok:
        return PollOutcome(status=OperationStatus.SUCCEEDED, result=body)
    return PollOutcome(
        status=OperationStatus.FAILED,
        error=OperationError.from_body(
            body,
            default_message=f"Final result {handle.final_url} returned HTTP {response.status}",
        ),
    )
