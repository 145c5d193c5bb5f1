"""Custom exception hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..models.operation import OperationError, OperationHandle


class SdkError(Exception):
    """Base exception for all library errors."""

    pass


class ServiceError(SdkError):
    """Error response from the remote service."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class RateLimitError(ServiceError):
    """Service rate limit exceeded and the transport retries are exhausted."""

    def __init__(self, message: str, retry_after: float = 60) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class InitiationError(ServiceError):
    """The call that starts a long-running operation failed terminally.

    No poller state exists for the operation when this is raised.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error: OperationError | None = None,
    ) -> None:
        super().__init__(
            message,
            status_code=status_code,
            error_code=error.code if error is not None else None,
        )
        self.error = error


class TransportError(SdkError):
    """Request could not be completed at the network level.

    Raised after the transport has exhausted its own retries.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class TransientPollError(SdkError):
    """A single status check failed for a transient reason.

    The handle status is left unchanged. LROPoller.wait_until_done retries
    these transparently.
    """

    def __init__(
        self,
        message: str,
        handle: OperationHandle,
        retry_after: float | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.handle = handle
        self.retry_after = retry_after
        self.status_code = status_code
        self.retryable = True


class OperationFailed(SdkError):
    """The service reported a terminal failure for the tracked operation."""

    def __init__(self, message: str, handle: OperationHandle) -> None:
        super().__init__(message)
        self.handle = handle
        self.error = handle.error
        self.status = handle.status


class OperationCancelled(SdkError):
    """Caller-requested cancellation was observed.

    The server-side operation is not cancelled; ``handle`` (when present)
    carries the last observed state so it can be inspected or resumed.
    """

    def __init__(self, message: str, handle: OperationHandle | None = None) -> None:
        super().__init__(message)
        self.handle = handle


class OperationTimeoutError(OperationCancelled):
    """wait_until_done gave up after the caller-supplied timeout."""

    pass


class OperationNotDoneError(SdkError):
    """A result was requested for an operation that has not finished."""

    def __init__(self, message: str, handle: OperationHandle) -> None:
        super().__init__(message)
        self.handle = handle


class InvalidResumeTokenError(SdkError, ValueError):
    """Resume token could not be decoded into an operation handle."""

    def __init__(self, message: str, token: Any = None) -> None:
        super().__init__(message)
        self.token = token


class ChunkNotFoundError(SdkError):
    """A resumed cursor references a chunk that is no longer listed.

    This is unrecoverable for the shard: resuming at the nearest chunk
    would silently skip or repeat records.
    """

    def __init__(self, message: str, shard_path: str, chunk_path: str) -> None:
        super().__init__(message)
        self.shard_path = shard_path
        self.chunk_path = chunk_path


class InvalidCursorError(SdkError, ValueError):
    """Cursor does not belong to the stream it was applied to."""

    pass


class PaginationError(SdkError):
    """Pagination could not continue.

    Raised when the service hands back the same continuation token twice in
    a row, which would otherwise loop forever.
    """

    def __init__(self, message: str, continuation_token: str | None = None) -> None:
        super().__init__(message)
        self.continuation_token = continuation_token
