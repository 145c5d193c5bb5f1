"""Core components."""

from .context import TraceContext, resolve_context
from .enums import OperationStatus, PollingStrategy
from .exceptions import (
    ChunkNotFoundError,
    InitiationError,
    InvalidCursorError,
    InvalidResumeTokenError,
    OperationCancelled,
    OperationFailed,
    OperationNotDoneError,
    OperationTimeoutError,
    PaginationError,
    RateLimitError,
    SdkError,
    ServiceError,
    TransientPollError,
    TransportError,
)

__all__ = [
    "OperationStatus",
    "PollingStrategy",
    "TraceContext",
    "resolve_context",
    "SdkError",
    "ServiceError",
    "RateLimitError",
    "InitiationError",
    "TransportError",
    "TransientPollError",
    "OperationFailed",
    "OperationCancelled",
    "OperationTimeoutError",
    "OperationNotDoneError",
    "InvalidResumeTokenError",
    "ChunkNotFoundError",
    "InvalidCursorError",
    "PaginationError",
]
