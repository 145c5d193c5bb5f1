"""Nimbus SDK - long-running operation polling and resumable stream cursors."""

from .config import ClientSettings, PagingSettings, PollingSettings, TransportSettings
from .core import (
    ChunkNotFoundError,
    InitiationError,
    InvalidCursorError,
    InvalidResumeTokenError,
    OperationCancelled,
    OperationFailed,
    OperationNotDoneError,
    OperationStatus,
    OperationTimeoutError,
    PaginationError,
    PollingStrategy,
    RateLimitError,
    SdkError,
    ServiceError,
    TraceContext,
    TransientPollError,
    TransportError,
)
from .models import (
    ChunkRecord,
    OperationError,
    OperationHandle,
    Page,
    SegmentCursor,
    ShardCursor,
)
from .runtime.changefeed import (
    BlobLister,
    Chunk,
    ChunkFactory,
    ChunkReader,
    NdjsonChunkReader,
    RestBlobLister,
    Segment,
    SegmentFactory,
    Shard,
    ShardFactory,
    parse_segment_manifest,
)
from .runtime.paging import AsyncPager
from .runtime.polling import ExponentialBackoff, FixedInterval, LROPoller, WaitPolicy
from .runtime.rest import (
    AccessToken,
    BearerTokenPolicy,
    ClaimsChallengeHandler,
    HTTPClient,
    HttpResponse,
    RESTTransport,
    RestEndpointSpec,
    RestRunner,
    TokenCredential,
)

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "ClientSettings",
    "TransportSettings",
    "PollingSettings",
    "PagingSettings",
    # Core
    "OperationStatus",
    "PollingStrategy",
    "TraceContext",
    # Exceptions
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
    # Models
    "OperationHandle",
    "OperationError",
    "ShardCursor",
    "SegmentCursor",
    "ChunkRecord",
    "Page",
    # Polling
    "LROPoller",
    "WaitPolicy",
    "ExponentialBackoff",
    "FixedInterval",
    # Paging
    "AsyncPager",
    # Stream walking
    "BlobLister",
    "ChunkReader",
    "Chunk",
    "ChunkFactory",
    "Shard",
    "ShardFactory",
    "Segment",
    "SegmentFactory",
    "parse_segment_manifest",
    "RestBlobLister",
    "NdjsonChunkReader",
    # Transport
    "HTTPClient",
    "HttpResponse",
    "RESTTransport",
    "RestRunner",
    "RestEndpointSpec",
    "AccessToken",
    "TokenCredential",
    "BearerTokenPolicy",
    "ClaimsChallengeHandler",
]
