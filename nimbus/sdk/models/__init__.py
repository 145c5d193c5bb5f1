"""Data models for operation handles, stream cursors and pages.

Architecture:
    This module exports the Pydantic v2 models used throughout the library.
    Models that represent persisted or shared state (handles, cursors,
    records) are immutable (frozen=True); new states are derived with
    ``model_copy`` instead of mutation.

Model Categories:
    - Operations: OperationHandle, OperationError
    - Cursors: ShardCursor, SegmentCursor
    - Stream data: ChunkRecord, Page
"""

from .cursor import SegmentCursor, ShardCursor
from .operation import OperationError, OperationHandle
from .records import ChunkRecord, Page

__all__ = [
    "ChunkRecord",
    "OperationError",
    "OperationHandle",
    "Page",
    "SegmentCursor",
    "ShardCursor",
]
