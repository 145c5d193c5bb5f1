"""Structured logging for shard and chunk walking."""

from __future__ import annotations

from ...core.context import TraceContext


def log_shard_opened(
    context: TraceContext,
    *,
    shard_path: str,
    chunks_listed: int,
    current_chunk: str | None,
    pending: int,
    resumed: bool,
) -> None:
    """Log construction of a shard.

    Args:
        context: Observability context of the walk
        shard_path: Shard prefix
        chunks_listed: Number of chunk names listed under the prefix
        current_chunk: Chunk opened for reading (None for an empty shard)
        pending: Chunks queued after the current one
        resumed: Whether a saved cursor was applied
    """
    context.info(
        "shard_opened",
        shard_path=shard_path,
        chunks_listed=chunks_listed,
        current_chunk=current_chunk,
        pending=pending,
        resumed=resumed,
    )


def log_chunk_opened(context: TraceContext, *, chunk_path: str, block_offset: int, event_index: int) -> None:
    context.debug(
        "chunk_opened",
        chunk_path=chunk_path,
        block_offset=block_offset,
        event_index=event_index,
    )


def log_chunk_exhausted(
    context: TraceContext,
    *,
    chunk_path: str,
    records_read: int,
    block_offset: int,
    event_index: int,
) -> None:
    context.debug(
        "chunk_exhausted",
        chunk_path=chunk_path,
        records_read=records_read,
        block_offset=block_offset,
        event_index=event_index,
    )


def log_chunk_missing(context: TraceContext, *, shard_path: str, chunk_path: str) -> None:
    context.error("chunk_not_found", shard_path=shard_path, chunk_path=chunk_path)


def log_walk_cancelled(context: TraceContext, *, path: str) -> None:
    context.info("walk_cancelled", path=path)
