"""Shard walker: sequential reading of the chunks under one prefix.

Architecture:
    A shard is an ordered sequence of chunks listed under a common prefix.
    ShardFactory lists the chunks, fast-forwards to the chunk named by a
    saved ShardCursor and opens it at the saved block/event position. The
    remaining chunks wait in a queue and are opened at position 0 once the
    current one is exhausted.

Design Decisions:
    - Listing order is lexicographic: Chunk names sort in write order
    - Empty listing is a valid empty shard: Chunks may not exist yet right
      after a time partition flips
    - Cursor is derived, never stored: ``cursor()`` reads the live position
      of the current chunk, so it is consistent at every suspension point
    - Exhausted last chunk keeps its position: A later resume picks up data
      appended to that chunk without re-reading anything

See Also:
    - chunk.Chunk: Position tracking within one chunk
    - models.cursor.ShardCursor: Persisted position
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator, Iterable

from ...core.context import TraceContext, resolve_context
from ...core.exceptions import ChunkNotFoundError, InvalidCursorError, OperationCancelled
from ...models.cursor import ShardCursor
from ...models.records import ChunkRecord
from .chunk import Chunk, ChunkFactory
from .definitions import BlobLister
from .telemetry import log_chunk_missing, log_shard_opened, log_walk_cancelled


class Shard:
    """Walks the chunks of one shard in order."""

    def __init__(
        self,
        path: str,
        chunk_factory: ChunkFactory,
        pending: Iterable[str] = (),
        current_chunk: Chunk | None = None,
        *,
        last_cursor: ShardCursor | None = None,
        context: TraceContext | None = None,
    ) -> None:
        self.path = path
        self._chunk_factory = chunk_factory
        self._pending: deque[str] = deque(pending)
        self._current = current_chunk
        self._last = last_cursor
        self._context = resolve_context(context, "shard", shard_path=path)

    @property
    def current_chunk(self) -> Chunk | None:
        return self._current

    @property
    def pending_chunks(self) -> tuple[str, ...]:
        return tuple(self._pending)

    def has_next(self) -> bool:
        """Whether the shard may still yield records."""
        return self._current is not None

    def cursor(self) -> ShardCursor:
        """Position of the next unconsumed record."""
        if self._current is not None:
            return ShardCursor(
                shard_path=self.path,
                chunk_path=self._current.path,
                block_offset=self._current.block_offset,
                event_index=self._current.event_index,
            )
        if self._last is not None:
            return self._last
        return ShardCursor(shard_path=self.path)

    async def next_record(self) -> ChunkRecord | None:
        """Return the next record of the shard, or None when every chunk is exhausted."""
        while self._current is not None:
            record = await self._current.next_record()
            if record is not None:
                return record

            exhausted = self._current
            self._last = ShardCursor(
                shard_path=self.path,
                chunk_path=exhausted.path,
                block_offset=exhausted.block_offset,
                event_index=exhausted.event_index,
            )
            self._current = None
            if self._pending:
                self._current = self._chunk_factory.create(self._pending.popleft())
        return None

    async def walk(self, *, cancel_event: asyncio.Event | None = None) -> AsyncIterator[ChunkRecord]:
        """Yield every remaining record of the shard.

        Args:
            cancel_event: When set, the walk stops before the next read and
                raises OperationCancelled; ``cursor()`` stays valid

        Raises:
            OperationCancelled: If cancel_event is set during the walk
        """
        while True:
            if cancel_event is not None and cancel_event.is_set():
                log_walk_cancelled(self._context, path=self.path)
                raise OperationCancelled(f"Walk of shard {self.path} cancelled")
            record = await self.next_record()
            if record is None:
                return
            yield record

    async def aclose(self) -> None:
        if self._current is not None:
            await self._current.aclose()


class ShardFactory:
    """Opens shards from a listing, optionally resuming from a cursor."""

    def __init__(
        self,
        lister: BlobLister,
        chunk_factory: ChunkFactory,
        *,
        context: TraceContext | None = None,
    ) -> None:
        self._lister = lister
        self._chunk_factory = chunk_factory
        self._context = context

    async def open(
        self,
        shard_path: str,
        cursor: ShardCursor | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> Shard:
        """Open the shard under ``shard_path``.

        Args:
            shard_path: Prefix the shard's chunks are listed under
            cursor: Saved position to resume from (None starts at the beginning)
            cancel_event: Checked before listing and after every listed name

        Returns:
            Shard positioned at the cursor; empty when nothing is listed

        Raises:
            InvalidCursorError: If the cursor belongs to another shard
            ChunkNotFoundError: If the cursor's chunk is not in the listing
            OperationCancelled: If cancel_event is set while listing
        """
        if cursor is not None and cursor.shard_path != shard_path:
            raise InvalidCursorError(
                f"Cursor for shard {cursor.shard_path!r} cannot resume shard {shard_path!r}"
            )
        context = resolve_context(self._context, "shard", shard_path=shard_path)

        chunks = sorted(await self._list_chunks(shard_path, context, cancel_event))
        if not chunks:
            log_shard_opened(
                context,
                shard_path=shard_path,
                chunks_listed=0,
                current_chunk=None,
                pending=0,
                resumed=cursor is not None,
            )
            last = cursor if cursor is not None and not cursor.is_start else None
            return Shard(shard_path, self._chunk_factory, last_cursor=last, context=self._context)

        index = 0
        block_offset = event_index = 0
        if cursor is not None and not cursor.is_start:
            try:
                index = chunks.index(cursor.chunk_path)
            except ValueError:
                log_chunk_missing(context, shard_path=shard_path, chunk_path=cursor.chunk_path)
                raise ChunkNotFoundError(
                    f"Chunk {cursor.chunk_path} not found under shard {shard_path}",
                    shard_path=shard_path,
                    chunk_path=cursor.chunk_path,
                ) from None
            block_offset = cursor.block_offset
            event_index = cursor.event_index

        current = self._chunk_factory.create(chunks[index], block_offset, event_index)
        pending = chunks[index + 1 :]
        log_shard_opened(
            context,
            shard_path=shard_path,
            chunks_listed=len(chunks),
            current_chunk=current.path,
            pending=len(pending),
            resumed=cursor is not None,
        )
        return Shard(shard_path, self._chunk_factory, pending, current, context=self._context)

    async def _list_chunks(
        self,
        shard_path: str,
        context: TraceContext,
        cancel_event: asyncio.Event | None,
    ) -> list[str]:
        def check_cancelled() -> None:
            if cancel_event is not None and cancel_event.is_set():
                log_walk_cancelled(context, path=shard_path)
                raise OperationCancelled(f"Opening shard {shard_path} cancelled")

        check_cancelled()
        names = []
        async for name in self._lister.list_names(shard_path):
            names.append(name)
            check_cancelled()
        return names
