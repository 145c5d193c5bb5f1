"""Single chunk reader with position tracking."""

from __future__ import annotations

from collections.abc import AsyncIterator

from ...core.context import TraceContext, resolve_context
from ...core.exceptions import InvalidCursorError
from ...models.records import ChunkRecord
from .definitions import ChunkReader
from .telemetry import log_chunk_exhausted, log_chunk_opened


class Chunk:
    """One chunk of a shard, read lazily from a position.

    The position (``block_offset``, ``event_index``) always points at the
    next unconsumed record and only moves forward.
    """

    def __init__(
        self,
        path: str,
        reader: ChunkReader,
        *,
        block_offset: int = 0,
        event_index: int = 0,
        context: TraceContext | None = None,
    ) -> None:
        if block_offset < 0 or event_index < 0:
            raise InvalidCursorError(
                f"Chunk position must be non-negative, got ({block_offset}, {event_index})"
            )
        self.path = path
        self._reader = reader
        self._block_offset = block_offset
        self._event_index = event_index
        self._records: AsyncIterator[ChunkRecord] | None = None
        self._records_read = 0
        self._done = False
        self._context = resolve_context(context, "chunk", chunk_path=path)

    @property
    def block_offset(self) -> int:
        return self._block_offset

    @property
    def event_index(self) -> int:
        return self._event_index

    @property
    def is_done(self) -> bool:
        return self._done

    async def next_record(self) -> ChunkRecord | None:
        """Return the next record, or None once the chunk has no more data."""
        if self._done:
            return None
        if self._records is None:
            log_chunk_opened(
                self._context,
                chunk_path=self.path,
                block_offset=self._block_offset,
                event_index=self._event_index,
            )
            self._records = aiter(self._reader.read(self.path, self._block_offset, self._event_index))

        try:
            record = await anext(self._records)
        except StopAsyncIteration:
            await self.aclose()
            log_chunk_exhausted(
                self._context,
                chunk_path=self.path,
                records_read=self._records_read,
                block_offset=self._block_offset,
                event_index=self._event_index,
            )
            return None
        except Exception:
            # Reopen at the unchanged position on the next call.
            await self._discard_records()
            raise

        position = (record.block_offset, record.event_index)
        if position <= (self._block_offset, self._event_index):
            await self.aclose()
            raise InvalidCursorError(
                f"Reader for {self.path} moved from ({self._block_offset}, {self._event_index}) "
                f"to {position}; positions must advance"
            )
        self._block_offset, self._event_index = position
        self._records_read += 1
        if record.chunk_path is None:
            record = record.model_copy(update={"chunk_path": self.path})
        return record

    async def aclose(self) -> None:
        """Stop reading and release the underlying record stream."""
        self._done = True
        await self._discard_records()

    async def _discard_records(self) -> None:
        records, self._records = self._records, None
        close = getattr(records, "aclose", None)
        if close is not None:
            await close()


class ChunkFactory:
    """Creates Chunk instances bound to one reader."""

    def __init__(self, reader: ChunkReader, *, context: TraceContext | None = None) -> None:
        self._reader = reader
        self._context = context

    def create(self, chunk_path: str, block_offset: int = 0, event_index: int = 0) -> Chunk:
        return Chunk(
            chunk_path,
            self._reader,
            block_offset=block_offset,
            event_index=event_index,
            context=self._context,
        )
