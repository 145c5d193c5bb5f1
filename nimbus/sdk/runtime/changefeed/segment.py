"""Round-robin walk over the shards of one segment."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from typing import Any

from ...core.context import TraceContext, resolve_context
from ...core.exceptions import InvalidCursorError, OperationCancelled
from ...models.cursor import SegmentCursor
from ...models.records import ChunkRecord
from .shard import Shard, ShardFactory
from .telemetry import log_walk_cancelled

DEFAULT_CONTAINER_PREFIX = "$blobchangefeed/"


def parse_segment_manifest(
    manifest: Mapping[str, Any], container_prefix: str = DEFAULT_CONTAINER_PREFIX
) -> list[str]:
    """Extract shard paths from a segment manifest document.

    Args:
        manifest: Parsed manifest with a ``chunkFilePaths`` list
        container_prefix: Container name prefix stripped from each path

    Returns:
        Shard paths relative to the container, in manifest order
    """
    paths = manifest.get("chunkFilePaths") or []
    if not isinstance(paths, list):
        raise ValueError("Segment manifest 'chunkFilePaths' must be a list")
    return [p[len(container_prefix) :] if p.startswith(container_prefix) else p for p in paths]


class Segment:
    """Shards of one time segment, read one record per shard in turn."""

    def __init__(
        self,
        path: str,
        shards: list[Shard],
        *,
        current_shard_index: int = 0,
        context: TraceContext | None = None,
    ) -> None:
        self.path = path
        self.shards = shards
        self._index = current_shard_index if shards else 0
        self._context = resolve_context(context, "segment", segment_path=path)

    def has_next(self) -> bool:
        return any(shard.has_next() for shard in self.shards)

    def cursor(self) -> SegmentCursor:
        current = self.shards[self._index].path if self.shards else None
        return SegmentCursor(
            segment_path=self.path,
            shard_cursors=[shard.cursor() for shard in self.shards],
            current_shard_path=current,
        )

    async def next_record(self) -> ChunkRecord | None:
        """Return the next record of the shard in turn, skipping exhausted shards."""
        for _ in range(len(self.shards)):
            shard = self.shards[self._index]
            self._index = (self._index + 1) % len(self.shards)
            if not shard.has_next():
                continue
            record = await shard.next_record()
            if record is not None:
                return record
        return None

    async def walk(self, *, cancel_event: asyncio.Event | None = None) -> AsyncIterator[ChunkRecord]:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                log_walk_cancelled(self._context, path=self.path)
                raise OperationCancelled(f"Walk of segment {self.path} cancelled")
            record = await self.next_record()
            if record is None:
                return
            yield record

    async def aclose(self) -> None:
        for shard in self.shards:
            await shard.aclose()


class SegmentFactory:
    def __init__(self, shard_factory: ShardFactory, *, context: TraceContext | None = None) -> None:
        self._shard_factory = shard_factory
        self._context = context

    async def open(
        self,
        segment_path: str,
        shard_paths: list[str],
        cursor: SegmentCursor | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> Segment:
        """Open every shard of a segment, resuming each from ``cursor`` when given.

        Raises:
            InvalidCursorError: If the cursor belongs to another segment
            OperationCancelled: If cancel_event is set while listing shards
        """
        if cursor is not None and cursor.segment_path != segment_path:
            raise InvalidCursorError(
                f"Cursor for segment {cursor.segment_path!r} cannot resume segment {segment_path!r}"
            )
        shards = [
            await self._shard_factory.open(
                path, cursor.cursor_for(path) if cursor else None, cancel_event=cancel_event
            )
            for path in shard_paths
        ]
        index = 0
        if cursor is not None and cursor.current_shard_path in shard_paths:
            index = shard_paths.index(cursor.current_shard_path)
        return Segment(segment_path, shards, current_shard_index=index, context=self._context)
