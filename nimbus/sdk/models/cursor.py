"""Resumable stream position models.

Architecture:
    A ShardCursor is the only state a caller is expected to persist across
    process restarts. It pins the position of the next unconsumed record
    inside a shard: the chunk, the offset of the block holding that record,
    and how many records of that block were already consumed.

    When the last record of a block is consumed the position moves to the
    next block with ``event_index`` reset to 0, so a block boundary never
    needs to be re-read on resume.

Design Decisions:
    - Frozen pydantic models: Cursors are value snapshots, never shared state
    - camelCase aliases: The persisted layout is the flat record
      ``{shardPath, chunkPath, blockOffset, eventIndex}``
    - populate_by_name: Python callers use snake_case field names
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ShardCursor(BaseModel):
    """Position within one shard of a chunked stream."""

    shard_path: str = Field(..., alias="shardPath")
    chunk_path: str | None = Field(default=None, alias="chunkPath")
    block_offset: int = Field(default=0, ge=0, alias="blockOffset")
    event_index: int = Field(default=0, ge=0, alias="eventIndex")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def is_start(self) -> bool:
        """Whether the cursor points at the beginning of the shard."""
        return not self.chunk_path

    def to_record(self) -> dict[str, object]:
        """Flat persisted layout using camelCase keys."""
        return self.model_dump(by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> ShardCursor:
        return cls.model_validate_json(data)


class SegmentCursor(BaseModel):
    """Position of a round-robin walk over the shards of one segment."""

    segment_path: str = Field(..., alias="segmentPath")
    shard_cursors: list[ShardCursor] = Field(default_factory=list, alias="shardCursors")
    current_shard_path: str | None = Field(default=None, alias="currentShardPath")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def cursor_for(self, shard_path: str) -> ShardCursor | None:
        """Return the saved cursor of ``shard_path``, if any."""
        for cursor in self.shard_cursors:
            if cursor.shard_path == shard_path:
                return cursor
        return None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> SegmentCursor:
        return cls.model_validate_json(data)
