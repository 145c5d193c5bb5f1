"""Collaborator interfaces for chunked stream walking.

The walker never talks to storage directly. It needs two capabilities:
listing the chunk names under a shard prefix, and reading the records of
one chunk from a position. Any backend (REST, local files, in-memory
fixtures) can provide them.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol

from ...models.records import ChunkRecord


class BlobLister(Protocol):
    """Lists entry names under a prefix."""

    def list_names(self, prefix: str) -> AsyncIterator[str]:
        """Yield names under ``prefix`` in lexicographic order (names only, no content)."""
        ...


class ChunkReader(Protocol):
    """Reads records of one chunk starting at a position."""

    def read(self, chunk_path: str, block_offset: int = 0, event_index: int = 0) -> AsyncIterator[ChunkRecord]:
        """Yield records starting at ``block_offset``, skipping ``event_index`` records of that block.

        Each yielded record carries the position right after it: the offset of
        the block holding the next record and the number of records of that
        block already consumed (0 once a block is finished).
        """
        ...
