"""In-memory lister/reader fixtures for stream walking tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import pytest

from nimbus.sdk.core import ServiceError
from nimbus.sdk.models import ChunkRecord
from nimbus.sdk.runtime.changefeed import ChunkFactory, ShardFactory

# Fake byte size of one block; block i starts at offset i * BLOCK_SIZE
BLOCK_SIZE = 100


class MemoryStore:
    """Chunks stored as lists of blocks, each block a list of records."""

    def __init__(self, chunks: dict[str, list[list[Any]]] | None = None) -> None:
        self.chunks: dict[str, list[list[Any]]] = dict(chunks or {})
        self.reads: list[tuple[str, int, int]] = []
        self.listings: list[str] = []
        # Records whose first read raises a 503 ServiceError
        self.fail_once: set[Any] = set()

    async def list_names(self, prefix: str) -> AsyncIterator[str]:
        self.listings.append(prefix)
        for name in sorted(self.chunks, reverse=True):
            if name.startswith(prefix):
                yield name

    async def read(
        self, chunk_path: str, block_offset: int = 0, event_index: int = 0
    ) -> AsyncIterator[ChunkRecord]:
        self.reads.append((chunk_path, block_offset, event_index))
        blocks = self.chunks[chunk_path]
        start = block_offset // BLOCK_SIZE
        for index in range(start, len(blocks)):
            records = blocks[index]
            skip = event_index if index == start else 0
            for position in range(skip, len(records)):
                if records[position] in self.fail_once:
                    self.fail_once.discard(records[position])
                    raise ServiceError(f"{chunk_path} unavailable", status_code=503)
                consumed = position + 1
                if consumed < len(records):
                    yield ChunkRecord(
                        record=records[position], block_offset=index * BLOCK_SIZE, event_index=consumed
                    )
                else:
                    yield ChunkRecord(
                        record=records[position], block_offset=(index + 1) * BLOCK_SIZE, event_index=0
                    )


@pytest.fixture
def store() -> MemoryStore:
    """Shard ``log/00/`` with three chunks: c0 = [a, b] [c], c1 = [d], c2 = [e, f]."""
    return MemoryStore(
        {
            "log/00/c0": [["a", "b"], ["c"]],
            "log/00/c1": [["d"]],
            "log/00/c2": [["e", "f"]],
        }
    )


@pytest.fixture
def shard_factory(store: MemoryStore) -> ShardFactory:
    return ShardFactory(store, ChunkFactory(store))


@pytest.fixture
def make_store():
    return MemoryStore
