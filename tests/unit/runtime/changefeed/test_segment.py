"""Unit tests for round-robin segment walking."""

from __future__ import annotations

import asyncio

import pytest

from nimbus.sdk.core import InvalidCursorError, OperationCancelled
from nimbus.sdk.models import SegmentCursor, ShardCursor
from nimbus.sdk.runtime.changefeed import ChunkFactory, SegmentFactory, ShardFactory, parse_segment_manifest

SHARDS = ["seg/00/", "seg/01/", "seg/02/"]


@pytest.fixture
def segment_store(make_store):
    return make_store(
        {
            "seg/00/c0": [["a1", "a2"]],
            "seg/00/c1": [["a3"]],
            "seg/01/c0": [["b1"]],
            "seg/02/c0": [["c1", "c2"], ["c3"]],
        }
    )


@pytest.fixture
def segment_factory(segment_store):
    return SegmentFactory(ShardFactory(segment_store, ChunkFactory(segment_store)))


async def _drain(segment) -> list:
    return [record.record async for record in segment.walk()]


class TestSegment:
    """Test shard interleaving and resumption."""

    @pytest.mark.asyncio
    async def test_round_robin_skips_exhausted_shards(self, segment_factory):
        segment = await segment_factory.open("seg", SHARDS)

        assert await _drain(segment) == ["a1", "b1", "c1", "a2", "c2", "a3", "c3"]
        assert not segment.has_next()

    @pytest.mark.asyncio
    async def test_cursor_resumes_interleaving(self, segment_factory):
        """Test a saved segment cursor continues with the next shard in turn."""
        expected = ["a1", "b1", "c1", "a2", "c2", "a3", "c3"]
        for consumed in range(len(expected) + 1):
            segment = await segment_factory.open("seg", SHARDS)
            seen = [(await segment.next_record()).record for _ in range(consumed)]
            cursor = SegmentCursor.from_json(segment.cursor().to_json())

            resumed = await segment_factory.open("seg", SHARDS, cursor)

            assert seen + await _drain(resumed) == expected

    @pytest.mark.asyncio
    async def test_cursor_names_next_shard(self, segment_factory):
        segment = await segment_factory.open("seg", SHARDS)
        await segment.next_record()

        cursor = segment.cursor()

        assert cursor.current_shard_path == "seg/01/"
        assert cursor.cursor_for("seg/00/") == ShardCursor(
            shard_path="seg/00/", chunk_path="seg/00/c0", event_index=1
        )

    @pytest.mark.asyncio
    async def test_cursor_for_other_segment(self, segment_factory):
        with pytest.raises(InvalidCursorError):
            await segment_factory.open("seg", SHARDS, SegmentCursor(segment_path="other"))

    @pytest.mark.asyncio
    async def test_empty_segment(self, segment_factory):
        segment = await segment_factory.open("seg", [])
        assert await segment.next_record() is None
        assert segment.cursor().current_shard_path is None

    @pytest.mark.asyncio
    async def test_cancel_before_opening_shards(self, segment_factory, segment_store):
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(OperationCancelled):
            await segment_factory.open("seg", SHARDS, cancel_event=cancel)

        assert segment_store.listings == []


class TestParseSegmentManifest:
    """Test shard path extraction from segment manifests."""

    def test_strips_container_prefix(self):
        manifest = {
            "version": 0,
            "status": "Finalized",
            "chunkFilePaths": [
                "$blobchangefeed/log/00/2019/02/22/1810/",
                "$blobchangefeed/log/01/2019/02/22/1810/",
            ],
        }
        assert parse_segment_manifest(manifest) == [
            "log/00/2019/02/22/1810/",
            "log/01/2019/02/22/1810/",
        ]

    def test_custom_prefix_and_missing_paths(self):
        assert parse_segment_manifest({"chunkFilePaths": ["feed/s/0/"]}, "feed/") == ["s/0/"]
        assert parse_segment_manifest({}) == []

    def test_invalid_paths(self):
        with pytest.raises(ValueError):
            parse_segment_manifest({"chunkFilePaths": "log/00/"})
