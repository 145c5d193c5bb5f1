"""Unit tests for the REST-backed lister and NDJSON chunk reader."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from nimbus.sdk.core import ServiceError
from nimbus.sdk.models import ShardCursor
from nimbus.sdk.runtime.changefeed import (
    ChunkFactory,
    NdjsonChunkReader,
    RestBlobLister,
    ShardFactory,
    fetch_segment_manifest,
)
from nimbus.sdk.runtime.rest import HttpResponse, RESTTransport

LINE_0 = b'[{"id": 1}, {"id": 2}]\n'
LINE_1 = b'[{"id": 3}]\n'
PARTIAL = b'[{"id": 4}'
CHUNK = LINE_0 + LINE_1


def _ranged_transport(content: bytes) -> MagicMock:
    """Transport serving ``content`` honoring ``Range: bytes=N-`` headers."""

    async def send(method, path, *, params=None, json_body=None, headers=None):
        start = int(headers["Range"].removeprefix("bytes=").rstrip("-"))
        if start >= len(content):
            return HttpResponse(status=416, url=path)
        return HttpResponse(status=206, url=path, content=content[start:])

    transport = MagicMock(spec=RESTTransport)
    transport.send = AsyncMock(side_effect=send)
    return transport


async def _read(reader, *args) -> list:
    return [record async for record in reader.read(*args)]


class TestNdjsonChunkReader:
    """Test block decoding and positions."""

    @pytest.mark.asyncio
    async def test_positions_follow_cursor_semantics(self):
        reader = NdjsonChunkReader(_ranged_transport(CHUNK), container_path="/feed")

        records = await _read(reader, "log/00/c0")

        assert [r.record["id"] for r in records] == [1, 2, 3]
        assert [(r.block_offset, r.event_index) for r in records] == [
            (0, 1),
            (len(LINE_0), 0),
            (len(CHUNK), 0),
        ]
        assert all(r.chunk_path == "log/00/c0" for r in records)

    @pytest.mark.asyncio
    async def test_range_request_and_skip(self):
        transport = _ranged_transport(CHUNK)
        reader = NdjsonChunkReader(transport, container_path="/feed/")

        records = await _read(reader, "log/00/c0", 0, 1)

        assert [r.record["id"] for r in records] == [2, 3]
        call = transport.send.await_args
        assert call.args == ("GET", "/feed/log/00/c0")
        assert call.kwargs["headers"] == {"Range": "bytes=0-"}

    @pytest.mark.asyncio
    async def test_resume_from_block_offset(self):
        reader = NdjsonChunkReader(_ranged_transport(CHUNK))
        records = await _read(reader, "c0", len(LINE_0), 0)
        assert [r.record["id"] for r in records] == [3]

    @pytest.mark.asyncio
    async def test_incomplete_trailing_block_ignored(self):
        reader = NdjsonChunkReader(_ranged_transport(CHUNK + PARTIAL))
        records = await _read(reader, "c0")
        assert [r.record["id"] for r in records] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_range_not_satisfiable_means_no_data(self):
        reader = NdjsonChunkReader(_ranged_transport(CHUNK))
        assert await _read(reader, "c0", len(CHUNK), 0) == []

    @pytest.mark.asyncio
    async def test_full_body_response_sliced_locally(self):
        transport = MagicMock(spec=RESTTransport)
        transport.send = AsyncMock(return_value=HttpResponse(status=200, url="c0", content=CHUNK))
        reader = NdjsonChunkReader(transport)

        records = await _read(reader, "c0", len(LINE_0), 0)

        assert [r.record["id"] for r in records] == [3]
        assert records[0].block_offset == len(CHUNK)

    @pytest.mark.asyncio
    async def test_error_status(self):
        transport = MagicMock(spec=RESTTransport)
        transport.send = AsyncMock(return_value=HttpResponse(status=404, url="c0"))

        with pytest.raises(ServiceError) as exc_info:
            await _read(NdjsonChunkReader(transport), "c0")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_malformed_block(self):
        reader = NdjsonChunkReader(_ranged_transport(b"not json\n"))
        with pytest.raises(ServiceError):
            await _read(reader, "c0")


class TestRestBlobLister:
    """Test paged container listing."""

    @pytest.mark.asyncio
    async def test_pages_through_markers(self):
        transport = MagicMock(spec=RESTTransport)
        transport.get = AsyncMock(
            side_effect=[
                {"blobs": [{"name": "log/00/c0"}, {"name": "log/00/c1"}], "nextMarker": "m1"},
                {"blobs": [{"name": "log/00/c2"}], "nextMarker": ""},
            ]
        )
        lister = RestBlobLister(transport, "/feed", page_size=2)

        names = [name async for name in lister.list_names("log/00/")]

        assert names == ["log/00/c0", "log/00/c1", "log/00/c2"]
        first, second = transport.get.call_args_list
        assert first.args == ("/feed",)
        assert first.kwargs["params"] == {
            "restype": "container",
            "comp": "list",
            "prefix": "log/00/",
            "maxresults": 2,
        }
        assert second.kwargs["params"]["marker"] == "m1"


class TestRestShardWalk:
    """Test a shard walk over the REST collaborators end to end."""

    @pytest.mark.asyncio
    async def test_resume_mid_block(self):
        transport = MagicMock(spec=RESTTransport)
        transport.get = AsyncMock(return_value={"blobs": [{"name": "log/00/c0"}]})
        ranged = _ranged_transport(CHUNK)
        transport.send = ranged.send
        factory = ShardFactory(RestBlobLister(transport, "/feed"), ChunkFactory(NdjsonChunkReader(transport)))

        shard = await factory.open("log/00/")
        first = await shard.next_record()
        resumed = await factory.open("log/00/", ShardCursor.from_json(shard.cursor().to_json()))

        assert first.record == {"id": 1}
        assert [r.record["id"] async for r in resumed.walk()] == [2, 3]


@pytest.mark.asyncio
async def test_fetch_segment_manifest():
    transport = MagicMock(spec=RESTTransport)
    transport.get = AsyncMock(return_value={"chunkFilePaths": ["$blobchangefeed/log/00/"]})

    assert await fetch_segment_manifest(transport, "/feed/idx/segments/0000/meta.json") == ["log/00/"]

    transport.get.return_value = ["not", "an", "object"]
    with pytest.raises(ServiceError):
        await fetch_segment_manifest(transport, "/feed/idx/segments/0000/meta.json")
