"""REST-backed listing and chunk reading collaborators.

Architecture:
    RestBlobLister pages through a container listing endpoint and yields
    entry names. NdjsonChunkReader fetches a chunk from a byte offset with
    an HTTP Range request and decodes it block by block.

Design Decisions:
    - Chunk layout: Each complete newline-terminated line is one block,
      holding a JSON array of records. The block offset is the byte offset
      of the line within the chunk.
    - Incomplete trailing line is ignored: A chunk may be appended to while
      it is read; the partial block is picked up by a later read.
    - 416 Range Not Satisfiable means no new data at that offset.
    - A server that ignores Range (200 with the full body) is sliced locally.

See Also:
    - definitions: BlobLister / ChunkReader protocols
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Mapping
from typing import Any

from ...core.context import TraceContext
from ...core.exceptions import ServiceError
from ...models.records import ChunkRecord
from ..rest.runner import ResponseAdapter, RestEndpointSpec, RestRunner
from ..rest.transport import RESTTransport
from .segment import DEFAULT_CONTAINER_PREFIX, parse_segment_manifest


def _listing_query(params: dict[str, Any]) -> dict[str, Any]:
    query: dict[str, Any] = {"restype": "container", "comp": "list", "prefix": params["prefix"]}
    if params.get("continuation_token"):
        query["marker"] = params["continuation_token"]
    if params.get("max_page_size"):
        query["maxresults"] = params["max_page_size"]
    return query


def _next_marker(response: Any) -> str | None:
    if isinstance(response, dict):
        return response.get("nextMarker") or None
    return None


class BlobNameAdapter(ResponseAdapter):
    """Entry names of a ``{"blobs": [{"name": ...}], "nextMarker": ...}`` page."""

    def parse(self, response: Any, params: dict[str, Any]) -> list[str]:
        if not isinstance(response, dict):
            return []
        names: list[str] = []
        for entry in response.get("blobs") or []:
            if isinstance(entry, str):
                names.append(entry)
            elif isinstance(entry, dict) and entry.get("name"):
                names.append(str(entry["name"]))
        return names


class RestBlobLister:
    """BlobLister over a paged container listing endpoint."""

    def __init__(
        self,
        transport: RESTTransport,
        container_path: str,
        *,
        page_size: int | None = None,
        context: TraceContext | None = None,
    ) -> None:
        self._runner = RestRunner(transport)
        self._page_size = page_size
        self._context = context
        self._spec = RestEndpointSpec(
            id="list_blobs",
            method="GET",
            build_path=lambda _params: container_path,
            build_query=_listing_query,
            next_cursor=_next_marker,
        )

    async def list_names(self, prefix: str) -> AsyncIterator[str]:
        pager = self._runner.paginate(
            spec=self._spec,
            params={"prefix": prefix},
            adapter=BlobNameAdapter(),
            max_page_size=self._page_size,
            context=self._context,
        )
        async for name in pager:
            yield name


def _decode_block(line: bytes, chunk_path: str, offset: int) -> list[Any]:
    try:
        block = json.loads(line)
    except ValueError as exc:
        raise ServiceError(f"Malformed block at offset {offset} of chunk {chunk_path}") from exc
    return block if isinstance(block, list) else [block]


class NdjsonChunkReader:
    """ChunkReader fetching newline-delimited JSON blocks over HTTP."""

    def __init__(self, transport: RESTTransport, *, container_path: str = "") -> None:
        self._transport = transport
        self._container_path = container_path.rstrip("/")

    def _url(self, chunk_path: str) -> str:
        if not self._container_path:
            return chunk_path
        return f"{self._container_path}/{chunk_path.lstrip('/')}"

    async def read(
        self, chunk_path: str, block_offset: int = 0, event_index: int = 0
    ) -> AsyncIterator[ChunkRecord]:
        response = await self._transport.send(
            "GET", self._url(chunk_path), headers={"Range": f"bytes={block_offset}-"}
        )
        if response.status == 416:
            return
        if not response.ok:
            raise ServiceError(
                f"Reading chunk {chunk_path} failed with HTTP {response.status}",
                status_code=response.status,
            )

        content = response.content
        if response.status == 200 and block_offset:
            content = content[block_offset:]

        offset = block_offset
        skip = event_index
        start = 0
        while (end := content.find(b"\n", start)) != -1:
            line = content[start:end]
            next_offset = offset + (end - start) + 1
            records = _decode_block(line, chunk_path, offset) if line.strip() else []
            for index in range(skip, len(records)):
                consumed = index + 1
                if consumed < len(records):
                    yield ChunkRecord(
                        record=records[index],
                        block_offset=offset,
                        event_index=consumed,
                        chunk_path=chunk_path,
                    )
                else:
                    yield ChunkRecord(
                        record=records[index],
                        block_offset=next_offset,
                        event_index=0,
                        chunk_path=chunk_path,
                    )
            skip = 0
            offset = next_offset
            start = end + 1


async def fetch_segment_manifest(
    transport: RESTTransport,
    manifest_path: str,
    *,
    container_prefix: str = DEFAULT_CONTAINER_PREFIX,
) -> list[str]:
    """Fetch a segment manifest and return its shard paths."""
    manifest = await transport.get(manifest_path)
    if not isinstance(manifest, Mapping):
        raise ServiceError(f"Segment manifest {manifest_path} is not a JSON object")
    return parse_segment_manifest(manifest, container_prefix)
