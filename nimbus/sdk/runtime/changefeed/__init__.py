"""Resumable walking of chunked, append-only record streams."""

from .chunk import Chunk, ChunkFactory
from .definitions import BlobLister, ChunkReader
from .readers import BlobNameAdapter, NdjsonChunkReader, RestBlobLister, fetch_segment_manifest
from .segment import Segment, SegmentFactory, parse_segment_manifest
from .shard import Shard, ShardFactory

__all__ = [
    "BlobLister",
    "ChunkReader",
    "Chunk",
    "ChunkFactory",
    "Shard",
    "ShardFactory",
    "Segment",
    "SegmentFactory",
    "parse_segment_manifest",
    "RestBlobLister",
    "BlobNameAdapter",
    "NdjsonChunkReader",
    "fetch_segment_manifest",
]
