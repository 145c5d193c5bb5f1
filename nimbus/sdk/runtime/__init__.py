"""Runtime components: transport, polling, paging and stream walking."""

from .changefeed import (
    ChunkFactory,
    NdjsonChunkReader,
    RestBlobLister,
    SegmentFactory,
    ShardFactory,
)
from .paging import AsyncPager
from .polling import ExponentialBackoff, FixedInterval, LROPoller
from .rest import BearerTokenPolicy, HTTPClient, RESTTransport, RestEndpointSpec, RestRunner

__all__ = [
    "AsyncPager",
    "BearerTokenPolicy",
    "ChunkFactory",
    "ExponentialBackoff",
    "FixedInterval",
    "HTTPClient",
    "LROPoller",
    "NdjsonChunkReader",
    "RESTTransport",
    "RestBlobLister",
    "RestEndpointSpec",
    "RestRunner",
    "SegmentFactory",
    "ShardFactory",
]
