"""Stream record and page containers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ChunkRecord(BaseModel):
    """One record read from a chunk.

    ``block_offset``/``event_index`` give the position right after this
    record was consumed, i.e. where reading resumes.
    """

    record: Any
    block_offset: int = Field(..., ge=0)
    event_index: int = Field(..., ge=0)
    chunk_path: str | None = None

    model_config = ConfigDict(frozen=True)


@dataclass
class Page(Generic[T]):
    """One page of a paginated listing.

    Attributes:
        items: Items in the page (may be empty even when more pages follow)
        continuation_token: Opaque marker for the next page, None on the last page
    """

    items: list[T] = field(default_factory=list)
    continuation_token: str | None = None

    def __len__(self) -> int:
        return len(self.items)
