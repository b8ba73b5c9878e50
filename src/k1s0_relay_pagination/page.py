"""Relay-style page result."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Edge(Generic[T]):
    """A result document together with the cursor pointing at it."""

    cursor: str
    node: T


@dataclass(frozen=True)
class PageInfo:
    """Relay page info. total_count is only set when requested."""

    start_cursor: str | None = None
    end_cursor: str | None = None
    has_previous_page: bool = False
    has_next_page: bool = False
    total_count: int | None = None


@dataclass(frozen=True)
class Page(Generic[T]):
    """A page of edges in the caller's sort order."""

    edges: list[Edge[T]] = field(default_factory=list)
    page_info: PageInfo = field(default_factory=PageInfo)

    @property
    def nodes(self) -> list[T]:
        return [edge.node for edge in self.edges]

    def to_dict(self) -> dict[str, Any]:
        """Return the Relay connection shape (camelCase keys)."""
        page_info: dict[str, Any] = {
            "startCursor": self.page_info.start_cursor,
            "endCursor": self.page_info.end_cursor,
            "hasPreviousPage": self.page_info.has_previous_page,
            "hasNextPage": self.page_info.has_next_page,
        }
        if self.page_info.total_count is not None:
            page_info["totalCount"] = self.page_info.total_count
        return {
            "edges": [{"cursor": edge.cursor, "node": edge.node} for edge in self.edges],
            "pageInfo": page_info,
        }
