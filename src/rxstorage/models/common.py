"""
Pagination and filter models shared by every entity list.

The server pages with opaque cursors:

    GET /api/items?limit=20&search=drill
    -> {"data": [...], "pagination": {"nextCursor": "eyJ...", "hasNextPage": true,
                                      "prevCursor": null, "hasPrevPage": false}}

    GET /api/items?limit=20&search=drill&cursor=eyJ...&direction=next
"""

import enum
from dataclasses import dataclass, field, fields, replace
from typing import Any, Generic, Mapping, Sequence, TypeVar

from benedict import benedict

# Default page size for list requests
PAGE_SIZE = 20
# Maximum page size accepted by the server
MAX_PAGE_SIZE = 100

T = TypeVar("T")


class PaginationDirection(str, enum.Enum):
    NEXT = "next"
    PREV = "prev"


class Visibility(str, enum.Enum):
    PUBLIC = "publicAccess"
    PRIVATE = "privateAccess"


@dataclass(frozen=True, slots=True)
class PaginationInfo:
    """Cursor metadata returned alongside a page."""

    next_cursor: str | None = None
    prev_cursor: str | None = None
    has_next_page: bool = False
    has_prev_page: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "PaginationInfo":
        if not data:
            return cls()
        b = data if isinstance(data, benedict) else benedict(data)
        return cls(
            next_cursor=b.get_str("nextCursor", None) or None,
            prev_cursor=b.get_str("prevCursor", None) or None,
            has_next_page=b.get_bool("hasNextPage", False),
            has_prev_page=b.get_bool("hasPrevPage", False),
        )

    def to_dict(self) -> dict:
        return {
            "nextCursor": self.next_cursor,
            "prevCursor": self.prev_cursor,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }


@dataclass(frozen=True, slots=True)
class PaginatedResponse(Generic[T]):
    """One page of entities plus its cursor metadata."""

    data: Sequence[T]
    pagination: PaginationInfo = field(default_factory=PaginationInfo)


@dataclass(slots=True)
class ListFilters:
    """
    Query parameters accepted by every list endpoint.

    Attributes:
        search: Free-text search, None for no search.
        cursor: Opaque cursor from a previous page.
        direction: Which way to page from ``cursor``.
        limit: Page size (1..MAX_PAGE_SIZE).
    """

    search: str | None = None
    cursor: str | None = None
    direction: PaginationDirection | None = None
    limit: int | None = None

    # Names of the fields that select *what* is listed, as opposed to paging.
    _PAGING_FIELDS = ("cursor", "direction", "limit")

    def to_params(self) -> dict[str, str | int]:
        """Render as query parameters, omitting unset values."""
        params: dict[str, str | int] = {}
        for name, value in self._items():
            if value is None:
                continue
            if isinstance(value, enum.Enum):
                value = value.value
            params[_camel(name)] = value
        if "limit" in params:
            params["limit"] = max(1, min(int(params["limit"]), MAX_PAGE_SIZE))
        return params

    def page(self, cursor: str | None = None, limit: int = PAGE_SIZE) -> "ListFilters":
        """Copy of these filters positioned at ``cursor`` (first page when None)."""
        return replace(
            self,
            cursor=cursor,
            direction=PaginationDirection.NEXT if cursor else None,
            limit=limit,
        )

    @property
    def is_empty(self) -> bool:
        """True when no selecting filter (search included) is set."""
        return all(
            value is None
            for name, value in self._items()
            if name not in self._PAGING_FIELDS
        )

    @property
    def has_active_filters(self) -> bool:
        """True when a selecting filter other than search is set."""
        return any(
            value is not None
            for name, value in self._items()
            if name not in self._PAGING_FIELDS and name != "search"
        )

    def _items(self):
        return ((f.name, getattr(self, f.name)) for f in fields(self))


@dataclass(slots=True)
class ItemFilters(ListFilters):
    """Item list filters; adds relation and visibility filters."""

    category_id: int | None = None
    location_id: int | None = None
    author_id: int | None = None
    parent_id: int | None = None
    visibility: Visibility | None = None


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)
