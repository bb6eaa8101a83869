"""
Demo implementation of EntityService using static in-memory data.

This service is useful for:
- Local development without a running RxStorage server
- Testing list controllers with realistic data
- Demonstrating the client without credentials

Pagination follows the server's cursor format: a URL-safe base64 JSON
object ``{"sortValue": ..., "id": ...}`` naming the last (or first) row of
the previous page. Items sort by ``updated_at`` descending, everything else
by name or title ascending, with the id as tie-breaker.
"""

import asyncio
import base64
import json
from dataclasses import dataclass
from typing import Any, Callable, List, Sequence, TypeVar

from rxstorage.errors import NotFoundError
from rxstorage.events import EntityKind
from rxstorage.lib import logs
from rxstorage.models.common import (
    MAX_PAGE_SIZE,
    PAGE_SIZE,
    ItemFilters,
    ListFilters,
    PaginatedResponse,
    PaginationDirection,
    PaginationInfo,
)
from rxstorage.models.entities import StorageItem
from rxstorage.services.base import EntityService

LOG = logs.logger(__file__)

T = TypeVar("T")

SortValue = str | int | float


@dataclass(frozen=True, slots=True)
class CursorValue:
    sort_value: SortValue
    id: int


def encode_cursor(value: CursorValue) -> str:
    """Encode a cursor as URL-safe base64 JSON, without padding."""
    raw = json.dumps({"sortValue": value.sort_value, "id": value.id}, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> CursorValue | None:
    """Decode a cursor; returns None for anything malformed."""
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        parsed = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (ValueError, UnicodeError):
        return None
    if not isinstance(parsed, dict):
        return None
    entity_id = parsed.get("id")
    sort_value = parsed.get("sortValue")
    if isinstance(entity_id, bool) or not isinstance(entity_id, int):
        return None
    if isinstance(sort_value, bool) or not isinstance(sort_value, (str, int, float)):
        return None
    return CursorValue(sort_value=sort_value, id=entity_id)


class DemoEntityService(EntityService[T]):
    """
    In-memory service over a list of entities.

    Args:
        kind: Entity type served.
        entities: Rows to serve; the list is copied.
        sort_value: Extracts the primary sort column of a row.
        descending: Sort newest or largest first.
        latency: Seconds to sleep per call, to make loading states visible.
    """

    def __init__(
        self,
        kind: EntityKind,
        entities: Sequence[T],
        sort_value: Callable[[T], SortValue],
        descending: bool = False,
        latency: float = 0.0,
    ) -> None:
        self.kind = kind
        self._entities: List[T] = list(entities)
        self._sort_value = sort_value
        self._descending = descending
        self.latency = latency

    async def list_paginated(self, filters: ListFilters) -> PaginatedResponse[T]:
        await self._simulate_latency()
        limit = max(1, min(filters.limit or PAGE_SIZE, MAX_PAGE_SIZE))
        direction = filters.direction or PaginationDirection.NEXT
        cursor = decode_cursor(filters.cursor) if filters.cursor else None
        if cursor is not None and not self._accepts(cursor):
            LOG.debug("Ignoring cursor with mismatched sort value - cursor:%s", cursor)
            cursor = None

        ordered = sorted(
            (entity for entity in self._entities if self.matches(entity, filters)),
            key=self._key,
            reverse=self._descending,
        )
        if cursor is None:
            window = ordered
        elif direction is PaginationDirection.NEXT:
            window = [entity for entity in ordered if self._is_after(entity, cursor)]
        else:
            # Rows before the cursor, nearest first.
            window = [entity for entity in reversed(ordered) if self._is_before(entity, cursor)]

        LOG.debug(
            "list_paginated - kind:%s search:%s direction:%s matches:%s",
            self.kind.value,
            filters.search,
            direction.value,
            len(window),
        )
        return self._build_page(window[: limit + 1], limit, direction, cursor is not None)

    async def get(self, entity_id: int) -> T:
        await self._simulate_latency()
        for entity in self._entities:
            if entity.id == entity_id:
                return entity
        raise NotFoundError()

    async def delete(self, entity_id: int) -> None:
        await self._simulate_latency()
        entity = await self.get(entity_id)
        self._entities.remove(entity)

    def matches(self, entity: T, filters: ListFilters) -> bool:
        """Case-insensitive substring match of ``filters.search``."""
        query = (filters.search or "").strip().lower()
        if not query:
            return True
        return any(query in term for term in entity.searchable_terms())

    def _build_page(
        self, rows: List[T], limit: int, direction: PaginationDirection, has_cursor: bool
    ) -> PaginatedResponse[T]:
        has_more = len(rows) > limit
        rows = rows[:limit]
        if direction is PaginationDirection.PREV:
            rows.reverse()
            has_next_page, has_prev_page = True, has_more
        else:
            has_next_page, has_prev_page = has_more, has_cursor

        next_cursor = prev_cursor = None
        if rows:
            if has_next_page:
                next_cursor = encode_cursor(self._cursor_for(rows[-1]))
            if has_prev_page:
                prev_cursor = encode_cursor(self._cursor_for(rows[0]))
        return PaginatedResponse(
            data=rows,
            pagination=PaginationInfo(
                next_cursor=next_cursor,
                prev_cursor=prev_cursor,
                has_next_page=has_next_page,
                has_prev_page=has_prev_page,
            ),
        )

    def _key(self, entity: T) -> tuple[Any, int]:
        return (self._sort_value(entity), entity.id)

    def _cursor_for(self, entity: T) -> CursorValue:
        return CursorValue(sort_value=self._sort_value(entity), id=entity.id)

    def _accepts(self, cursor: CursorValue) -> bool:
        """A cursor only applies when its sort value compares with the column's."""
        if not self._entities:
            return True
        column = self._sort_value(self._entities[0])
        return isinstance(cursor.sort_value, str) == isinstance(column, str)

    def _is_after(self, entity: T, cursor: CursorValue) -> bool:
        key, bound = self._key(entity), (cursor.sort_value, cursor.id)
        return key < bound if self._descending else key > bound

    def _is_before(self, entity: T, cursor: CursorValue) -> bool:
        key, bound = self._key(entity), (cursor.sort_value, cursor.id)
        return key > bound if self._descending else key < bound

    async def _simulate_latency(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)


class DemoItemService(DemoEntityService[StorageItem]):
    """Demo items, newest first, honouring the item relation filters."""

    def __init__(self, items: Sequence[StorageItem], latency: float = 0.0) -> None:
        super().__init__(
            EntityKind.ITEM,
            items,
            sort_value=lambda item: item.updated_at.isoformat() if item.updated_at else "",
            descending=True,
            latency=latency,
        )

    def matches(self, entity: StorageItem, filters: ListFilters) -> bool:
        if not super().matches(entity, filters):
            return False
        if not isinstance(filters, ItemFilters):
            return True
        expected = {
            "category_id": filters.category_id,
            "location_id": filters.location_id,
            "author_id": filters.author_id,
            "parent_id": filters.parent_id,
            "visibility": filters.visibility,
        }
        return all(
            value is None or getattr(entity, name) == value
            for name, value in expected.items()
        )
