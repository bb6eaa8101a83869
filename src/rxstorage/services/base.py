"""
Abstract base class defining the entity data access contract.

Every list screen talks to an EntityService; implementations decide where
the data comes from.

Implementations:
- ApiEntityService: the RxStorage REST API through APIClient
- DemoEntityService: static in-memory data for development and testing
"""

from abc import ABC, abstractmethod
from typing import Generic, List, TypeVar

from rxstorage.events import EntityKind
from rxstorage.models.common import MAX_PAGE_SIZE, ListFilters, PaginatedResponse

T = TypeVar("T")


class EntityService(ABC, Generic[T]):
    """
    Async data access for one entity type.

    Attributes:
        kind: Entity type served, used to tag change events.
    """

    kind: EntityKind

    @abstractmethod
    async def list_paginated(self, filters: ListFilters) -> PaginatedResponse[T]:
        """
        Return one page of entities matching ``filters``.

        Args:
            filters: Search, relation filters and cursor position. A missing
                cursor selects the first page.
        """

    @abstractmethod
    async def get(self, entity_id: int) -> T:
        """Return a single entity; raises NotFoundError when it does not exist."""

    @abstractmethod
    async def delete(self, entity_id: int) -> None:
        """Delete a single entity."""

    async def list(self, filters: ListFilters | None = None) -> List[T]:
        """
        Return every entity matching ``filters`` by following cursors.

        Intended for small collections such as picker sources.
        """
        filters = filters or ListFilters()
        page_filters = filters.page(limit=filters.limit or MAX_PAGE_SIZE)
        entities: List[T] = []
        while True:
            page = await self.list_paginated(page_filters)
            entities.extend(page.data)
            cursor = page.pagination.next_cursor
            if not page.pagination.has_next_page or not cursor:
                return entities
            page_filters = page_filters.page(cursor=cursor, limit=page_filters.limit)
