"""
List controllers for each entity screen.

Items get their own controller because the item list adds relation and
visibility filters on top of search. The other collections use the generic
controller as-is.
"""

from rxstorage.events import EventBus
from rxstorage.lib import logs
from rxstorage.models.common import ItemFilters
from rxstorage.models.entities import (
    Author,
    Category,
    Location,
    PositionSchema,
    StorageItem,
)
from rxstorage.services.base import EntityService
from rxstorage.viewmodels.paginated_search import PaginatedSearchController

LOG = logs.logger(__file__)


class ItemListController(PaginatedSearchController[StorageItem]):
    """Item list with category, location, author, parent and visibility filters."""

    filters: ItemFilters

    def __init__(
        self,
        service: EntityService[StorageItem],
        filters: ItemFilters | None = None,
        event_bus: EventBus | None = None,
        **kwargs,
    ) -> None:
        super().__init__(
            service,
            filters=filters if filters is not None else ItemFilters(),
            event_bus=event_bus,
            **kwargs,
        )

    @property
    def has_active_filters(self) -> bool:
        """True when any filter other than search is set."""
        return self.filters.has_active_filters

    async def apply_filters(self, filters: ItemFilters) -> None:
        """Replace the filter set and reload from the first page."""
        LOG.info("apply_filters - filters:%s", filters.to_params())
        self.filters = filters
        if filters.search is not None:
            self.search_text = filters.search
        self.reset_pagination()
        await self.load_initial()

    async def clear_filters(self) -> None:
        """Drop every filter, search included, and reload."""
        self.filters = ItemFilters()
        self.search_text = ""
        self.reset_pagination()
        await self.load_initial()


def item_list(
    service: EntityService[StorageItem], event_bus: EventBus | None = None, **kwargs
) -> ItemListController:
    return ItemListController(service, event_bus=event_bus, **kwargs)


def category_list(
    service: EntityService[Category], event_bus: EventBus | None = None, **kwargs
) -> PaginatedSearchController[Category]:
    return PaginatedSearchController(service, event_bus=event_bus, **kwargs)


def location_list(
    service: EntityService[Location], event_bus: EventBus | None = None, **kwargs
) -> PaginatedSearchController[Location]:
    return PaginatedSearchController(service, event_bus=event_bus, **kwargs)


def author_list(
    service: EntityService[Author], event_bus: EventBus | None = None, **kwargs
) -> PaginatedSearchController[Author]:
    return PaginatedSearchController(service, event_bus=event_bus, **kwargs)


def position_schema_list(
    service: EntityService[PositionSchema], event_bus: EventBus | None = None, **kwargs
) -> PaginatedSearchController[PositionSchema]:
    return PaginatedSearchController(service, event_bus=event_bus, **kwargs)
