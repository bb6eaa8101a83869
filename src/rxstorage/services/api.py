"""
REST implementations of EntityService.

Each service maps onto one collection of the RxStorage API:

    GET    /api/<collection>?limit=20&search=...&cursor=...&direction=next
    GET    /api/<collection>/<id>
    DELETE /api/<collection>/<id>
"""

from typing import Any, Callable, Mapping, TypeVar

from rxstorage.events import EntityKind
from rxstorage.lib import logs
from rxstorage.models.common import PAGE_SIZE, ListFilters, PaginatedResponse
from rxstorage.models.entities import (
    Author,
    Category,
    Location,
    PositionSchema,
    StorageItem,
    parse_author,
    parse_category,
    parse_item,
    parse_location,
    parse_page,
    parse_position_schema,
)
from rxstorage.networking.client import APIClient
from rxstorage.services.base import EntityService

LOG = logs.logger(__file__)

T = TypeVar("T")


class ApiEntityService(EntityService[T]):
    """
    Generic REST-backed service.

    Subclasses set ``path`` (collection path below /api), ``kind`` and
    ``parse`` (payload to entity).
    """

    path: str
    parse: Callable[[Mapping[str, Any]], T]

    def __init__(self, client: APIClient) -> None:
        self._client = client

    async def list_paginated(self, filters: ListFilters) -> PaginatedResponse[T]:
        params = filters.to_params()
        params.setdefault("limit", PAGE_SIZE)
        LOG.debug("list_paginated - path:%s params:%s", self.path, params)
        payload = await self._client.get(self.path, params=params)
        return parse_page(payload or {}, self.parse)

    async def get(self, entity_id: int) -> T:
        payload = await self._client.get(f"{self.path}/{entity_id}")
        return self.parse(payload)

    async def delete(self, entity_id: int) -> None:
        LOG.info("delete - path:%s id:%s", self.path, entity_id)
        await self._client.delete(f"{self.path}/{entity_id}")


class ItemService(ApiEntityService[StorageItem]):
    path = "items"
    kind = EntityKind.ITEM
    parse = staticmethod(parse_item)


class CategoryService(ApiEntityService[Category]):
    path = "categories"
    kind = EntityKind.CATEGORY
    parse = staticmethod(parse_category)


class LocationService(ApiEntityService[Location]):
    path = "locations"
    kind = EntityKind.LOCATION
    parse = staticmethod(parse_location)


class AuthorService(ApiEntityService[Author]):
    path = "authors"
    kind = EntityKind.AUTHOR
    parse = staticmethod(parse_author)


class PositionSchemaService(ApiEntityService[PositionSchema]):
    path = "position-schemas"
    kind = EntityKind.POSITION_SCHEMA
    parse = staticmethod(parse_position_schema)
