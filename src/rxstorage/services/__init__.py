"""
Service factory for the RxStorage client.

This module provides the get_service() factory function that returns the
appropriate EntityService implementation for an entity type.

Available Implementations:
- api: REST-backed services talking to the RxStorage server (default)
- demo: In-memory services with static fixture data (no server required)

Services are cached at the module level, so the same instance is reused for
the same entity, kind and client. Configure via RXSTORAGE_SERVICE.
"""

import os
from functools import cache
from typing import Callable, Dict

from rxstorage.data.demo_entities import (
    DEMO_AUTHORS,
    DEMO_CATEGORIES,
    DEMO_LOCATIONS,
    DEMO_POSITION_SCHEMAS,
    demo_items,
)
from rxstorage.events import EntityKind
from rxstorage.lib import logs
from rxstorage.networking.client import APIClient
from rxstorage.services.api import (
    ApiEntityService,
    AuthorService,
    CategoryService,
    ItemService,
    LocationService,
    PositionSchemaService,
)
from rxstorage.services.base import EntityService
from rxstorage.services.demo import DemoEntityService, DemoItemService

LOG = logs.logger(__file__)

__all__ = [
    "ApiEntityService",
    "DemoEntityService",
    "DemoItemService",
    "EntityService",
    "get_service",
]

_API_SERVICES: Dict[EntityKind, Callable[[APIClient], EntityService]] = {
    EntityKind.ITEM: ItemService,
    EntityKind.CATEGORY: CategoryService,
    EntityKind.LOCATION: LocationService,
    EntityKind.AUTHOR: AuthorService,
    EntityKind.POSITION_SCHEMA: PositionSchemaService,
}

_DEMO_SERVICES: Dict[EntityKind, Callable[[], EntityService]] = {
    EntityKind.ITEM: lambda: DemoItemService(demo_items()),
    EntityKind.CATEGORY: lambda: DemoEntityService(
        EntityKind.CATEGORY, DEMO_CATEGORIES, sort_value=lambda c: c.name
    ),
    EntityKind.LOCATION: lambda: DemoEntityService(
        EntityKind.LOCATION, DEMO_LOCATIONS, sort_value=lambda loc: loc.title
    ),
    EntityKind.AUTHOR: lambda: DemoEntityService(
        EntityKind.AUTHOR, DEMO_AUTHORS, sort_value=lambda a: a.name
    ),
    EntityKind.POSITION_SCHEMA: lambda: DemoEntityService(
        EntityKind.POSITION_SCHEMA, DEMO_POSITION_SCHEMAS, sort_value=lambda s: s.name
    ),
}


@cache
def get_service(
    entity: EntityKind, kind: str | None = None, client: APIClient | None = None
) -> EntityService:
    """
    Return the configured service implementation for ``entity``.

    Args:
        entity: Entity type to serve.
        kind: "api" or "demo"; defaults to RXSTORAGE_SERVICE, then "api".
        client: API client, required for the "api" kind.

    Raises:
        ValueError: Unknown kind or entity, or "api" without a client.
    """
    resolved_kind = (kind or os.getenv("RXSTORAGE_SERVICE", "api")).lower()
    LOG.info(
        "get_service - entity:%s kind:%s resolved_kind:%s",
        entity.value,
        kind,
        resolved_kind,
    )
    if resolved_kind == "demo":
        registry: Dict[EntityKind, Callable] = _DEMO_SERVICES
        args: tuple = ()
    elif resolved_kind == "api":
        if client is None:
            raise ValueError("The api service requires an APIClient")
        registry, args = _API_SERVICES, (client,)
    else:
        raise ValueError(f"Unknown service kind: {resolved_kind}")

    try:
        factory = registry[entity]
    except KeyError as exc:
        msg = f"No {resolved_kind} service for entity: {entity.value}"
        raise ValueError(msg) from exc
    return factory(*args)
