"""
Data models for the RxStorage client.

This package provides:
- Pagination types and list filters shared by every collection
- Entity dataclasses (items, categories, locations, authors, schemas)
- Payload parsers for the server's JSON

All models use Python dataclasses.
"""

from rxstorage.models.common import (
    MAX_PAGE_SIZE,
    PAGE_SIZE,
    ItemFilters,
    ListFilters,
    PaginatedResponse,
    PaginationDirection,
    PaginationInfo,
    Visibility,
)
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

__all__ = [
    "MAX_PAGE_SIZE",
    "PAGE_SIZE",
    "Author",
    "Category",
    "ItemFilters",
    "ListFilters",
    "Location",
    "PaginatedResponse",
    "PaginationDirection",
    "PaginationInfo",
    "PositionSchema",
    "StorageItem",
    "Visibility",
    "parse_author",
    "parse_category",
    "parse_item",
    "parse_location",
    "parse_page",
    "parse_position_schema",
]
