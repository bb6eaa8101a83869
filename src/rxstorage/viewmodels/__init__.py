"""
List state for the RxStorage client.

PaginatedSearchController holds the debounced search and cursor pagination
state of one list; viewmodels.lists builds one per entity screen.
"""

from rxstorage.viewmodels.lists import (
    ItemListController,
    author_list,
    category_list,
    item_list,
    location_list,
    position_schema_list,
)
from rxstorage.viewmodels.paginated_search import PaginatedSearchController

__all__ = [
    "ItemListController",
    "PaginatedSearchController",
    "author_list",
    "category_list",
    "item_list",
    "location_list",
    "position_schema_list",
]
