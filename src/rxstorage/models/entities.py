"""
Entity models for the RxStorage inventory API.

The hierarchy mirrors the server's JSON:

    StorageItem
    ├── Category  (optional relation)
    ├── Location  (optional relation)
    └── Author    (optional relation)
    PositionSchema (free-form JSON schema for item positions)

Parsers accept the decoded JSON objects and use benedict for tolerant,
typed access so missing or null fields fall back to defaults instead of
raising KeyError.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Mapping, Sequence, TypeVar

from benedict import benedict

from rxstorage.models.common import PaginatedResponse, PaginationInfo, Visibility

T = TypeVar("T")


@dataclass(slots=True)
class Category:
    id: int
    name: str
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def searchable_terms(self) -> List[str]:
        return _terms(self.name, self.description)


@dataclass(slots=True)
class Location:
    id: int
    title: str
    latitude: float = 0.0
    longitude: float = 0.0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def searchable_terms(self) -> List[str]:
        return _terms(self.title)


@dataclass(slots=True)
class Author:
    id: int
    name: str
    bio: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def searchable_terms(self) -> List[str]:
        return _terms(self.name, self.bio)


@dataclass(slots=True)
class PositionSchema:
    """Named JSON schema that item positions are validated against."""

    id: int
    name: str
    schema: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def searchable_terms(self) -> List[str]:
        return _terms(self.name)


@dataclass(slots=True)
class StorageItem:
    """Primary inventory entity."""

    id: int
    title: str
    description: str | None = None
    category_id: int | None = None
    location_id: int | None = None
    author_id: int | None = None
    parent_id: int | None = None
    price: float | None = None
    currency: str | None = None
    visibility: Visibility = Visibility.PUBLIC
    images: Sequence[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    preview_url: str = ""
    category: Category | None = None
    location: Location | None = None
    author: Author | None = None

    @property
    def is_child_item(self) -> bool:
        return self.parent_id is not None

    @property
    def is_root_item(self) -> bool:
        return self.parent_id is None

    def searchable_terms(self) -> List[str]:
        terms = _terms(self.title, self.description)
        for relation in (self.category, self.location, self.author):
            if relation is not None:
                terms.extend(relation.searchable_terms())
        return terms


def _terms(*values: str | None) -> List[str]:
    return [value.lower() for value in values if value]


def _wrap(payload: Mapping[str, Any]) -> benedict:
    return payload if isinstance(payload, benedict) else benedict(payload)


def _timestamps(b: benedict) -> dict[str, datetime | None]:
    return {
        "created_at": b.get_datetime("createdAt", None),
        "updated_at": b.get_datetime("updatedAt", None),
    }


def _optional_int(b: benedict, key: str) -> int | None:
    return b.get_int(key, None) if b.get(key) is not None else None


def parse_category(payload: Mapping[str, Any]) -> Category:
    b = _wrap(payload)
    return Category(
        id=b.get_int("id"),
        name=b.get_str("name"),
        description=b.get("description"),
        **_timestamps(b),
    )


def parse_location(payload: Mapping[str, Any]) -> Location:
    b = _wrap(payload)
    return Location(
        id=b.get_int("id"),
        title=b.get_str("title"),
        latitude=b.get_float("latitude", 0.0),
        longitude=b.get_float("longitude", 0.0),
        **_timestamps(b),
    )


def parse_author(payload: Mapping[str, Any]) -> Author:
    b = _wrap(payload)
    return Author(
        id=b.get_int("id"),
        name=b.get_str("name"),
        bio=b.get("bio"),
        **_timestamps(b),
    )


def parse_position_schema(payload: Mapping[str, Any]) -> PositionSchema:
    # The schema body is user-defined JSON whose keys may contain the
    # keypath separator, so it is read before wrapping the rest.
    schema = payload.get("schema") or {}
    b = _wrap({key: value for key, value in payload.items() if key != "schema"})
    return PositionSchema(
        id=b.get_int("id"),
        name=b.get_str("name"),
        schema=dict(schema),
        **_timestamps(b),
    )


def parse_item(payload: Mapping[str, Any]) -> StorageItem:
    b = _wrap(payload)
    visibility = b.get_str("visibility", Visibility.PUBLIC.value)
    return StorageItem(
        id=b.get_int("id"),
        title=b.get_str("title"),
        description=b.get("description"),
        category_id=_optional_int(b, "categoryId"),
        location_id=_optional_int(b, "locationId"),
        author_id=_optional_int(b, "authorId"),
        parent_id=_optional_int(b, "parentId"),
        price=b.get_float("price", None) if b.get("price") is not None else None,
        currency=b.get("currency"),
        visibility=(
            Visibility(visibility)
            if visibility in {v.value for v in Visibility}
            else Visibility.PUBLIC
        ),
        images=[str(image) for image in b.get("images") or []],
        preview_url=b.get_str("previewUrl", ""),
        category=parse_category(b["category"]) if b.get("category") else None,
        location=parse_location(b["location"]) if b.get("location") else None,
        author=parse_author(b["author"]) if b.get("author") else None,
        **_timestamps(b),
    )


def parse_page(
    payload: Mapping[str, Any], parse: Callable[[Mapping[str, Any]], T]
) -> PaginatedResponse[T]:
    """
    Parse a ``{data, pagination}`` envelope with the given entity parser.

    A bare JSON list is accepted as a single, final page.
    """
    if isinstance(payload, list):
        return PaginatedResponse(data=[parse(entry) for entry in payload])
    return PaginatedResponse(
        data=[parse(entry) for entry in payload.get("data") or []],
        pagination=PaginationInfo.from_dict(payload.get("pagination")),
    )

