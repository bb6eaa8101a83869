"""
Demo inventory fixtures.

The item list is generated from a handful of templates so the demo service
has enough rows to page through.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import List

from rxstorage.models.common import Visibility
from rxstorage.models.entities import (
    Author,
    Category,
    Location,
    PositionSchema,
    StorageItem,
)

_EPOCH = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)

DEMO_CATEGORIES: List[Category] = [
    Category(id=1, name="Power Tools", description="Drills, saws and sanders"),
    Category(id=2, name="Electronics", description="Boards, sensors and cables"),
    Category(id=3, name="Lab Equipment", description="Glassware and instruments"),
    Category(id=4, name="Office Supplies"),
]

DEMO_LOCATIONS: List[Location] = [
    Location(id=1, title="Workshop Shelf A", latitude=37.7749, longitude=-122.4194),
    Location(id=2, title="Basement Storage", latitude=37.7750, longitude=-122.4189),
    Location(id=3, title="Lab Cabinet 2", latitude=37.7752, longitude=-122.4201),
]

DEMO_AUTHORS: List[Author] = [
    Author(id=1, name="Ada Park", bio="Hardware lab manager"),
    Author(id=2, name="Luis Romero", bio="Electronics hobbyist"),
    Author(id=3, name="Mina Okafor"),
]

DEMO_POSITION_SCHEMAS: List[PositionSchema] = [
    PositionSchema(
        id=1,
        name="Shelf Slot",
        schema={
            "type": "object",
            "properties": {"shelf": {"type": "string"}, "slot": {"type": "integer"}},
            "required": ["shelf", "slot"],
        },
    ),
    PositionSchema(
        id=2,
        name="Drawer",
        schema={"type": "object", "properties": {"drawer": {"type": "integer"}}},
    ),
]

_ITEM_TEMPLATES: List[StorageItem] = [
    StorageItem(
        id=0,
        title="Cordless Drill",
        description="18V drill with two batteries",
        category_id=1,
        location_id=1,
        author_id=1,
        price=129.0,
        currency="USD",
    ),
    StorageItem(
        id=0,
        title="Raspberry Pi 4",
        description="4GB board with case",
        category_id=2,
        location_id=3,
        author_id=2,
        price=55.0,
        currency="USD",
    ),
    StorageItem(
        id=0,
        title="Oscilloscope",
        description="Two channel, 100MHz",
        category_id=3,
        location_id=3,
        author_id=1,
        price=420.0,
        currency="USD",
        visibility=Visibility.PRIVATE,
    ),
    StorageItem(
        id=0,
        title="Label Printer",
        category_id=4,
        location_id=2,
        author_id=3,
        price=89.5,
        currency="EUR",
    ),
    StorageItem(
        id=0,
        title="Soldering Station",
        description="Temperature controlled iron",
        category_id=2,
        location_id=1,
        author_id=2,
        price=74.0,
        currency="USD",
    ),
]

DEMO_ITEM_COUNT = 45


def demo_items(count: int = DEMO_ITEM_COUNT) -> List[StorageItem]:
    """
    Generate ``count`` items by cycling through the templates.

    Ids start at 1; newer ids have later ``updated_at`` timestamps. Every
    sixth item is stored inside the item before it.
    """
    categories = {category.id: category for category in DEMO_CATEGORIES}
    locations = {location.id: location for location in DEMO_LOCATIONS}
    authors = {author.id: author for author in DEMO_AUTHORS}
    items = []
    for index in range(count):
        template = _ITEM_TEMPLATES[index % len(_ITEM_TEMPLATES)]
        item_id = index + 1
        timestamp = _EPOCH + timedelta(hours=item_id)
        items.append(
            replace(
                template,
                id=item_id,
                title=f"{template.title} #{item_id:03d}",
                parent_id=item_id - 1 if item_id % 6 == 0 else None,
                images=list(template.images),
                created_at=timestamp,
                updated_at=timestamp,
                category=categories.get(template.category_id),
                location=locations.get(template.location_id),
                author=authors.get(template.author_id),
            )
        )
    return items
