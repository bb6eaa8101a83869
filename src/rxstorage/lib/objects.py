"""
JSON serialization helpers for dataclass models.
"""

import enum
import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any


def to_dict(obj: Any) -> Any:
    """Convert a dataclass (recursively) into JSON-compatible values."""
    return json.loads(to_json(obj))


def to_json(obj: Any, indent: int | None = None) -> str:
    """
    Serialize an object to a JSON string.

    Dataclasses are converted to dictionaries, datetimes to ISO strings and
    enums to their values. Anything else falls back to str().

    Args:
        obj: Object to serialize.
        indent: Optional indentation for pretty printing.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        obj = asdict(obj)
    return json.dumps(obj, default=_default_serializer, indent=indent)


def _default_serializer(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, enum.Enum):
        return obj.value
    return str(obj)
