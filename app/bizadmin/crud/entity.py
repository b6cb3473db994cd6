"""
Entity contract.

An entity is any record (a mapping such as a JSON payload, or an object such
as a SQLAlchemy model) with an optional integer ``id``. The id is absent before
the first persistence and immutable afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Entity(Protocol):
    id: int | None


LABEL_ATTRIBUTES = ("nome", "title", "name")


def read_attr(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def entity_id(obj: Any) -> int | None:
    value = read_attr(obj, "id")
    if value is None or value == "":
        return None
    return int(value)


def resolve_value(item: Any, path: str) -> Any:
    """
    Resolve `path` on `item`. A dotted path traverses one related object
    (e.g. ``customer.name``); a missing hop resolves to None.
    """
    value = item
    for part in path.split("."):
        value = read_attr(value, part)
        if value is None:
            return None
    return value


def display_label(item: Any, entity_name: str) -> str:
    """Human-readable label used in delete confirmations and messages."""
    for attr in LABEL_ATTRIBUTES:
        value = read_attr(item, attr)
        if value:
            return str(value)
    return f"{entity_name} #{entity_id(item)}"
