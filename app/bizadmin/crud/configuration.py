"""
Per-entity metadata bundles consumed by the generic engines.

Configurations are frozen and may be shared by any number of engine
instances; engines only hold references to them.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from app.bizadmin.crud.descriptors import ColumnDescriptor, FieldDescriptor, FilterDescriptor
from app.bizadmin.crud.entity import entity_id
from app.bizadmin.crud.errors import ConfigurationError

T = TypeVar("T")


def _default_identity(item: Any) -> Any:
    return entity_id(item)


@dataclass(frozen=True)
class RelatedDataSpec:
    """Secondary reference collection loaded for a form (e.g. active categories)."""

    property_name: str
    load_function: Callable[[], Sequence[Any] | Awaitable[Sequence[Any]]]
    load_on_init: bool = True


@dataclass(frozen=True)
class FormEvents:
    before_submit: Callable[[], bool] | None = None
    after_success: Callable[[Any, bool], None] | None = None
    after_error: Callable[[BaseException], None] | None = None
    on_cancel: Callable[[], None] | None = None


@dataclass(frozen=True)
class EmptyState:
    title: str = "No items found"
    subtitle: str = "Start by adding a new item"
    icon: str = "inbox"


def _check_keys(kind: str, entity_name: str, keys: Sequence[str], valid: frozenset[str] | None) -> None:
    seen: set[str] = set()
    for key in keys:
        if key in seen:
            raise ConfigurationError(f"{entity_name}: duplicate {kind} key '{key}'")
        seen.add(key)
        if valid is not None and key.split(".")[0] not in valid:
            raise ConfigurationError(f"{entity_name}: {kind} key '{key}' is not a property of the entity")


@dataclass(frozen=True)
class FormConfiguration(Generic[T]):
    entity_name: str
    entity_name_plural: str
    base_route: str
    fields: Sequence[FieldDescriptor]
    related_data: Sequence[RelatedDataSpec] = ()
    create_title: str | None = None
    edit_title: str | None = None
    before_save: Callable[[dict[str, Any], bool], Mapping[str, Any]] | None = None
    after_load: Callable[[T], Mapping[str, Any]] | None = None
    custom_error_messages: Mapping[str, str] = field(default_factory=dict)
    # Cross-field validation: returns {key: message} or None.
    form_validator: Callable[[dict[str, Any]], Mapping[str, str] | None] | None = None
    # Valid property names of the entity's editable shape. When given, field
    # keys outside this set are rejected here instead of producing orphan controls.
    entity_keys: frozenset[str] | None = None

    def __post_init__(self) -> None:
        _check_keys("field", self.entity_name, [f.key for f in self.fields], self.entity_keys)
        names = [r.property_name for r in self.related_data]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"{self.entity_name}: duplicate related data property name")
        for f in self.fields:
            if f.options_source and f.options_source not in names:
                raise ConfigurationError(
                    f"{self.entity_name}: field '{f.key}' reads options from unknown related data '{f.options_source}'"
                )

    @property
    def title_for_create(self) -> str:
        return self.create_title or f"New {self.entity_name}"

    @property
    def title_for_edit(self) -> str:
        return self.edit_title or f"Edit {self.entity_name}"

    def field_for(self, key: str) -> FieldDescriptor | None:
        for f in self.fields:
            if f.key == key:
                return f
        return None


@dataclass(frozen=True)
class ListConfiguration(Generic[T]):
    entity_name: str
    entity_name_plural: str
    base_route: str
    columns: Sequence[ColumnDescriptor]
    filters: Sequence[FilterDescriptor] = ()
    empty_state: EmptyState = field(default_factory=EmptyState)
    identity_fn: Callable[[T], Any] = _default_identity
    show_count: bool = False
    entity_keys: frozenset[str] | None = None

    def __post_init__(self) -> None:
        _check_keys("column", self.entity_name, [c.key for c in self.columns], self.entity_keys)
        _check_keys("filter", self.entity_name, [f.key for f in self.filters], self.entity_keys)

    def column_for(self, key: str) -> ColumnDescriptor | None:
        for c in self.columns:
            if c.key == key:
                return c
        return None
