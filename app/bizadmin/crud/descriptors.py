"""
Declarative metadata describing one form field, one table column or one
filter control. Screens build these once; engines only read them.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.bizadmin.crud import validators as v


class FieldKind(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    PASSWORD = "password"
    NUMBER = "number"
    DATE = "date"
    DATETIME = "datetime-local"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    CURRENCY = "currency"
    CPF = "cpf"
    PHONE = "phone"


class RenderKind(str, Enum):
    PLAIN = "plain"
    BADGE = "badge"
    CURRENCY = "currency"
    DATE = "date"
    CUSTOM = "custom"


class FilterInputKind(str, Enum):
    TEXT = "text"
    SELECT = "select"
    CHECKBOX = "checkbox"
    DATE = "date"


@dataclass(frozen=True)
class FieldOption:
    value: Any
    label: str
    disabled: bool = False


@dataclass(frozen=True)
class FieldDescriptor:
    key: str
    label: str
    kind: FieldKind = FieldKind.TEXT
    required: bool = False
    default_value: Any = None
    placeholder: str | None = None
    validators: Sequence[v.Validator] = ()
    options: Sequence[FieldOption] = ()
    # Name of a RelatedDataSpec.property_name feeding this field's options.
    options_source: str | None = None
    disabled: bool = False
    parser: Callable[[Any], Any] | None = None
    apply_mask: bool = False
    # kind-specific config
    min: float | None = None
    max: float | None = None
    step: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    rows: int | None = None

    def empty_value(self) -> Any:
        return False if self.kind == FieldKind.CHECKBOX else ""

    def initial_value(self) -> Any:
        return self.empty_value() if self.default_value is None else self.default_value

    def all_validators(self) -> list[v.Validator]:
        out = list(self.validators)
        if self.required and v.required not in out:
            out.insert(0, v.required)
        return out


@dataclass(frozen=True)
class BadgeMapping:
    true_text: str = "Active"
    false_text: str = "Inactive"
    true_class: str = "badge-success"
    false_class: str = "badge-danger"


@dataclass(frozen=True)
class ColumnDescriptor:
    key: str
    label: str
    render_kind: RenderKind = RenderKind.PLAIN
    width: str | None = None
    sortable: bool = False
    badge: BadgeMapping | None = None
    # (value, item) -> str, used by RenderKind.CUSTOM
    formatter: Callable[[Any, Any], str] | None = None


@dataclass(frozen=True)
class FilterDescriptor:
    key: str
    label: str
    input_kind: FilterInputKind = FilterInputKind.TEXT
    placeholder: str | None = None
    options: Sequence[FieldOption] = ()
    search_on_enter: bool = False
    # Capability name looked up on the bound list service (see dispatch.py).
    dispatch_method: str | None = None

    def empty_value(self) -> Any:
        return False if self.input_kind == FilterInputKind.CHECKBOX else ""
