from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from app.bizadmin.crud.descriptors import BadgeMapping, ColumnDescriptor, RenderKind
from app.bizadmin.crud.entity import resolve_value

EMPTY_CELL = "-"


@dataclass(frozen=True)
class CellFormat:
    currency_symbol: str = "R$"
    date_format: str = "%d/%m/%Y"


def format_currency(value: Any, symbol: str = "R$") -> str:
    """Brazilian-style money: R$ 1.234,56. Empty/zero renders as R$ 0,00."""
    try:
        amount = Decimal(str(value)) if value not in (None, "") else Decimal("0")
    except InvalidOperation:
        return str(value)
    sign = "-" if amount < 0 else ""
    text = f"{abs(amount):,.2f}"  # 1,234.56
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}{symbol} {text}"


def format_date(value: Any, fmt: str = "%d/%m/%Y") -> str:
    if value in (None, ""):
        return EMPTY_CELL
    if isinstance(value, (date, datetime)):
        return value.strftime(fmt)
    try:
        return datetime.fromisoformat(str(value)).strftime(fmt)
    except ValueError:
        return str(value)


def badge_text(value: Any, badge: BadgeMapping | None) -> str:
    badge = badge or BadgeMapping()
    return badge.true_text if value else badge.false_text


def badge_class(value: Any, badge: BadgeMapping | None) -> str:
    badge = badge or BadgeMapping()
    return badge.true_class if value else badge.false_class


def render_cell(item: Any, column: ColumnDescriptor, fmt: CellFormat | None = None) -> str:
    fmt = fmt or CellFormat()
    value = resolve_value(item, column.key)
    kind = column.render_kind
    if kind == RenderKind.BADGE:
        return badge_text(value, column.badge)
    if kind == RenderKind.CURRENCY:
        if column.formatter:
            return column.formatter(value, item)
        return format_currency(value, fmt.currency_symbol)
    if kind == RenderKind.DATE:
        return format_date(value, fmt.date_format)
    if kind == RenderKind.CUSTOM:
        if column.formatter:
            return column.formatter(value, item)
        return EMPTY_CELL if value in (None, "") else str(value)
    if value is None or value == "":
        return EMPTY_CELL
    return str(value)
