from __future__ import annotations

from decimal import Decimal
from typing import Any

from flask import Blueprint

from app.bizadmin.crud import (
    ColumnDescriptor,
    EmptyState,
    FieldDescriptor,
    FieldKind,
    FilterDescriptor,
    FilterInputKind,
    FormConfiguration,
    ListConfiguration,
    RelatedDataSpec,
    RenderKind,
)
from app.bizadmin.crud import validators as v
from app.bizadmin.crud.masks import parse_currency
from app.bizadmin.crud.sql_service import flatten_references, model_keys
from app.bizadmin.crud.web import register_crud_screens
from app.bizadmin.db import db_session
from app.bizadmin.modules.contracts.service import ContractService
from app.bizadmin.modules.line_items.models import LineItem
from app.bizadmin.modules.line_items.service import LineItemService, compute_final_value
from app.bizadmin.modules.offerings.service import OfferingService

bp = Blueprint("line_items", __name__)

KEYS = model_keys(LineItem)


def _contracts() -> list[dict[str, Any]]:
    return ContractService(db_session()).choices()


def _offerings() -> list[dict[str, Any]]:
    return OfferingService(db_session()).active_only(True)


def _discount_within_total(value: dict[str, Any]) -> dict[str, str] | None:
    try:
        quantity = int(value.get("quantity") or 0)
    except (TypeError, ValueError):
        return None
    unit = parse_currency(value.get("unit_value"))
    discount = parse_currency(value.get("discount")) or Decimal("0")
    if unit is None or quantity < 1:
        return None
    if compute_final_value(quantity, unit, discount) < 0:
        return {"discount": "Discount cannot exceed quantity x unit value"}
    return None


LINE_ITEM_FORM = FormConfiguration(
    entity_name="Item",
    entity_name_plural="Items",
    base_route="/items",
    fields=(
        FieldDescriptor("contract", "Contract", FieldKind.SELECT, required=True, options_source="contracts"),
        FieldDescriptor("offering", "Service", FieldKind.SELECT, required=True, options_source="offerings"),
        FieldDescriptor("description", "Description", validators=(v.max_length(300),)),
        FieldDescriptor("quantity", "Quantity", FieldKind.NUMBER, required=True, default_value=1, min=1, step=1, validators=(v.min_value(1),)),
        FieldDescriptor(
            "unit_value", "Unit value", FieldKind.CURRENCY, required=True, apply_mask=True, parser=parse_currency,
            validators=(v.min_value(0),),
        ),
        FieldDescriptor(
            "discount", "Discount", FieldKind.CURRENCY, default_value="0,00", apply_mask=True, parser=parse_currency,
            validators=(v.min_value(0),),
        ),
        FieldDescriptor("final_value", "Final value", FieldKind.CURRENCY, disabled=True),
    ),
    related_data=(
        RelatedDataSpec("contracts", _contracts),
        RelatedDataSpec("offerings", _offerings),
    ),
    after_load=flatten_references("contract", "offering"),
    form_validator=_discount_within_total,
    entity_keys=KEYS,
)

LINE_ITEM_LIST = ListConfiguration(
    entity_name="Item",
    entity_name_plural="Items",
    base_route="/items",
    columns=(
        ColumnDescriptor("id", "ID", width="80px", sortable=True),
        ColumnDescriptor("contract.name", "Contract", sortable=True),
        ColumnDescriptor("offering.name", "Service", sortable=True),
        ColumnDescriptor("description", "Description"),
        ColumnDescriptor("quantity", "Qty", sortable=True),
        ColumnDescriptor("unit_value", "Unit value", RenderKind.CURRENCY),
        ColumnDescriptor("discount", "Discount", RenderKind.CURRENCY),
        ColumnDescriptor("final_value", "Final value", RenderKind.CURRENCY, sortable=True),
    ),
    filters=(
        FilterDescriptor("description", "Description", placeholder="Search description", search_on_enter=True, dispatch_method="search_by_description"),
        FilterDescriptor("contract", "Contract", FilterInputKind.SELECT, dispatch_method="search_by_contract"),
    ),
    empty_state=EmptyState(title="No items found", subtitle="Start by adding a new item", icon="list"),
    show_count=True,
    entity_keys=KEYS,
)


register_crud_screens(
    bp,
    list_config=LINE_ITEM_LIST,
    form_config=LINE_ITEM_FORM,
    service_factory=lambda: LineItemService(db_session()),
    filter_choices=lambda: {"contract": ContractService(db_session()).choices()},
)
