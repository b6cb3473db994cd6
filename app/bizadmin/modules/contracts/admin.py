from __future__ import annotations

from datetime import date
from typing import Any

from flask import Blueprint

from app.bizadmin.crud import (
    ColumnDescriptor,
    EmptyState,
    FieldDescriptor,
    FieldKind,
    FieldOption,
    FilterDescriptor,
    FilterInputKind,
    FormConfiguration,
    ListConfiguration,
    RelatedDataSpec,
    RenderKind,
)
from app.bizadmin.crud import validators as v
from app.bizadmin.crud.sql_service import flatten_references, model_keys
from app.bizadmin.crud.web import register_crud_screens
from app.bizadmin.db import db_session
from app.bizadmin.modules.contracts.models import CONTRACT_STATUSES, Contract
from app.bizadmin.modules.contracts.service import ContractService
from app.bizadmin.modules.customers.service import CustomerService

bp = Blueprint("contracts", __name__)

KEYS = model_keys(Contract)
STATUS_OPTIONS = tuple(FieldOption(s, s.title()) for s in CONTRACT_STATUSES)


def _customers() -> list[dict[str, Any]]:
    return CustomerService(db_session()).active_only(True)


def _as_date(raw: Any) -> date | None:
    if not raw:
        return None
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw))
    except ValueError:
        return None


def _end_after_start(value: dict[str, Any]) -> dict[str, str] | None:
    start, end = _as_date(value.get("start_date")), _as_date(value.get("end_date"))
    if start and end and end < start:
        return {"end_date": "End date must be on or after the start date"}
    return None


def _status_label(value: Any, item: Any) -> str:
    return str(value or "").title() or "-"


CONTRACT_FORM = FormConfiguration(
    entity_name="Contract",
    entity_name_plural="Contracts",
    base_route="/contracts",
    fields=(
        FieldDescriptor("customer", "Customer", FieldKind.SELECT, required=True, options_source="customers"),
        FieldDescriptor("start_date", "Start date", FieldKind.DATE, required=True),
        FieldDescriptor("end_date", "End date", FieldKind.DATE),
        FieldDescriptor("status", "Status", FieldKind.SELECT, required=True, default_value="PENDING", options=STATUS_OPTIONS),
        FieldDescriptor("total_value", "Total value", FieldKind.CURRENCY, disabled=True),
        FieldDescriptor("notes", "Notes", FieldKind.TEXTAREA, rows=4, validators=(v.max_length(2000),)),
    ),
    related_data=(RelatedDataSpec("customers", _customers),),
    after_load=flatten_references("customer"),
    form_validator=_end_after_start,
    entity_keys=KEYS,
)

CONTRACT_LIST = ListConfiguration(
    entity_name="Contract",
    entity_name_plural="Contracts",
    base_route="/contracts",
    columns=(
        ColumnDescriptor("id", "ID", width="80px", sortable=True),
        ColumnDescriptor("customer.name", "Customer", sortable=True),
        ColumnDescriptor("start_date", "Start", RenderKind.DATE, sortable=True),
        ColumnDescriptor("end_date", "End", RenderKind.DATE, sortable=True),
        ColumnDescriptor("status", "Status", RenderKind.CUSTOM, sortable=True, formatter=_status_label),
        ColumnDescriptor("total_value", "Total", RenderKind.CURRENCY, sortable=True),
    ),
    filters=(
        FilterDescriptor("status", "Status", FilterInputKind.SELECT, options=STATUS_OPTIONS, dispatch_method="search_by_status"),
        FilterDescriptor("customer", "Customer", FilterInputKind.SELECT, dispatch_method="search_by_customer"),
    ),
    empty_state=EmptyState(title="No contracts found", subtitle="Start by adding a new contract", icon="file-text"),
    show_count=True,
    entity_keys=KEYS,
)


register_crud_screens(
    bp,
    list_config=CONTRACT_LIST,
    form_config=CONTRACT_FORM,
    service_factory=lambda: ContractService(db_session()),
    filter_choices=lambda: {"customer": CustomerService(db_session()).choices()},
)
