from __future__ import annotations

from datetime import date
from typing import Any

from flask import Blueprint

from app.bizadmin.crud import (
    BadgeMapping,
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
from app.bizadmin.crud.sql_service import flatten_references, model_keys
from app.bizadmin.crud.web import register_crud_screens
from app.bizadmin.db import db_session
from app.bizadmin.modules.categories.service import CategoryService
from app.bizadmin.modules.customers.models import Customer
from app.bizadmin.modules.customers.service import CustomerService

bp = Blueprint("customers", __name__)

KEYS = model_keys(Customer)
CPF_PATTERN = r"\d{3}\.\d{3}\.\d{3}-\d{2}"
PHONE_PATTERN = r"\(\d{2}\) \d{4,5}-\d{4}"


def _active_categories() -> list[dict[str, Any]]:
    return CategoryService(db_session()).active_only(True)


def _birth_date_not_in_future(value: dict[str, Any]) -> dict[str, str] | None:
    raw = value.get("birth_date")
    if not raw:
        return None
    try:
        born = raw if isinstance(raw, date) else date.fromisoformat(str(raw))
    except ValueError:
        return {"birth_date": "Invalid date"}
    if born > date.today():
        return {"birth_date": "Birth date cannot be in the future"}
    return None


CUSTOMER_FORM = FormConfiguration(
    entity_name="Customer",
    entity_name_plural="Customers",
    base_route="/customers",
    fields=(
        FieldDescriptor("name", "Full name", required=True, validators=(v.min_length(3), v.max_length(120))),
        FieldDescriptor(
            "cpf",
            "CPF",
            FieldKind.CPF,
            required=True,
            placeholder="000.000.000-00",
            apply_mask=True,
            validators=(v.pattern(CPF_PATTERN),),
        ),
        FieldDescriptor("email", "Email", FieldKind.EMAIL, placeholder="name@example.com", validators=(v.email,)),
        FieldDescriptor(
            "phone",
            "Phone",
            FieldKind.PHONE,
            placeholder="(00) 00000-0000",
            apply_mask=True,
            validators=(v.pattern(PHONE_PATTERN),),
        ),
        FieldDescriptor("birth_date", "Birth date", FieldKind.DATE),
        FieldDescriptor("category", "Category", FieldKind.SELECT, options_source="categories"),
        FieldDescriptor("active", "Active", FieldKind.CHECKBOX, default_value=True),
    ),
    related_data=(RelatedDataSpec("categories", _active_categories),),
    after_load=flatten_references("category"),
    custom_error_messages={"cpf": "Enter a valid CPF (000.000.000-00)"},
    form_validator=_birth_date_not_in_future,
    entity_keys=KEYS,
)

CUSTOMER_LIST = ListConfiguration(
    entity_name="Customer",
    entity_name_plural="Customers",
    base_route="/customers",
    columns=(
        ColumnDescriptor("id", "ID", width="80px", sortable=True),
        ColumnDescriptor("name", "Name", sortable=True),
        ColumnDescriptor("cpf", "CPF", sortable=True),
        ColumnDescriptor("email", "Email"),
        ColumnDescriptor("phone", "Phone"),
        ColumnDescriptor("birth_date", "Birth date", RenderKind.DATE, sortable=True),
        ColumnDescriptor("category.name", "Category", sortable=True),
        ColumnDescriptor("active", "Status", RenderKind.BADGE, badge=BadgeMapping()),
    ),
    filters=(
        FilterDescriptor("name", "Search by name", placeholder="Customer name", search_on_enter=True, dispatch_method="search_by_name"),
        FilterDescriptor("cpf", "Search by CPF", placeholder="000.000.000-00", search_on_enter=True, dispatch_method="search_by_cpf"),
        FilterDescriptor("category", "Category", FilterInputKind.SELECT, dispatch_method="search_by_category"),
        FilterDescriptor("active", "Active only", FilterInputKind.CHECKBOX, dispatch_method="active_only"),
    ),
    empty_state=EmptyState(title="No customers found", subtitle="Start by adding a new customer", icon="users"),
    show_count=True,
    entity_keys=KEYS,
)


register_crud_screens(
    bp,
    list_config=CUSTOMER_LIST,
    form_config=CUSTOMER_FORM,
    service_factory=lambda: CustomerService(db_session()),
    filter_choices=lambda: {"category": CategoryService(db_session()).choices()},
)
