from __future__ import annotations

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
from app.bizadmin.modules.addresses.models import Address
from app.bizadmin.modules.addresses.service import AddressService
from app.bizadmin.modules.customers.service import CustomerService

bp = Blueprint("addresses", __name__)

KEYS = model_keys(Address)


def _customers() -> list[dict[str, Any]]:
    return CustomerService(db_session()).list_all()


ADDRESS_FORM = FormConfiguration(
    entity_name="Address",
    entity_name_plural="Addresses",
    base_route="/addresses",
    fields=(
        FieldDescriptor("customer", "Customer", FieldKind.SELECT, required=True, options_source="customers"),
        FieldDescriptor("street", "Street", required=True, validators=(v.max_length(200),)),
        FieldDescriptor("number", "Number", validators=(v.max_length(20),)),
        FieldDescriptor("district", "District", validators=(v.max_length(100),)),
        FieldDescriptor("city", "City", required=True, validators=(v.max_length(100),)),
        FieldDescriptor(
            "state", "State", required=True, placeholder="SP", validators=(v.pattern(r"[A-Za-z]{2}"),), max_length=2
        ),
        FieldDescriptor("zip_code", "ZIP code", placeholder="00000-000", validators=(v.pattern(r"\d{5}-?\d{3}"),)),
        FieldDescriptor("primary", "Primary address", FieldKind.CHECKBOX),
    ),
    related_data=(RelatedDataSpec("customers", _customers),),
    after_load=flatten_references("customer"),
    custom_error_messages={"state": "Use the two-letter state code"},
    entity_keys=KEYS,
)

ADDRESS_LIST = ListConfiguration(
    entity_name="Address",
    entity_name_plural="Addresses",
    base_route="/addresses",
    columns=(
        ColumnDescriptor("customer.name", "Customer", sortable=True),
        ColumnDescriptor("street", "Street"),
        ColumnDescriptor("number", "Number"),
        ColumnDescriptor("district", "District"),
        ColumnDescriptor("city", "City", sortable=True),
        ColumnDescriptor("state", "State", sortable=True),
        ColumnDescriptor("zip_code", "ZIP"),
        ColumnDescriptor("primary", "Primary", RenderKind.BADGE, badge=BadgeMapping("Primary", "-", "badge-info", "badge-light")),
    ),
    filters=(
        FilterDescriptor("customer", "Customer", FilterInputKind.SELECT, dispatch_method="search_by_customer"),
        FilterDescriptor("city", "City", placeholder="City", search_on_enter=True, dispatch_method="search_by_city"),
        FilterDescriptor("state", "State", placeholder="UF"),
    ),
    empty_state=EmptyState(title="No addresses found", subtitle="Start by adding a new address", icon="map-pin"),
    entity_keys=KEYS,
)


register_crud_screens(
    bp,
    list_config=ADDRESS_LIST,
    form_config=ADDRESS_FORM,
    service_factory=lambda: AddressService(db_session()),
    filter_choices=lambda: {"customer": CustomerService(db_session()).choices()},
)
