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
from app.bizadmin.crud.masks import parse_currency
from app.bizadmin.crud.sql_service import flatten_references, model_keys
from app.bizadmin.crud.web import register_crud_screens
from app.bizadmin.db import db_session
from app.bizadmin.modules.categories.service import CategoryService
from app.bizadmin.modules.offerings.models import Offering
from app.bizadmin.modules.offerings.service import OfferingService

bp = Blueprint("offerings", __name__)

KEYS = model_keys(Offering)


def _categories() -> list[dict[str, Any]]:
    return CategoryService(db_session()).active_only(True)


OFFERING_FORM = FormConfiguration(
    entity_name="Service",
    entity_name_plural="Services",
    base_route="/services",
    fields=(
        FieldDescriptor("name", "Name", required=True, validators=(v.min_length(2), v.max_length(120))),
        FieldDescriptor("description", "Description", FieldKind.TEXTAREA, rows=3, validators=(v.max_length(1000),)),
        FieldDescriptor(
            "price",
            "Price",
            FieldKind.CURRENCY,
            required=True,
            placeholder="0,00",
            apply_mask=True,
            parser=parse_currency,
            min=0,
            step=0.01,
            validators=(v.min_value(0),),
        ),
        FieldDescriptor("category", "Category", FieldKind.SELECT, options_source="categories"),
        FieldDescriptor("active", "Active", FieldKind.CHECKBOX, default_value=True),
    ),
    related_data=(RelatedDataSpec("categories", _categories),),
    after_load=flatten_references("category"),
    entity_keys=KEYS,
)

OFFERING_LIST = ListConfiguration(
    entity_name="Service",
    entity_name_plural="Services",
    base_route="/services",
    columns=(
        ColumnDescriptor("id", "ID", width="80px", sortable=True),
        ColumnDescriptor("name", "Name", sortable=True),
        ColumnDescriptor("category.name", "Category", sortable=True),
        ColumnDescriptor("price", "Price", RenderKind.CURRENCY, sortable=True),
        ColumnDescriptor("active", "Status", RenderKind.BADGE, badge=BadgeMapping()),
    ),
    filters=(
        FilterDescriptor("name", "Search by name", placeholder="Service name", search_on_enter=True, dispatch_method="search_by_name"),
        FilterDescriptor("category", "Category", FilterInputKind.SELECT, dispatch_method="search_by_category"),
        FilterDescriptor("active", "Active only", FilterInputKind.CHECKBOX, dispatch_method="active_only"),
    ),
    empty_state=EmptyState(title="No services found", subtitle="Start by adding a new service", icon="briefcase"),
    show_count=True,
    entity_keys=KEYS,
)


register_crud_screens(
    bp,
    list_config=OFFERING_LIST,
    form_config=OFFERING_FORM,
    service_factory=lambda: OfferingService(db_session()),
    filter_choices=lambda: {"category": CategoryService(db_session()).choices()},
)
