from __future__ import annotations

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
    RenderKind,
)
from app.bizadmin.crud import validators as v
from app.bizadmin.crud.sql_service import model_keys
from app.bizadmin.crud.web import register_crud_screens
from app.bizadmin.db import db_session
from app.bizadmin.modules.categories.models import Category
from app.bizadmin.modules.categories.service import CategoryService

bp = Blueprint("categories", __name__)

KEYS = model_keys(Category)


CATEGORY_FORM = FormConfiguration(
    entity_name="Category",
    entity_name_plural="Categories",
    base_route="/categories",
    fields=(
        FieldDescriptor("name", "Name", required=True, placeholder="e.g. Premium", validators=(v.min_length(2), v.max_length(100))),
        FieldDescriptor("description", "Description", FieldKind.TEXTAREA, rows=3, validators=(v.max_length(500),)),
        FieldDescriptor(
            "benefits",
            "Benefits",
            FieldKind.TEXTAREA,
            rows=4,
            placeholder="One benefit per line",
            validators=(v.max_length(1000),),
        ),
        FieldDescriptor("active", "Active", FieldKind.CHECKBOX, default_value=True),
    ),
    entity_keys=KEYS,
)

CATEGORY_LIST = ListConfiguration(
    entity_name="Category",
    entity_name_plural="Categories",
    base_route="/categories",
    columns=(
        ColumnDescriptor("id", "ID", width="80px", sortable=True),
        ColumnDescriptor("name", "Name", sortable=True),
        ColumnDescriptor("description", "Description"),
        ColumnDescriptor("active", "Status", RenderKind.BADGE, badge=BadgeMapping()),
    ),
    filters=(
        FilterDescriptor("name", "Search by name", placeholder="Category name", search_on_enter=True, dispatch_method="search_by_name"),
        FilterDescriptor("active", "Active only", FilterInputKind.CHECKBOX, dispatch_method="active_only"),
    ),
    empty_state=EmptyState(title="No categories found", subtitle="Start by adding a new category", icon="tags"),
    show_count=True,
    entity_keys=KEYS,
)


register_crud_screens(
    bp,
    list_config=CATEGORY_LIST,
    form_config=CATEGORY_FORM,
    service_factory=lambda: CategoryService(db_session()),
)
