"""
Configuration-driven CRUD engine.

A screen supplies a FormConfiguration or ListConfiguration plus a service; the
generic FormEngine / ListEngine do the rest. Nothing in this package knows
about a specific entity type, Flask or SQLAlchemy except the adapters in
``web.py`` and ``sql_service.py``.
"""

from app.bizadmin.crud.configuration import (
    EmptyState,
    FormConfiguration,
    FormEvents,
    ListConfiguration,
    RelatedDataSpec,
)
from app.bizadmin.crud.descriptors import (
    BadgeMapping,
    ColumnDescriptor,
    FieldDescriptor,
    FieldKind,
    FieldOption,
    FilterDescriptor,
    FilterInputKind,
    RenderKind,
)
from app.bizadmin.crud.errors import ConfigurationError, NotFoundError, ServiceError
from app.bizadmin.crud.form_engine import FormEngine, FormMode
from app.bizadmin.crud.list_engine import ListEngine, ListPhase

__all__ = [
    "BadgeMapping",
    "ColumnDescriptor",
    "ConfigurationError",
    "EmptyState",
    "FieldDescriptor",
    "FieldKind",
    "FieldOption",
    "FilterDescriptor",
    "FilterInputKind",
    "FormConfiguration",
    "FormEngine",
    "FormEvents",
    "FormMode",
    "ListConfiguration",
    "ListEngine",
    "ListPhase",
    "NotFoundError",
    "RelatedDataSpec",
    "RenderKind",
    "ServiceError",
]
