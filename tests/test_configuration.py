"""Tests for configuration validation."""
import pytest

from app.bizadmin.crud import (
    ColumnDescriptor,
    ConfigurationError,
    FieldDescriptor,
    FieldKind,
    FilterDescriptor,
    FormConfiguration,
    ListConfiguration,
    RelatedDataSpec,
)
from app.bizadmin.crud.sql_service import model_keys
from app.bizadmin.modules.customers.models import Customer


def _form(**kw):
    base = dict(entity_name="Customer", entity_name_plural="Customers", base_route="/customers")
    base.update(kw)
    return FormConfiguration(**base)


def test_duplicate_field_keys_rejected():
    with pytest.raises(ConfigurationError):
        _form(fields=(FieldDescriptor("name", "Name"), FieldDescriptor("name", "Again")))


def test_field_keys_checked_against_entity_keys():
    keys = model_keys(Customer)
    assert {"name", "cpf", "category", "category_id"} <= keys
    _form(fields=(FieldDescriptor("name", "Name"),), entity_keys=keys)
    with pytest.raises(ConfigurationError):
        _form(fields=(FieldDescriptor("nickname", "Nickname"),), entity_keys=keys)


def test_options_source_must_name_related_data():
    with pytest.raises(ConfigurationError):
        _form(fields=(FieldDescriptor("category", "Category", FieldKind.SELECT, options_source="categories"),))
    cfg = _form(
        fields=(FieldDescriptor("category", "Category", FieldKind.SELECT, options_source="categories"),),
        related_data=(RelatedDataSpec("categories", list),),
    )
    assert cfg.field_for("category").options_source == "categories"


def test_default_titles():
    cfg = _form(fields=(FieldDescriptor("name", "Name"),))
    assert cfg.title_for_create == "New Customer"
    assert cfg.title_for_edit == "Edit Customer"
    assert _form(fields=(FieldDescriptor("name", "Name"),), create_title="Add").title_for_create == "Add"


def test_list_column_paths_checked_on_first_segment():
    keys = model_keys(Customer)
    cfg = ListConfiguration(
        entity_name="Customer",
        entity_name_plural="Customers",
        base_route="/customers",
        columns=(ColumnDescriptor("category.name", "Category"),),
        filters=(FilterDescriptor("name", "Name"),),
        entity_keys=keys,
    )
    assert cfg.column_for("category.name") is not None
    with pytest.raises(ConfigurationError):
        ListConfiguration(
            entity_name="Customer",
            entity_name_plural="Customers",
            base_route="/customers",
            columns=(ColumnDescriptor("owner.name", "Owner"),),
            entity_keys=keys,
        )
