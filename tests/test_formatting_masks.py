"""Tests for input masks and table cell rendering."""
from datetime import date
from decimal import Decimal

from app.bizadmin.crud.descriptors import BadgeMapping, ColumnDescriptor, RenderKind
from app.bizadmin.crud.formatting import CellFormat, format_currency, format_date, render_cell
from app.bizadmin.crud.masks import digits_only, format_cpf, format_phone, parse_currency


def test_cpf_and_phone_masks():
    assert format_cpf("123.456.789-09") == "123.456.789-09"
    assert format_cpf("12345678909999") == "123.456.789-09"
    assert format_cpf("1234") == "1234"
    assert format_phone("1133334444") == "(11) 3333-4444"
    assert format_phone("11999998888") == "(11) 99999-8888"
    assert digits_only(None) == ""


def test_parse_currency_accepts_brazilian_and_plain_notation():
    assert parse_currency("R$ 1.234,56") == Decimal("1234.56")
    assert parse_currency("1234.5") == Decimal("1234.50")
    assert parse_currency(10) == Decimal("10.00")
    assert parse_currency("") is None
    assert parse_currency("abc") is None


def test_parse_currency_reads_dot_groups_as_thousands():
    assert parse_currency("1.234") == Decimal("1234.00")
    assert parse_currency("R$ 1.234.567") == Decimal("1234567.00")
    assert parse_currency("-2.500") == Decimal("-2500.00")
    assert parse_currency("12.34") == Decimal("12.34")
    assert parse_currency("1234.567") == Decimal("1234.57")


def test_format_currency():
    assert format_currency(Decimal("1234.56")) == "R$ 1.234,56"
    assert format_currency(None) == "R$ 0,00"
    assert format_currency(-5, "US$") == "-US$ 5,00"


def test_format_date():
    assert format_date(date(2024, 3, 9)) == "09/03/2024"
    assert format_date("2024-03-09", "%Y/%m/%d") == "2024/03/09"
    assert format_date(None) == "-"


def test_render_cell_kinds():
    item = {"id": 1, "active": False, "price": Decimal("10"), "category": {"id": 2, "name": "Premium"}, "notes": ""}
    assert render_cell(item, ColumnDescriptor("category.name", "Category")) == "Premium"
    assert render_cell(item, ColumnDescriptor("notes", "Notes")) == "-"
    assert render_cell(item, ColumnDescriptor("missing.name", "X")) == "-"
    assert render_cell(item, ColumnDescriptor("active", "Status", RenderKind.BADGE, badge=BadgeMapping())) == "Inactive"
    assert render_cell(item, ColumnDescriptor("price", "Price", RenderKind.CURRENCY), CellFormat("US$")) == "US$ 10,00"
    shout = ColumnDescriptor("category.name", "C", RenderKind.CUSTOM, formatter=lambda value, row: value.upper())
    assert render_cell(item, shout) == "PREMIUM"
