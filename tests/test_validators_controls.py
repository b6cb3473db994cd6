"""Tests for field validators, controls and control sets."""
from decimal import Decimal

from app.bizadmin.crud import validators as v
from app.bizadmin.crud.controls import Control, ControlSet
from app.bizadmin.crud.descriptors import FieldDescriptor, FieldKind


def test_required_treats_blank_and_empty_collections_as_missing():
    assert v.required(None).kind == v.REQUIRED
    assert v.required("   ").kind == v.REQUIRED
    assert v.required([]).kind == v.REQUIRED
    assert v.required(False) is None
    assert v.required(0) is None
    assert v.required("x") is None


def test_optional_validators_skip_empty_values():
    for validate in (v.email, v.pattern(r"\d+"), v.min_length(3), v.max_length(1), v.min_value(5), v.max_value(1)):
        assert validate("") is None
        assert validate(None) is None


def test_length_and_range_failures_carry_params():
    short = v.min_length(3)("ab")
    assert short.kind == v.TOO_SHORT
    assert short.params["required_length"] == 3
    assert v.canonical_message(short) == "Minimum of 3 characters"

    high = v.max_value(10)("11")
    assert high.kind == v.ABOVE_MAX
    assert v.canonical_message(high) == "Maximum value is 10"

    assert v.canonical_message(v.min_value(1)("0")) == "Minimum value is 1"
    assert v.min_value(1)("abc").kind == v.FORMAT


def test_pattern_requires_full_match():
    cpf = v.pattern(r"\d{3}\.\d{3}\.\d{3}-\d{2}")
    assert cpf("123.456.789-09") is None
    assert cpf("123.456.789-09x").kind == v.FORMAT


def test_email_validator():
    assert v.email("ana@example.com") is None
    assert v.canonical_message(v.email("ana@")) == "Invalid email address"


def test_required_flag_adds_required_validator_once():
    d = FieldDescriptor("name", "Name", required=True, validators=(v.required, v.min_length(2)))
    assert d.all_validators().count(v.required) == 1
    assert FieldDescriptor("name", "Name", required=True).all_validators() == [v.required]


def test_control_errors_are_ordered_by_priority():
    d = FieldDescriptor("code", "Code", validators=(v.max_length(2), v.pattern(r"[a-z]+")))
    c = Control(d)
    c.set_value("ABC")
    assert [f.kind for f in c.errors] == [v.FORMAT, v.TOO_LONG]


def test_disabled_control_never_reports_errors():
    c = Control(FieldDescriptor("total", "Total", required=True, disabled=True))
    assert c.valid


def test_patch_is_not_a_user_edit_and_maps_none_to_empty():
    c = Control(FieldDescriptor("active", "Active", FieldKind.CHECKBOX, default_value=True))
    assert c.value is True
    c.patch(None)
    assert c.value is False
    assert not c.dirty
    c.set_value(True)
    assert c.dirty


def test_masks_applied_on_input():
    cpf = Control(FieldDescriptor("cpf", "CPF", FieldKind.CPF, apply_mask=True))
    cpf.set_value("12345678909")
    assert cpf.value == "123.456.789-09"

    price = Control(FieldDescriptor("price", "Price", FieldKind.CURRENCY, apply_mask=True))
    price.set_value("1.234,5")
    assert price.value == Decimal("1234.50")


def test_control_set_value_skips_disabled_and_applies_parsers():
    controls = ControlSet(
        [
            FieldDescriptor("name", "Name"),
            FieldDescriptor("qty", "Quantity", FieldKind.NUMBER, parser=int),
            FieldDescriptor("total", "Total", disabled=True),
        ]
    )
    controls.patch({"name": "Ana", "qty": "3", "total": 10, "unknown": "x"})
    assert controls.value == {"name": "Ana", "qty": 3}
    assert controls.raw_value == {"name": "Ana", "qty": "3", "total": 10}
    assert "unknown" not in controls


def test_custom_errors_replace_previous_round():
    controls = ControlSet([FieldDescriptor("a", "A"), FieldDescriptor("b", "B")])
    controls.apply_custom_errors({"a": "bad a"})
    assert not controls["a"].valid
    controls.apply_custom_errors({"b": "bad b", "ghost": "ignored"})
    assert controls["a"].valid
    assert controls["b"].errors[0].message == "bad b"
    controls.apply_custom_errors(None)
    assert controls.valid
