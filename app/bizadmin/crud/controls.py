from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from app.bizadmin.crud import masks
from app.bizadmin.crud import validators as v
from app.bizadmin.crud.descriptors import FieldDescriptor, FieldKind


class Control:
    """Editable state of one form field."""

    def __init__(self, descriptor: FieldDescriptor) -> None:
        self.descriptor = descriptor
        self.key = descriptor.key
        self.value: Any = descriptor.initial_value()
        self.disabled = descriptor.disabled
        self.touched = False
        self.dirty = False
        self._validators = descriptor.all_validators()
        self._custom: list[v.ValidationFailure] = []

    def _masked(self, value: Any) -> Any:
        if not self.descriptor.apply_mask:
            return value
        kind = self.descriptor.kind
        if kind == FieldKind.CPF:
            return masks.format_cpf(value)
        if kind == FieldKind.PHONE:
            return masks.format_phone(value)
        if kind == FieldKind.CURRENCY:
            parsed = masks.parse_currency(value)
            return "" if parsed is None else parsed
        return value

    def set_value(self, value: Any) -> None:
        """User edit: marks the control dirty."""
        self.value = self._masked(value)
        self.dirty = True
        self._custom = []

    def patch(self, value: Any) -> None:
        """Programmatic fill (e.g. after loading an entity): not a user edit."""
        self.value = self.descriptor.empty_value() if value is None else self._masked(value)
        self._custom = []

    def mark_touched(self) -> None:
        self.touched = True

    def add_failure(self, failure: v.ValidationFailure) -> None:
        self._custom.append(failure)

    def clear_failures(self) -> None:
        self._custom = []

    @property
    def errors(self) -> list[v.ValidationFailure]:
        if self.disabled:
            return []
        found = [f for f in (validate(self.value) for validate in self._validators) if f is not None]
        found.extend(self._custom)
        return sorted(found, key=lambda f: v.FAILURE_PRIORITY.index(f.kind) if f.kind in v.FAILURE_PRIORITY else len(v.FAILURE_PRIORITY))

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def invalid(self) -> bool:
        return not self.valid

    def output_value(self) -> Any:
        parser = self.descriptor.parser
        return parser(self.value) if parser else self.value


class ControlSet(Mapping[str, Control]):
    """The exact set of bindable controls for a form: one per declared field."""

    def __init__(self, fields: Sequence[FieldDescriptor]) -> None:
        self._controls: dict[str, Control] = {f.key: Control(f) for f in fields}

    def __getitem__(self, key: str) -> Control:
        return self._controls[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._controls)

    def __len__(self) -> int:
        return len(self._controls)

    @property
    def valid(self) -> bool:
        return all(c.valid for c in self._controls.values())

    @property
    def dirty(self) -> bool:
        return any(c.dirty for c in self._controls.values())

    @property
    def value(self) -> dict[str, Any]:
        """Submission value: enabled controls only, field parsers applied."""
        return {k: c.output_value() for k, c in self._controls.items() if not c.disabled}

    @property
    def raw_value(self) -> dict[str, Any]:
        return {k: c.value for k, c in self._controls.items()}

    def touched(self) -> dict[str, bool]:
        return {k: c.touched for k, c in self._controls.items()}

    def patch(self, values: Mapping[str, Any]) -> None:
        """Copy values onto controls by key; keys without a control are ignored."""
        for key, value in values.items():
            control = self._controls.get(key)
            if control is not None:
                control.patch(value)

    def update(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            control = self._controls.get(key)
            if control is not None:
                control.set_value(value)

    def mark_all_touched(self) -> None:
        for c in self._controls.values():
            c.mark_touched()

    def apply_custom_errors(self, errors: Mapping[str, str] | None) -> None:
        for c in self._controls.values():
            c.clear_failures()
        for key, message in (errors or {}).items():
            control = self._controls.get(key)
            if control is not None:
                control.add_failure(v.ValidationFailure(v.CUSTOM, message=message))
