"""
Generic form engine.

One instance manages a single entity's editable state for create or edit,
for one screen activation. Everything entity-specific comes from the
FormConfiguration; entity I/O goes through the injected service.

Mode is decided once, at construction, from the route identifier:

    CREATE -> READY_CREATE
    LOADING_FOR_EDIT -> READY_EDIT | LOAD_FAILED
    READY_* -> SUBMITTING -> READY_* (SUBMIT_ERROR in between on failure)

A change of route identifier during the activation is not re-evaluated.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from app.bizadmin.crud.collaborators import CrudFormService, Navigator, Notifier
from app.bizadmin.crud.configuration import FormConfiguration, FormEvents
from app.bizadmin.crud.controls import ControlSet
from app.bizadmin.crud.descriptors import FieldOption
from app.bizadmin.crud.dispatch import normalize_result
from app.bizadmin.crud.entity import entity_id, read_attr
from app.bizadmin.crud.errors import ConfigurationError, error_message
from app.bizadmin.crud.scope import TaskScope, call_service
from app.bizadmin.crud.validators import canonical_message

logger = logging.getLogger(__name__)

T = TypeVar("T")

INVALID_FORM_MESSAGE = "Please correct the errors in the form"
RELATED_DATA_ERROR = "Error loading related data"


class FormMode(str, Enum):
    CREATE = "create"
    LOADING_FOR_EDIT = "loading_for_edit"
    READY_CREATE = "ready_create"
    READY_EDIT = "ready_edit"
    SUBMITTING = "submitting"
    SUBMIT_ERROR = "submit_error"
    LOAD_FAILED = "load_failed"
    CLOSED = "closed"


@dataclass(frozen=True)
class FormEngineState:
    mode: FormMode
    loading: bool
    is_edit_mode: bool
    entity_id: int | None
    raw_value: dict[str, Any]
    touched: dict[str, bool]
    has_unsaved_changes: bool


def parse_route_id(raw: Any) -> int | None:
    """A positive integer identifier, or None (create mode)."""
    if raw is None:
        return None
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw if raw > 0 else None
    text = str(raw).strip()
    if not (text.isascii() and text.isdigit()):
        return None
    value = int(text)
    return value if value > 0 else None


def _option_label(item: Any) -> str:
    for attr in ("nome", "name", "title"):
        value = read_attr(item, attr)
        if value:
            return str(value)
    return str(item)


class FormEngine(Generic[T]):
    def __init__(
        self,
        config: FormConfiguration[T],
        service: CrudFormService[T],
        *,
        notifier: Notifier,
        navigator: Navigator,
        route_id: Any = None,
        events: FormEvents | None = None,
    ) -> None:
        if config is None:
            raise ConfigurationError("FormConfiguration is required")
        if not config.fields:
            raise ConfigurationError(f"{config.entity_name}: at least one field is required")
        if service is None:
            raise ConfigurationError(f"{config.entity_name}: an entity service is required")

        self._config = config
        self._service = service
        self._notifier = notifier
        self._navigator = navigator
        self._events = events or FormEvents()
        self._scope = TaskScope()
        self._loading = False
        self._related: dict[str, list[Any]] = {}
        self.entity: T | None = None
        self.last_error: str | None = None

        self._controls = self.build_controls()
        self._entity_id = parse_route_id(route_id)
        self._mode = self.determine_mode()

    # ---------- construction ----------
    def build_controls(self) -> ControlSet:
        return ControlSet(self._config.fields)

    def determine_mode(self) -> FormMode:
        return FormMode.LOADING_FOR_EDIT if self._entity_id is not None else FormMode.CREATE

    # ---------- accessors ----------
    @property
    def config(self) -> FormConfiguration[T]:
        return self._config

    @property
    def controls(self) -> ControlSet:
        return self._controls

    @property
    def mode(self) -> FormMode:
        return self._mode

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def is_edit_mode(self) -> bool:
        return self._entity_id is not None

    @property
    def entity_id(self) -> int | None:
        return self._entity_id

    @property
    def related_data(self) -> Mapping[str, list[Any]]:
        return dict(self._related)

    @property
    def title(self) -> str:
        return self._config.title_for_edit if self.is_edit_mode else self._config.title_for_create

    def _ready_mode(self) -> FormMode:
        return FormMode.READY_EDIT if self.is_edit_mode else FormMode.READY_CREATE

    def state(self) -> FormEngineState:
        return FormEngineState(
            mode=self._mode,
            loading=self._loading,
            is_edit_mode=self.is_edit_mode,
            entity_id=self._entity_id,
            raw_value=self._controls.raw_value,
            touched=self._controls.touched(),
            has_unsaved_changes=self._controls.dirty,
        )

    # ---------- lifecycle ----------
    async def start(self) -> None:
        """Load related data and, in edit mode, the entity; the two run concurrently."""
        if self.is_edit_mode:
            await asyncio.gather(self.load_related_data(), self.load_entity(self._entity_id))
        else:
            await self.load_related_data()
            if self._scope.active:
                self._mode = FormMode.READY_CREATE

    def close(self) -> None:
        """End of the screen activation: cancel pending work, ignore late results."""
        self._scope.close()
        self._loading = False
        self._mode = FormMode.CLOSED

    # ---------- loading ----------
    async def load_related_data(self) -> None:
        specs = [r for r in self._config.related_data if r.load_on_init]
        if not specs:
            return
        results = await asyncio.gather(
            *(self._scope.run(call_service(spec.load_function)) for spec in specs),
            return_exceptions=True,
        )
        if not self._scope.active:
            return
        failed = False
        for spec, result in zip(specs, results):
            if isinstance(result, BaseException):
                failed = True
                logger.warning("Related data %r failed for %s: %s", spec.property_name, self._config.entity_name, result)
                continue
            self._related[spec.property_name] = normalize_result(result)
        if failed:
            self._notifier.error(RELATED_DATA_ERROR)

    async def load_related(self, property_name: str) -> list[Any]:
        """On-demand load of a related data spec (typically one with load_on_init=False)."""
        spec = next((r for r in self._config.related_data if r.property_name == property_name), None)
        if spec is None:
            raise ConfigurationError(f"{self._config.entity_name}: unknown related data '{property_name}'")
        try:
            result = await self._scope.run(call_service(spec.load_function))
        except Exception as exc:
            if self._scope.active:
                logger.warning("Related data %r failed for %s: %s", property_name, self._config.entity_name, exc)
                self._notifier.error(RELATED_DATA_ERROR)
            return []
        items = normalize_result(result)
        if self._scope.active:
            self._related[property_name] = items
        return items

    async def load_entity(self, target_id: int | None) -> T | None:
        if target_id is None or not self._scope.active:
            return None
        self._loading = True
        self._mode = FormMode.LOADING_FOR_EDIT
        try:
            entity = await self._scope.run(call_service(self._service.fetch_by_id, target_id))
        except Exception as exc:
            if not self._scope.active:
                return None
            self._loading = False
            self._mode = FormMode.LOAD_FAILED
            logger.warning("Loading %s #%s failed: %s", self._config.entity_name, target_id, exc)
            self._notifier.error(error_message(exc, f"Error loading {self._config.entity_name.lower()}"))
            self._navigator.navigate_to(self._config.base_route)
            return None
        if not self._scope.active:
            return None
        self.entity = entity
        values = self._config.after_load(entity) if self._config.after_load else self._values_of(entity)
        self._controls.patch(values)
        self._loading = False
        self._mode = FormMode.READY_EDIT
        return entity

    def _values_of(self, entity: Any) -> Mapping[str, Any]:
        if isinstance(entity, Mapping):
            return entity
        return {key: read_attr(entity, key) for key in self._controls if hasattr(entity, key)}

    # ---------- editing ----------
    def set_values(self, values: Mapping[str, Any]) -> None:
        """Apply user edits by key (keys without a control are ignored)."""
        self._controls.update(values)

    def options_for(self, key: str) -> list[FieldOption]:
        descriptor = self._config.field_for(key)
        if descriptor is None:
            return []
        if descriptor.options:
            return list(descriptor.options)
        if descriptor.options_source:
            return [
                FieldOption(value=entity_id(item) if read_attr(item, "id") is not None else item, label=_option_label(item))
                for item in self._related.get(descriptor.options_source, [])
            ]
        return []

    def is_field_invalid(self, key: str) -> bool:
        control = self._controls.get(key)
        return bool(control and control.invalid and (control.dirty or control.touched))

    def field_error(self, key: str) -> str:
        """Highest-priority message for `key`, or "" when the field is valid."""
        control = self._controls.get(key)
        if control is None:
            return ""
        errors = control.errors
        if not errors:
            return ""
        custom = self._config.custom_error_messages.get(key)
        if custom:
            return custom
        return canonical_message(errors[0])

    # ---------- submit / cancel ----------
    async def submit(self) -> T | None:
        if self._mode == FormMode.SUBMITTING:
            logger.info("Ignoring submit of %s: a save is already in flight", self._config.entity_name)
            return None
        if self._mode in (FormMode.LOADING_FOR_EDIT, FormMode.LOAD_FAILED, FormMode.CLOSED):
            logger.info("Ignoring submit of %s in mode %s", self._config.entity_name, self._mode.value)
            return None
        if self._events.before_submit and not self._events.before_submit():
            return None

        if self._config.form_validator:
            self._controls.apply_custom_errors(self._config.form_validator(self._controls.raw_value))
        if not self._controls.valid:
            self._controls.mark_all_touched()
            self._notifier.warning(INVALID_FORM_MESSAGE)
            return None

        is_edit = self.is_edit_mode
        payload: dict[str, Any] = dict(self._controls.value)
        if self._config.before_save:
            payload = {**payload, **self._config.before_save(payload, is_edit)}

        self._mode = FormMode.SUBMITTING
        self._loading = True
        try:
            if is_edit:
                saved = await self._scope.run(call_service(self._service.update, self._entity_id, payload))
            else:
                saved = await self._scope.run(call_service(self._service.create, payload))
        except Exception as exc:
            if not self._scope.active:
                return None
            self._loading = False
            self._mode = FormMode.SUBMIT_ERROR
            self.last_error = error_message(exc, f"Error saving {self._config.entity_name.lower()}")
            logger.warning("Saving %s failed: %s", self._config.entity_name, exc)
            self._notifier.error(self.last_error)
            if self._events.after_error:
                self._events.after_error(exc)
            self._mode = self._ready_mode()
            return None

        if not self._scope.active:
            return None
        self._loading = False
        self._mode = self._ready_mode()
        self.entity = saved
        self.last_error = None
        verb = "updated" if is_edit else "created"
        self._notifier.success(f"{self._config.entity_name} {verb} successfully")
        if self._events.after_success:
            self._events.after_success(saved, is_edit)
        else:
            self._navigator.navigate_to(self._config.base_route)
        return saved

    def cancel(self) -> None:
        if self._events.on_cancel:
            self._events.on_cancel()
        else:
            self._navigator.navigate_to(self._config.base_route)
