"""
SQLAlchemy-backed entity service satisfying both CrudFormService and
CrudListService. Entity modules subclass it, declare their model and
editable columns, and add named search capabilities.

Records cross the boundary as plain dicts; a related entity referenced by
foreign key is serialized one level deep (``{"id": 3, "name": "Ana"}``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import date, datetime
from typing import Any, ClassVar

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, inspect as sa_inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.bizadmin.audit import record_event
from app.bizadmin.crud.entity import read_attr
from app.bizadmin.crud.errors import NotFoundError, ServiceError
from app.bizadmin.crud.masks import parse_currency

logger = logging.getLogger(__name__)


def model_keys(model: type) -> frozenset[str]:
    """Property names of a mapped model: column attributes plus relationships."""
    mapper = sa_inspect(model)
    return frozenset([c.key for c in mapper.column_attrs] + [r.key for r in mapper.relationships])


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "on", "yes", "y")


def reference_id(value: Any) -> int | None:
    """Accept ``{"id": 3}``, an object with ``id``, ``3`` or ``"3"``."""
    if value in (None, ""):
        return None
    if isinstance(value, Mapping) or hasattr(value, "id"):
        value = read_attr(value, "id")
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ServiceError(f"Invalid reference: {value!r}", status=400) from None


def flatten_references(*keys: str) -> Callable[[Mapping[str, Any]], dict[str, Any]]:
    """
    Form `after_load` hook: replace nested reference dicts with their ids so
    select controls hold the raw foreign key.
    """

    def after_load(entity: Mapping[str, Any]) -> dict[str, Any]:
        out = dict(entity)
        for key in keys:
            out[key] = reference_id(out.get(key))
        return out

    return after_load


def coerce(column_type: Any, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(column_type, Boolean):
        return to_bool(value)
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return None
    try:
        if isinstance(column_type, DateTime):
            return value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
        if isinstance(column_type, Date):
            if isinstance(value, datetime):
                return value.date()
            return value if isinstance(value, date) else date.fromisoformat(str(value))
        if isinstance(column_type, Numeric):
            parsed = parse_currency(value)
            if parsed is None:
                raise ValueError(value)
            return parsed
        if isinstance(column_type, Integer):
            return int(value)
    except (TypeError, ValueError):
        raise ServiceError(f"Invalid value: {value!r}", status=400) from None
    return value


class SqlCrudService:
    model: ClassVar[type]
    entity_type: ClassVar[str]
    audit_prefix: ClassVar[str]
    # Columns accepted from create/update payloads.
    editable: ClassVar[tuple[str, ...]] = ()
    # Payload key -> foreign key column, for one-level references.
    references: ClassVar[dict[str, str]] = {}
    # Attributes copied into a serialized reference besides "id".
    reference_fields: ClassVar[tuple[str, ...]] = ("name",)
    order_by: ClassVar[str] = "id"
    # Names the list engine may dispatch filters to.
    search_capabilities: ClassVar[tuple[str, ...]] = ()

    def __init__(self, s: Session) -> None:
        self.s = s

    # ---------- serialization ----------
    def serialize(self, obj: Any) -> dict[str, Any]:
        mapper = sa_inspect(type(obj))
        out: dict[str, Any] = {c.key: getattr(obj, c.key) for c in mapper.column_attrs}
        for key in self.references:
            related = getattr(obj, key, None)
            if related is None:
                out[key] = None
                continue
            ref = {"id": related.id}
            for attr in self.reference_fields:
                ref[attr] = getattr(related, attr, None)
            out[key] = ref
        return out

    def _columns(self) -> dict[str, Any]:
        return {c.key: c.columns[0].type for c in sa_inspect(self.model).column_attrs}

    def _apply(self, obj: Any, payload: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
        """Copy editable payload values onto `obj`; returns the changes made."""
        columns = self._columns()
        changes: dict[str, dict[str, Any]] = {}
        for key, fk in self.references.items():
            if key not in payload and fk not in payload:
                continue
            new = reference_id(payload.get(key, payload.get(fk)))
            old = getattr(obj, fk)
            if new != old:
                changes[fk] = {"old": old, "new": new}
                setattr(obj, fk, new)
        for key in self.editable:
            if key not in payload:
                continue
            new = coerce(columns[key], payload[key])
            old = getattr(obj, key)
            if new != old:
                changes[key] = {"old": old, "new": new}
                setattr(obj, key, new)
        return changes

    # ---------- hooks ----------
    def validate(self, obj: Any) -> None:
        """Raise ServiceError when `obj` may not be persisted."""

    def after_write(self, obj: Any) -> None:
        """Server-side side effects after create/update (e.g. recomputing totals)."""

    def after_delete(self, obj: Any) -> None:
        """Server-side side effects after a delete."""

    # ---------- transaction ----------
    def _commit(self, action: str) -> None:
        try:
            self.s.commit()
        except IntegrityError as e:
            self.s.rollback()
            logger.warning("%s %s rejected by database: %s", self.entity_type, action, e.orig)
            raise ServiceError(f"Could not {action} {self.entity_type.lower()}: duplicate or invalid data.", status=409) from e
        except SQLAlchemyError as e:
            self.s.rollback()
            logger.exception("%s %s failed", self.entity_type, action)
            raise ServiceError(f"Could not {action} {self.entity_type.lower()}.") from e

    def _get(self, entity_id: int) -> Any:
        obj = self.s.get(self.model, int(entity_id))
        if obj is None:
            raise NotFoundError(f"{self.entity_type} not found")
        return obj

    def _select(self, *criteria: Any) -> list[dict[str, Any]]:
        stmt = select(self.model)
        for c in criteria:
            stmt = stmt.where(c)
        stmt = stmt.order_by(getattr(self.model, self.order_by))
        return [self.serialize(o) for o in self.s.scalars(stmt).all()]

    def choices(self) -> list[dict[str, Any]]:
        """Id/name pairs for select controls and select filters."""
        stmt = select(self.model).order_by(getattr(self.model, self.order_by))
        return [
            {"id": o.id, "name": str(read_attr(o, "name") or f"{self.entity_type} #{o.id}")}
            for o in self.s.scalars(stmt).all()
        ]

    # ---------- CrudListService / CrudFormService ----------
    def list_all(self) -> list[dict[str, Any]]:
        return self._select()

    def fetch_by_id(self, entity_id: int) -> dict[str, Any]:
        return self.serialize(self._get(entity_id))

    def create(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        obj = self.model()
        try:
            changes = self._apply(obj, payload)
            self.validate(obj)
        except ServiceError:
            self.s.rollback()
            raise
        self.s.add(obj)
        try:
            self.s.flush()
            self.after_write(obj)
        except SQLAlchemyError as e:
            self.s.rollback()
            raise ServiceError(f"Could not create {self.entity_type.lower()}: duplicate or invalid data.", status=409) from e
        record_event(
            self.s,
            action=f"{self.audit_prefix}.create",
            entity_type=self.entity_type,
            entity_id=str(obj.id),
            metadata={"fields": sorted(changes)},
        )
        self._commit("create")
        self.s.refresh(obj)
        return self.serialize(obj)

    def update(self, entity_id: int, payload: Mapping[str, Any]) -> dict[str, Any]:
        obj = self._get(entity_id)
        try:
            changes = self._apply(obj, payload)
            self.validate(obj)
        except ServiceError:
            self.s.rollback()
            raise
        try:
            self.s.flush()
            self.after_write(obj)
        except SQLAlchemyError as e:
            self.s.rollback()
            raise ServiceError(f"Could not update {self.entity_type.lower()}: duplicate or invalid data.", status=409) from e
        record_event(
            self.s,
            action=f"{self.audit_prefix}.edit",
            entity_type=self.entity_type,
            entity_id=str(obj.id),
            metadata={"changes": changes},
        )
        self._commit("update")
        self.s.refresh(obj)
        return self.serialize(obj)

    def delete(self, entity_id: int) -> None:
        obj = self._get(entity_id)
        label = read_attr(obj, "name")
        self.s.delete(obj)
        try:
            self.s.flush()
            self.after_delete(obj)
        except SQLAlchemyError as e:
            self.s.rollback()
            raise ServiceError(f"Could not delete {self.entity_type.lower()}: it is still referenced.", status=409) from e
        record_event(
            self.s,
            action=f"{self.audit_prefix}.delete",
            entity_type=self.entity_type,
            entity_id=str(entity_id),
            metadata={"name": label} if label else None,
        )
        self._commit("delete")
