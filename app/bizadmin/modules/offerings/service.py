from __future__ import annotations

from decimal import Decimal
from typing import Any

from app.bizadmin.crud.errors import ServiceError
from app.bizadmin.crud.sql_service import SqlCrudService, reference_id, to_bool
from app.bizadmin.modules.offerings.models import Offering


class OfferingService(SqlCrudService):
    model = Offering
    entity_type = "Service"
    audit_prefix = "offering"
    editable = ("name", "description", "price", "active")
    references = {"category": "category_id"}
    order_by = "name"
    search_capabilities = ("search_by_name", "search_by_category", "active_only")

    def validate(self, obj: Offering) -> None:
        if not (obj.name or "").strip():
            raise ServiceError("Service name is required.", status=400)
        if obj.price is None or obj.price < Decimal("0"):
            raise ServiceError("Price must be zero or greater.", status=400)

    def search_by_name(self, name: str) -> list[dict[str, Any]]:
        return self._select(Offering.name.ilike(f"%{(name or '').strip()}%"))

    def search_by_category(self, category: Any) -> list[dict[str, Any]]:
        category_id = reference_id(category)
        if category_id is None:
            return []
        return self._select(Offering.category_id == category_id)

    def active_only(self, flag: Any = True) -> list[dict[str, Any]]:
        return self._select(Offering.active.is_(to_bool(flag)))
