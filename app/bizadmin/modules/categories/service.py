from __future__ import annotations

from typing import Any

from app.bizadmin.crud.sql_service import SqlCrudService, to_bool
from app.bizadmin.modules.categories.models import Category


class CategoryService(SqlCrudService):
    model = Category
    entity_type = "Category"
    audit_prefix = "category"
    editable = ("name", "description", "benefits", "active")
    order_by = "name"
    search_capabilities = ("search_by_name", "active_only")

    def search_by_name(self, name: str) -> list[dict[str, Any]]:
        return self._select(Category.name.ilike(f"%{(name or '').strip()}%"))

    def active_only(self, flag: Any = True) -> list[dict[str, Any]]:
        return self._select(Category.active.is_(to_bool(flag)))
