from __future__ import annotations

from typing import Any

from sqlalchemy import func, select

from app.bizadmin.crud.errors import ServiceError
from app.bizadmin.crud.masks import digits_only, format_cpf
from app.bizadmin.crud.sql_service import SqlCrudService, reference_id, to_bool
from app.bizadmin.modules.customers.models import Customer


class CustomerService(SqlCrudService):
    model = Customer
    entity_type = "Customer"
    audit_prefix = "customer"
    editable = ("name", "cpf", "email", "phone", "birth_date", "active")
    references = {"category": "category_id"}
    order_by = "name"
    search_capabilities = ("search_by_name", "search_by_cpf", "search_by_category", "active_only")

    def validate(self, obj: Customer) -> None:
        if not (obj.name or "").strip():
            raise ServiceError("Customer name is required.", status=400)
        if len(digits_only(obj.cpf)) != 11:
            raise ServiceError("CPF must have 11 digits.", status=400)
        obj.cpf = format_cpf(obj.cpf)
        stmt = select(Customer.id).where(Customer.cpf == obj.cpf)
        if obj.id is not None:
            stmt = stmt.where(Customer.id != obj.id)
        clash = self.s.scalars(stmt).first()
        if clash is not None:
            raise ServiceError("A customer with this CPF already exists.", status=409)

    def search_by_name(self, name: str) -> list[dict[str, Any]]:
        return self._select(Customer.name.ilike(f"%{(name or '').strip()}%"))

    def search_by_cpf(self, cpf: str) -> list[dict[str, Any]]:
        digits = digits_only(cpf)
        if not digits:
            return []
        # Partial input matches by prefix on the unformatted digits.
        bare = func.replace(func.replace(Customer.cpf, ".", ""), "-", "")
        return self._select(bare.like(f"{digits}%"))

    def search_by_category(self, category: Any) -> list[dict[str, Any]]:
        category_id = reference_id(category)
        if category_id is None:
            return []
        return self._select(Customer.category_id == category_id)

    def active_only(self, flag: Any = True) -> list[dict[str, Any]]:
        return self._select(Customer.active.is_(to_bool(flag)))
