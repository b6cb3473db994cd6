from __future__ import annotations

from typing import Any

from sqlalchemy import update

from app.bizadmin.crud.errors import ServiceError
from app.bizadmin.crud.sql_service import SqlCrudService, reference_id
from app.bizadmin.modules.addresses.models import Address


class AddressService(SqlCrudService):
    model = Address
    entity_type = "Address"
    audit_prefix = "address"
    editable = ("street", "number", "district", "city", "state", "zip_code", "primary")
    references = {"customer": "customer_id"}
    order_by = "city"
    search_capabilities = ("search_by_customer", "search_by_city")

    def validate(self, obj: Address) -> None:
        if obj.customer_id is None:
            raise ServiceError("An address needs a customer.", status=400)
        for attr in ("street", "city", "state"):
            if not (getattr(obj, attr) or "").strip():
                raise ServiceError(f"Address {attr} is required.", status=400)
        obj.state = obj.state.strip().upper()

    def after_write(self, obj: Address) -> None:
        # At most one primary address per customer.
        if obj.primary:
            self.s.execute(
                update(Address)
                .where(Address.customer_id == obj.customer_id, Address.id != obj.id)
                .values(primary=False)
            )

    def search_by_customer(self, customer: Any) -> list[dict[str, Any]]:
        customer_id = reference_id(customer)
        if customer_id is None:
            return []
        return self._select(Address.customer_id == customer_id)

    def search_by_city(self, city: str) -> list[dict[str, Any]]:
        return self._select(Address.city.ilike(f"%{(city or '').strip()}%"))
