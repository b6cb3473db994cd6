from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import func, select

from app.bizadmin.crud.errors import ServiceError
from app.bizadmin.crud.sql_service import SqlCrudService, reference_id
from app.bizadmin.modules.contracts.models import Contract
from app.bizadmin.modules.line_items.models import LineItem

CENTS = Decimal("0.01")


def compute_final_value(quantity: int, unit_value: Decimal, discount: Decimal | None) -> Decimal:
    gross = Decimal(quantity) * unit_value
    return (gross - (discount or Decimal("0"))).quantize(CENTS)


class LineItemService(SqlCrudService):
    model = LineItem
    entity_type = "Item"
    audit_prefix = "line_item"
    # final_value is computed, never taken from payloads.
    editable = ("description", "quantity", "unit_value", "discount")
    references = {"contract": "contract_id", "offering": "offering_id"}
    search_capabilities = ("search_by_description", "search_by_contract")

    def validate(self, obj: LineItem) -> None:
        if obj.contract_id is None or obj.offering_id is None:
            raise ServiceError("An item needs a contract and a service.", status=400)
        if obj.quantity is None or obj.quantity < 1:
            raise ServiceError("Quantity must be at least 1.", status=400)
        if obj.unit_value is None or obj.unit_value < Decimal("0"):
            raise ServiceError("Unit value must be zero or greater.", status=400)
        if obj.discount is None:
            obj.discount = Decimal("0.00")
        if obj.discount < Decimal("0"):
            raise ServiceError("Discount cannot be negative.", status=400)
        final = compute_final_value(obj.quantity, obj.unit_value, obj.discount)
        if final < Decimal("0"):
            raise ServiceError("Discount cannot exceed the item total.", status=400)
        obj.final_value = final

    def _recompute_total(self, contract_id: int | None) -> None:
        if contract_id is None:
            return
        contract = self.s.get(Contract, contract_id)
        if contract is None:
            return
        total = self.s.scalar(
            select(func.coalesce(func.sum(LineItem.final_value), 0)).where(LineItem.contract_id == contract_id)
        )
        contract.total_value = Decimal(str(total)).quantize(CENTS)

    def update(self, entity_id: int, payload: Any) -> dict[str, Any]:
        previous = self._get(entity_id).contract_id
        saved = super().update(entity_id, payload)
        if previous != saved["contract_id"]:
            # The item moved; the old contract loses its value.
            self._recompute_total(previous)
            self._commit("update")
        return saved

    def after_write(self, obj: LineItem) -> None:
        self._recompute_total(obj.contract_id)

    def after_delete(self, obj: LineItem) -> None:
        self._recompute_total(obj.contract_id)

    def search_by_description(self, text: str) -> list[dict[str, Any]]:
        return self._select(LineItem.description.ilike(f"%{(text or '').strip()}%"))

    def search_by_contract(self, contract: Any) -> list[dict[str, Any]]:
        contract_id = reference_id(contract)
        if contract_id is None:
            return []
        return self._select(LineItem.contract_id == contract_id)
