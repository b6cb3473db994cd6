from __future__ import annotations

from typing import Any

from app.bizadmin.crud.errors import ServiceError
from app.bizadmin.crud.sql_service import SqlCrudService, reference_id
from app.bizadmin.modules.contracts.models import CONTRACT_STATUSES, Contract


class ContractService(SqlCrudService):
    model = Contract
    entity_type = "Contract"
    audit_prefix = "contract"
    # total_value is derived from line items and never taken from payloads.
    editable = ("start_date", "end_date", "status", "notes")
    references = {"customer": "customer_id"}
    order_by = "start_date"
    search_capabilities = ("search_by_status", "search_by_customer")

    def validate(self, obj: Contract) -> None:
        if obj.customer_id is None:
            raise ServiceError("A contract needs a customer.", status=400)
        if obj.start_date is None:
            raise ServiceError("Start date is required.", status=400)
        if obj.end_date is not None and obj.end_date < obj.start_date:
            raise ServiceError("End date cannot be before the start date.", status=400)
        obj.status = (obj.status or "PENDING").strip().upper()
        if obj.status not in CONTRACT_STATUSES:
            raise ServiceError(f"Unknown contract status: {obj.status}", status=400)

    def search_by_status(self, status: str) -> list[dict[str, Any]]:
        return self._select(Contract.status == (status or "").strip().upper())

    def search_by_customer(self, customer: Any) -> list[dict[str, Any]]:
        customer_id = reference_id(customer)
        if customer_id is None:
            return []
        return self._select(Contract.customer_id == customer_id)
