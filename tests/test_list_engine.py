"""Tests for the generic list engine, driven with in-memory collaborators."""
import asyncio

import pytest

from app.bizadmin.crud import (
    BadgeMapping,
    ColumnDescriptor,
    ConfigurationError,
    FilterDescriptor,
    FilterInputKind,
    ListConfiguration,
    ListEngine,
    ListPhase,
    RenderKind,
    ServiceError,
)
from app.bizadmin.crud.collaborators import RecordingNotifier
from app.bizadmin.crud.list_engine import matches, sort_items

CUSTOMERS = [
    {"id": 1, "name": "Carla", "cpf": "111.111.111-11", "state": "SP", "active": True, "category": {"id": 1, "name": "Premium"}},
    {"id": 2, "name": "ana", "cpf": "222.222.222-22", "state": "RJ", "active": False, "category": None},
    {"id": 3, "name": "Bruno", "cpf": "333.333.333-33", "state": "SP", "active": True, "category": {"id": 2, "name": "Basic"}},
]


class FakeCustomerService:
    def __init__(self, rows=None):
        self.rows = [dict(r) for r in (rows if rows is not None else CUSTOMERS)]
        self.calls = []
        self.fail_list = None
        self.fail_delete = None

    async def list_all(self):
        self.calls.append(("list_all",))
        if self.fail_list:
            raise self.fail_list
        return list(self.rows)

    async def delete(self, entity_id):
        self.calls.append(("delete", entity_id))
        if self.fail_delete:
            raise self.fail_delete
        self.rows = [r for r in self.rows if r["id"] != entity_id]

    def search_by_name(self, name):
        self.calls.append(("search_by_name", name))
        return [r for r in self.rows if name.lower() in r["name"].lower()]

    def search_by_cpf(self, cpf):
        self.calls.append(("search_by_cpf", cpf))
        # Single-entity responses are normalized to a list.
        return next((r for r in self.rows if r["cpf"] == cpf), None)


def _config(**kw):
    base = dict(
        entity_name="Customer",
        entity_name_plural="Customers",
        base_route="/customers",
        columns=(
            ColumnDescriptor("name", "Name", sortable=True),
            ColumnDescriptor("category.name", "Category", sortable=True),
            ColumnDescriptor("active", "Status", RenderKind.BADGE, badge=BadgeMapping()),
        ),
        filters=(
            FilterDescriptor("name", "Name", dispatch_method="search_by_name"),
            FilterDescriptor("cpf", "CPF", dispatch_method="search_by_cpf"),
            FilterDescriptor("state", "State"),
            FilterDescriptor("active", "Active", FilterInputKind.CHECKBOX, dispatch_method="active_only"),
        ),
    )
    base.update(kw)
    return ListConfiguration(**base)


def _engine(service=None, config=None, confirm=True):
    notifier = RecordingNotifier(confirm=confirm)
    engine = ListEngine(config or _config(), service or FakeCustomerService(), notifier=notifier)
    return engine, notifier


def test_requires_config_and_service():
    with pytest.raises(ConfigurationError):
        ListEngine(None, FakeCustomerService(), notifier=RecordingNotifier())
    with pytest.raises(ConfigurationError):
        ListEngine(_config(), None, notifier=RecordingNotifier())


def test_capabilities_resolved_at_construction():
    engine, _ = _engine()
    assert set(engine.capabilities.by_filter) == {"name", "cpf"}
    assert engine.capabilities.missing == frozenset({"active_only"})
    assert engine.phase == ListPhase.IDLE
    assert engine.active_filters == {"name": "", "cpf": "", "state": "", "active": False}


def test_load_all_fills_master_and_filtered():
    engine, _ = _engine()
    asyncio.run(engine.start())
    assert engine.phase == ListPhase.LOADED
    assert not engine.loading
    assert [c["id"] for c in engine.items] == [1, 2, 3]
    assert engine.filtered_items == engine.items


def test_load_failure_notifies_once_and_keeps_previous_items():
    service = FakeCustomerService()
    engine, notifier = _engine(service)
    asyncio.run(engine.load_all())
    service.fail_list = ServiceError("Backend offline")
    asyncio.run(engine.load_all())
    assert notifier.of("error") == ["Backend offline"]
    assert len(engine.items) == 3
    assert engine.phase == ListPhase.LOADED


def test_dispatch_search_replaces_only_filtered_items():
    service = FakeCustomerService()
    engine, _ = _engine(service)

    async def main():
        await engine.load_all()
        return await engine.apply_filters({"name": "an", "state": "SP"})

    result = asyncio.run(main())
    # Dispatch wins over local filtering; the state filter is not applied on top.
    assert [c["name"] for c in result] == ["ana"]
    assert ("search_by_name", "an") in service.calls
    assert len(engine.items) == 3


def test_single_entity_search_result_is_normalized():
    service = FakeCustomerService()
    engine, _ = _engine(service)

    async def main():
        await engine.load_all()
        found = await engine.apply_filters({"cpf": "333.333.333-33"})
        missing = await engine.apply_filters({"cpf": "000.000.000-00"})
        return found, missing

    found, missing = asyncio.run(main())
    assert [c["id"] for c in found] == [3]
    assert missing == []


def test_missing_capability_falls_back_to_local_filtering():
    service = FakeCustomerService()
    engine, notifier = _engine(service)

    async def main():
        await engine.load_all()
        return await engine.apply_filters({"active": True, "state": "sp"})

    result = asyncio.run(main())
    assert [c["id"] for c in result] == [1, 3]
    assert [c[0] for c in service.calls] == ["list_all"]
    assert notifier.messages == []


def test_applying_same_local_filters_twice_gives_same_result():
    service = FakeCustomerService()
    engine, _ = _engine(service)

    async def main():
        await engine.load_all()
        first = await engine.apply_filters({"state": "sp"})
        second = await engine.apply_filters({"state": "sp"})
        return first, second

    first, second = asyncio.run(main())
    assert [c["id"] for c in first] == [1, 3]
    assert second == first
    assert engine.filtered_items == first
    assert len(engine.items) == 3
    assert [c[0] for c in service.calls] == ["list_all"]


def test_undeclared_filter_keys_are_ignored():
    engine, _ = _engine()

    async def main():
        await engine.load_all()
        return await engine.apply_filters({"nickname": "x"})

    assert len(asyncio.run(main())) == 3
    assert "nickname" not in engine.active_filters


def test_clear_filters_restores_master_without_reload():
    service = FakeCustomerService()
    engine, _ = _engine(service)

    async def main():
        await engine.load_all()
        await engine.apply_filters({"state": "RJ"})

    asyncio.run(main())
    assert len(engine.filtered_items) == 1
    engine.clear_filters()
    assert len(engine.filtered_items) == 3
    assert engine.active_filters["state"] == ""
    assert [c for c in service.calls if c[0] == "list_all"] == [("list_all",)]


def test_matches_semantics():
    assert matches("Carla", "ar")
    assert matches("Carla", "CAR")
    assert not matches(None, "x")
    assert matches(True, True)
    assert not matches(1, 2)


def test_sort_toggles_and_keeps_nulls_last():
    engine, _ = _engine()
    asyncio.run(engine.load_all())

    asc = engine.sort("category.name")
    assert [c["id"] for c in asc] == [3, 1, 2]
    desc = engine.sort("category.name")
    assert engine.sort_direction == "desc"
    assert [c["id"] for c in desc] == [1, 3, 2]
    engine.sort("name")
    assert engine.sort_direction == "asc"
    assert engine.sort("name", "desc") == sort_items(engine.items, "name", "desc")


def test_sort_is_stable_for_equal_keys():
    rows = [{"id": i, "group": "a" if i % 2 else "b"} for i in range(1, 7)]
    assert [r["id"] for r in sort_items(rows, "group", "asc")] == [1, 3, 5, 2, 4, 6]


def test_active_sort_survives_reload():
    engine, _ = _engine()

    async def main():
        await engine.load_all()
        engine.sort("name", "desc")
        await engine.load_all()

    asyncio.run(main())
    assert [c["name"] for c in engine.filtered_items] == ["ana", "Carla", "Bruno"]


def test_confirmed_delete_refreshes_once():
    service = FakeCustomerService()
    engine, notifier = _engine(service)

    async def main():
        await engine.load_all()
        return await engine.confirm_and_delete(engine.items[0])

    assert asyncio.run(main()) is True
    assert notifier.confirmations == ["Carla"]
    assert notifier.of("success") == ['Customer "Carla" deleted successfully']
    assert [c[0] for c in service.calls] == ["list_all", "delete", "list_all"]
    assert [c["id"] for c in engine.items] == [2, 3]


def test_declined_delete_does_nothing():
    service = FakeCustomerService()
    engine, notifier = _engine(service, confirm=False)
    assert asyncio.run(engine.confirm_and_delete(CUSTOMERS[1])) is False
    assert notifier.confirmations == ["ana"]
    assert service.calls == []
    assert notifier.messages == []


def test_failed_delete_reports_without_refresh():
    service = FakeCustomerService()
    service.fail_delete = ServiceError("Customer has contracts")
    engine, notifier = _engine(service)
    assert asyncio.run(engine.confirm_and_delete({"id": 3})) is False
    assert notifier.confirmations == ["Customer #3"]
    assert notifier.of("error") == ["Customer has contracts"]
    assert [c[0] for c in service.calls] == ["delete"]
    assert engine.phase == ListPhase.LOADED


def test_overlapping_loads_keep_latest_result():
    class SlowThenFast(FakeCustomerService):
        def __init__(self):
            super().__init__()
            self.round = 0
            self.started = None

        async def list_all(self):
            self.round += 1
            if self.round == 1:
                self.started.set()
                await asyncio.sleep(0.05)
                return [{"id": 99, "name": "stale"}]
            return list(self.rows)

    service = SlowThenFast()
    engine, notifier = _engine(service)

    async def main():
        service.started = asyncio.Event()
        first = asyncio.ensure_future(engine.load_all())
        await service.started.wait()
        await engine.load_all()
        await first

    asyncio.run(main())
    assert [c["id"] for c in engine.items] == [1, 2, 3]
    assert notifier.messages == []
    assert not engine.loading


def test_presentation_helpers():
    engine, _ = _engine(config=_config(show_count=True))
    asyncio.run(engine.load_all())
    item = engine.items[0]
    name_col, category_col, status_col = engine.config.columns
    assert engine.cell(item, category_col) == "Premium"
    assert engine.cell(engine.items[1], status_col) == "Inactive"
    assert engine.cell_class(item, status_col) == "badge-success"
    assert engine.track_key(item) == 1
    assert engine.count_label() == "3 customers found"
    asyncio.run(engine.apply_filters({"state": "RJ"}))
    assert engine.count_label() == "1 customer found"
    assert engine.new_item_route == "/customers/new"
    assert engine.edit_route(item) == "/customers/1/edit"


def test_closed_engine_ignores_late_work():
    engine, notifier = _engine()
    engine.close()
    assert asyncio.run(engine.load_all()) == []
    assert engine.phase == ListPhase.CLOSED
    assert notifier.messages == []
