"""
Generic list engine: load, filter, sort and delete over any entity type.

    IDLE -> LOADING -> LOADED <-> FILTERING / SORTING -> LOADED
    LOADED -> DELETING -> LOADING -> LOADED

Load and search requests share one channel with cancel-and-replace
semantics: a newer request cancels the one in flight and stale results are
dropped. Failures always land back in LOADED with a notification.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from app.bizadmin.crud.collaborators import CrudListService, Notifier
from app.bizadmin.crud.configuration import ListConfiguration
from app.bizadmin.crud.descriptors import ColumnDescriptor
from app.bizadmin.crud.dispatch import SearchCapabilities, normalize_result, select_dispatch
from app.bizadmin.crud.entity import display_label, entity_id, resolve_value
from app.bizadmin.crud.errors import ConfigurationError, error_message
from app.bizadmin.crud.formatting import CellFormat, badge_class, render_cell
from app.bizadmin.crud.scope import TaskScope, call_service

logger = logging.getLogger(__name__)

T = TypeVar("T")

ASC = "asc"
DESC = "desc"
_COLLECTION = "collection"


class ListPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FILTERING = "filtering"
    SORTING = "sorting"
    DELETING = "deleting"
    CLOSED = "closed"


@dataclass(frozen=True)
class ListEngineState:
    phase: ListPhase
    loading: bool
    items: list[Any]
    filtered_items: list[Any]
    active_filters: dict[str, Any]
    sort_key: str | None
    sort_direction: str


def matches(item_value: Any, wanted: Any) -> bool:
    """Local predicate for one active filter value."""
    if isinstance(wanted, bool):
        return item_value == wanted
    if isinstance(wanted, str):
        if item_value is None:
            return False
        return wanted.lower() in str(item_value).lower()
    return item_value == wanted


def sort_items(items: list[Any], key: str, direction: str) -> list[Any]:
    """
    Stable sort on the resolved value of `key`. None always sorts last, in
    both directions. Values that cannot be compared with each other are
    compared by their string form.
    """
    present = [i for i in items if resolve_value(i, key) is not None]
    absent = [i for i in items if resolve_value(i, key) is None]
    reverse = direction == DESC
    try:
        ordered = sorted(present, key=lambda i: resolve_value(i, key), reverse=reverse)
    except TypeError:
        ordered = sorted(present, key=lambda i: str(resolve_value(i, key)), reverse=reverse)
    return ordered + absent


class ListEngine(Generic[T]):
    def __init__(
        self,
        config: ListConfiguration[T],
        service: CrudListService[T],
        *,
        notifier: Notifier,
        cell_format: CellFormat | None = None,
    ) -> None:
        if config is None:
            raise ConfigurationError("ListConfiguration is required")
        if service is None:
            raise ConfigurationError(f"{config.entity_name}: a list service is required")
        self._config = config
        self._service = service
        self._notifier = notifier
        self._cell_format = cell_format or CellFormat()
        self._capabilities = SearchCapabilities.resolve(service, config.filters)
        self._scope = TaskScope()

        self._phase = ListPhase.IDLE
        self._loading = False
        self._items: list[T] = []
        self._filtered: list[T] = []
        self._filters: dict[str, Any] = {}
        self._sort_key: str | None = None
        self._sort_direction = ASC
        self.reset_filter_values()

    # ---------- accessors ----------
    @property
    def config(self) -> ListConfiguration[T]:
        return self._config

    @property
    def capabilities(self) -> SearchCapabilities:
        return self._capabilities

    @property
    def phase(self) -> ListPhase:
        return self._phase

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def items(self) -> list[T]:
        return list(self._items)

    @property
    def filtered_items(self) -> list[T]:
        return list(self._filtered)

    @property
    def active_filters(self) -> dict[str, Any]:
        return dict(self._filters)

    @property
    def sort_key(self) -> str | None:
        return self._sort_key

    @property
    def sort_direction(self) -> str:
        return self._sort_direction

    def state(self) -> ListEngineState:
        return ListEngineState(
            phase=self._phase,
            loading=self._loading,
            items=self.items,
            filtered_items=self.filtered_items,
            active_filters=self.active_filters,
            sort_key=self._sort_key,
            sort_direction=self._sort_direction,
        )

    # ---------- lifecycle ----------
    async def start(self) -> None:
        await self.load_all()

    def close(self) -> None:
        self._scope.close()
        self._loading = False
        self._phase = ListPhase.CLOSED

    # ---------- loading ----------
    async def _fetch(self, fn: Any, *args: Any) -> tuple[bool, list[Any]]:
        """
        Run one collection request on the shared channel. Returns (True, items)
        when this request is still the current one, (False, []) when it was
        superseded by a newer request.
        """
        task, generation = self._scope.replace(_COLLECTION, call_service(fn, *args))
        try:
            result = await task
        except asyncio.CancelledError:
            if self._scope.active and not self._scope.is_current(_COLLECTION, generation):
                return False, []
            raise
        if not self._scope.is_current(_COLLECTION, generation):
            return False, []
        return True, normalize_result(result)

    async def load_all(self) -> list[T]:
        """Fetch the whole collection; replaces both master and filtered items."""
        if not self._scope.active:
            return self.filtered_items
        self._loading = True
        self._phase = ListPhase.LOADING
        try:
            current, items = await self._fetch(self._service.list_all)
        except Exception as exc:
            if self._scope.active:
                self._loading = False
                self._phase = ListPhase.LOADED
                logger.error("Loading %s failed: %s", self._config.entity_name_plural, exc)
                self._notifier.error(
                    error_message(exc, f"Error loading {self._config.entity_name_plural.lower()}")
                )
            return self.filtered_items
        if not current:
            return self.filtered_items
        self._items = items
        self._filtered = self._sorted(list(items))
        self._loading = False
        self._phase = ListPhase.LOADED
        return self.filtered_items

    # ---------- filtering ----------
    def reset_filter_values(self) -> None:
        self._filters = {f.key: f.empty_value() for f in self._config.filters}

    def set_filters(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            if key in self._filters:
                self._filters[key] = value
            else:
                logger.debug("Ignoring undeclared filter %r for %s", key, self._config.entity_name)

    async def apply_filters(self, active_filters: Mapping[str, Any] | None = None) -> list[T]:
        if not self._scope.active:
            return self.filtered_items
        if active_filters is not None:
            self.set_filters(active_filters)

        selected = select_dispatch(self._config.filters, self._filters, self._capabilities)
        if selected is not None:
            descriptor, search = selected
            return await self._dispatch_search(descriptor.key, search)

        self._phase = ListPhase.FILTERING
        self._filtered = self._sorted(self._local_filter())
        self._phase = ListPhase.LOADED
        return self.filtered_items

    def _local_filter(self) -> list[T]:
        active = [(f.key, self._filters.get(f.key)) for f in self._config.filters if self._filters.get(f.key)]
        return [
            item for item in self._items
            if all(matches(resolve_value(item, key), wanted) for key, wanted in active)
        ]

    async def _dispatch_search(self, key: str, search: Any) -> list[T]:
        if not self._scope.active:
            return self.filtered_items
        self._loading = True
        self._phase = ListPhase.FILTERING
        try:
            current, found = await self._fetch(search, self._filters[key])
        except Exception as exc:
            if self._scope.active:
                self._loading = False
                self._phase = ListPhase.LOADED
                logger.error("Search %r on %s failed: %s", key, self._config.entity_name_plural, exc)
                self._notifier.error(error_message(exc, f"Error searching {self._config.entity_name_plural.lower()}"))
            return self.filtered_items
        if not current:
            return self.filtered_items
        self._filtered = self._sorted(found)
        self._loading = False
        self._phase = ListPhase.LOADED
        return self.filtered_items

    def clear_filters(self) -> list[T]:
        """Reset filter values and show the full master collection (no reload)."""
        self.reset_filter_values()
        self._filtered = self._sorted(list(self._items))
        return self.filtered_items

    # ---------- sorting ----------
    def sort(self, column_key: str, direction: str | None = None) -> list[T]:
        """
        Same column again toggles asc/desc; a new column starts ascending.
        An explicit `direction` overrides the toggle.
        """
        if direction in (ASC, DESC):
            self._sort_direction = direction
        elif self._sort_key == column_key:
            self._sort_direction = DESC if self._sort_direction == ASC else ASC
        else:
            self._sort_direction = ASC
        self._sort_key = column_key
        self._phase = ListPhase.SORTING
        self._filtered = sort_items(self._filtered, column_key, self._sort_direction)
        self._phase = ListPhase.LOADED
        return self.filtered_items

    def _sorted(self, items: list[T]) -> list[T]:
        if self._sort_key is None:
            return items
        return sort_items(items, self._sort_key, self._sort_direction)

    # ---------- delete ----------
    def item_label(self, item: T) -> str:
        return display_label(item, self._config.entity_name)

    async def confirm_and_delete(self, item: T) -> bool:
        if not self._scope.active:
            return False
        label = self.item_label(item)
        confirmed = await self._notifier.confirm_delete(label)
        target = entity_id(item)
        if not confirmed or target is None:
            return False

        self._loading = True
        self._phase = ListPhase.DELETING
        try:
            await self._scope.run(call_service(self._service.delete, target))
        except Exception as exc:
            if self._scope.active:
                self._loading = False
                self._phase = ListPhase.LOADED
                logger.error("Deleting %s #%s failed: %s", self._config.entity_name, target, exc)
                self._notifier.error(error_message(exc, f"Error deleting {self._config.entity_name.lower()}"))
            return False
        if not self._scope.active:
            return False
        self._notifier.success(f'{self._config.entity_name} "{label}" deleted successfully')
        await self.load_all()
        return True

    # ---------- presentation ----------
    def cell(self, item: T, column: ColumnDescriptor) -> str:
        return render_cell(item, column, self._cell_format)

    def cell_class(self, item: T, column: ColumnDescriptor) -> str:
        return badge_class(resolve_value(item, column.key), column.badge)

    def track_key(self, item: T) -> Any:
        return self._config.identity_fn(item)

    def count_label(self) -> str:
        n = len(self._filtered)
        noun = self._config.entity_name if n == 1 else self._config.entity_name_plural
        return f"{n} {noun.lower()} found"

    @property
    def new_item_route(self) -> str:
        return f"{self._config.base_route}/new"

    def edit_route(self, item: T) -> str:
        return f"{self._config.base_route}/{entity_id(item)}/edit"
