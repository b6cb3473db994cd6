"""
Dynamic filter dispatch.

A FilterDescriptor's ``dispatch_method`` is a capability name, not a checked
reference. Names are resolved once, when a list engine binds its
configuration to a service, into an explicit capability map. Filters whose
capability the service lacks fall back to local filtering without error.

A service can publish the names it supports with a ``search_capabilities``
attribute (a tuple of method names); otherwise any callable attribute with the
requested name qualifies.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from app.bizadmin.crud.descriptors import FilterDescriptor

logger = logging.getLogger(__name__)

SearchFn = Callable[[Any], Any]


def _lookup(service: Any, name: str) -> SearchFn | None:
    published = getattr(service, "search_capabilities", None)
    if published is not None and name not in published:
        return None
    candidate = getattr(service, name, None)
    return candidate if callable(candidate) else None


@dataclass(frozen=True)
class SearchCapabilities:
    """Filter key -> bound search callable, plus the names that did not resolve."""

    by_filter: Mapping[str, SearchFn] = field(default_factory=dict)
    missing: frozenset[str] = frozenset()

    @classmethod
    def resolve(cls, service: Any, filters: Sequence[FilterDescriptor]) -> "SearchCapabilities":
        found: dict[str, SearchFn] = {}
        missing: set[str] = set()
        for f in filters:
            if not f.dispatch_method:
                continue
            fn = _lookup(service, f.dispatch_method)
            if fn is None:
                missing.add(f.dispatch_method)
                logger.debug(
                    "Search capability %r not provided by %s; filter %r will filter locally",
                    f.dispatch_method,
                    type(service).__name__,
                    f.key,
                )
                continue
            found[f.key] = fn
        return cls(by_filter=found, missing=frozenset(missing))

    def for_filter(self, key: str) -> SearchFn | None:
        return self.by_filter.get(key)


def select_dispatch(
    filters: Sequence[FilterDescriptor],
    active: Mapping[str, Any],
    capabilities: SearchCapabilities,
) -> tuple[FilterDescriptor, SearchFn] | None:
    """
    First filter, in declaration order, that declares a dispatch method and has
    a truthy active value. Returns None when there is no such filter or when
    the service lacks its capability (the caller then filters locally).
    """
    for f in filters:
        if not f.dispatch_method or not active.get(f.key):
            continue
        fn = capabilities.for_filter(f.key)
        return (f, fn) if fn is not None else None
    return None


def normalize_result(result: Any) -> list[Any]:
    """Search endpoints may return one entity or many; always hand back a list."""
    if result is None:
        return []
    if isinstance(result, (list, tuple)):
        return list(result)
    if isinstance(result, Mapping):
        return [result]
    if isinstance(result, Iterable) and not isinstance(result, (str, bytes)):
        return list(result)
    return [result]
