"""
Boundary contracts the engines consume. Transport, persistence and UI live
behind these; the engines only forward messages and never interpret errors.

Service methods may be coroutine functions or plain functions.
"""

from __future__ import annotations

from collections.abc import Awaitable, Sequence
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class CrudFormService(Protocol[T]):
    def fetch_by_id(self, entity_id: int) -> T | Awaitable[T]: ...

    def create(self, entity: dict[str, Any]) -> T | Awaitable[T]: ...

    def update(self, entity_id: int, entity: dict[str, Any]) -> T | Awaitable[T]: ...


class CrudListService(Protocol[T]):
    def list_all(self) -> Sequence[T] | Awaitable[Sequence[T]]: ...

    def delete(self, entity_id: int) -> None | Awaitable[None]: ...


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    async def confirm_delete(self, label: str) -> bool: ...


class Navigator(Protocol):
    def navigate_to(self, route: str) -> None: ...


class RecordingNotifier:
    """Notifier that keeps messages in memory; confirmation answer is fixed."""

    def __init__(self, confirm: bool = False) -> None:
        self.confirm = confirm
        self.messages: list[tuple[str, str]] = []
        self.confirmations: list[str] = []

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    async def confirm_delete(self, label: str) -> bool:
        self.confirmations.append(label)
        return self.confirm

    def of(self, category: str) -> list[str]:
        return [m for c, m in self.messages if c == category]


class RecordingNavigator:
    """Records navigation requests; the web layer turns the last one into a redirect."""

    def __init__(self) -> None:
        self.routes: list[str] = []

    def navigate_to(self, route: str) -> None:
        self.routes.append(route)

    @property
    def target(self) -> str | None:
        return self.routes[-1] if self.routes else None
