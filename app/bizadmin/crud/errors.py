from __future__ import annotations


class CrudError(Exception):
    """Base class for errors raised by the CRUD engine and its services."""


class ConfigurationError(CrudError):
    """
    Programming error in a screen's configuration (empty field list, missing
    service, unknown field keys). Never shown to end users.
    """


class ServiceError(CrudError):
    """
    Failure reported by an entity service. The string form is the
    human-readable message forwarded to the notifier as-is.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return self.message


class NotFoundError(ServiceError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status=404)


def error_message(exc: BaseException, fallback: str) -> str:
    """Return the collaborator-supplied message for `exc`, or `fallback` when it has none."""
    msg = str(exc).strip() if exc is not None else ""
    return msg or fallback
