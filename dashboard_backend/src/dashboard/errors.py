from __future__ import annotations

from typing import Any, Optional


# PUBLIC_INTERFACE
class DashboardError(Exception):
    """
    Base class for errors reported to the caller.

    Each subclass carries the HTTP status it maps to so the exception handler in
    main can render a consistent JSON envelope:
        {"error": <class name>, "message": <text>, "detail": <optional>}
    """

    status_code: int = 500

    def __init__(self, message: str, detail: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.name, "message": self.message}
        if self.detail is not None:
            body["detail"] = self.detail
        return body


class ValidationError(DashboardError):
    """Malformed or missing input. Nothing was mutated."""

    status_code = 400


class NotFound(DashboardError):
    """The requested id is not in the collection."""

    status_code = 404


class InvalidDuration(DashboardError):
    """A countdown was started with zero configured time."""

    status_code = 400


class TimerStateError(DashboardError):
    """A timer command is not legal in the instrument's current state."""

    status_code = 409


class StorageError(DashboardError):
    """The persisted medium could not be written."""

    status_code = 500
