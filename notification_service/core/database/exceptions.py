"""Data-level errors raised by repositories.

These never leave the service layer: services either translate them into
an ``AppException`` subclass or let them propagate as storage failures.
"""

from __future__ import annotations

from typing import Any


class RepositoryError(Exception):
    """A repository call could not complete."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} [{rendered}]"


class NotFoundError(RepositoryError):
    """No row of ``model_name`` matched ``key``."""

    def __init__(self, model_name: str, key: dict[str, Any]) -> None:
        self.model_name = model_name
        self.key = key
        lookup = " and ".join(f"{name}={value!r}" for name, value in key.items())
        super().__init__(f"No {model_name} row where {lookup}", details={"model": model_name, **key})


__all__ = ["NotFoundError", "RepositoryError"]
