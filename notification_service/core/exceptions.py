"""Application exception hierarchy (RFC 7807 problem details)."""

from __future__ import annotations

from typing import Any


_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


class AppException(Exception):
    """Error that renders as an RFC 7807 problem.

    ``type`` is a short slug such as ``notification-not-found``; ``extra``
    keys are merged into the problem body next to the standard members.
    Subclasses fix the status code and title.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or _TITLES.get(status_code, "Error")
        self.instance = instance
        self.extra = extra or {}

    def to_problem(self) -> dict[str, Any]:
        """Render as an RFC 7807 problem details body."""
        problem: dict[str, Any] = {
            "type": self.type,
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
        }
        if self.instance:
            problem["instance"] = self.instance
        problem.update(self.extra)
        return problem


class NotFoundException(AppException):
    """Raised when a resource is not found.

    Example:
        raise NotFoundException(
            detail="Notification 0190... not found",
            type="notification-not-found",
            extra={"notification_id": "0190..."},
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "not-found",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=404,
            detail=detail,
            type=type,
            title="Not Found",
            instance=instance,
            extra=extra,
        )


class ValidationException(AppException):
    """Raised for validation errors.

    Example:
        raise ValidationException(
            detail="Invalid context: chat",
            type="notification-validation-error",
            extra={"errors": ["Invalid context: chat"]},
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "validation-error",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=422,
            detail=detail,
            type=type,
            title="Validation Error",
            instance=instance,
            extra=extra,
        )


class ServiceUnavailableException(AppException):
    """Raised when a downstream service cannot serve the request."""

    def __init__(
        self,
        detail: str,
        type: str = "service-unavailable",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=503,
            detail=detail,
            type=type,
            title="Service Unavailable",
            instance=instance,
            extra=extra,
        )


__all__ = [
    "AppException",
    "NotFoundException",
    "ServiceUnavailableException",
    "ValidationException",
]
