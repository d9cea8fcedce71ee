"""Refund Desk exceptions.

Every error the engine or the service layer raises is an ``AppException`` so
the API renders it as ``{"detail": ..., "errors": [...]}`` with its status.
"""

from typing import Any

from fastapi import HTTPException, status

FieldErrors = list[dict[str, Any]]


class AppException(HTTPException):
    """Base exception carrying an optional list of field-level errors."""

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "Refund evaluation failed",
        errors: FieldErrors | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.errors = errors
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def to_content(self) -> dict[str, Any]:
        content: dict[str, Any] = {"detail": self.detail}
        if self.errors:
            content["errors"] = self.errors
        return content


class ValidationError(AppException):
    """Malformed cancellation context or payment term.

    ``errors`` holds ``{"field": <camelCase name>, "message": ...}`` entries.
    """

    def __init__(self, detail: str = "Invalid cancellation input", errors: FieldErrors | None = None) -> None:
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail, errors=errors)


class NotFoundError(AppException):
    """Unknown payment term (or other looked-up resource)."""

    def __init__(self, resource: str = "Resource", identifier: str | None = None) -> None:
        self.resource = resource
        self.identifier = identifier
        detail = f"{resource} with ID '{identifier}' not found" if identifier else f"{resource} not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
