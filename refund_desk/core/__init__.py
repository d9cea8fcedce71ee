"""Core utilities: exceptions, middleware and logging."""

from refund_desk.core.exceptions import (
    AppException,
    NotFoundError,
    ValidationError,
)
from refund_desk.core.logging import configure_logging

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "configure_logging",
]
