"""
Application exceptions and the storage error boundary.

"Not found or not in the required state" is not an exception here: service
functions return False / None / 0 for it so callers can tell "nothing to do"
apart from a rejected input or a failing database.
"""

import functools
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ticket_manager.core.logging import get_logger
from ticket_manager.core.metrics import record_storage_error

logger = get_logger(__name__)


class TicketManagerError(Exception):
    """Base exception carrying an error code and HTTP status."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(TicketManagerError):
    """Bad input shape or range: seat ranges, seat counts, unknown identifiers."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[dict] = None):
        merged = dict(details or {})
        if field:
            merged["field"] = field
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=merged,
        )


class NotFoundError(TicketManagerError):
    """Raised at the HTTP boundary when a service reported nothing to act on."""

    def __init__(self, message: str):
        super().__init__(message=message, code="NOT_FOUND", status_code=404)


class StorageError(TicketManagerError):
    """Connectivity or constraint failure in the persistence layer."""

    def __init__(self, message: str = "Storage operation failed", operation: Optional[str] = None):
        super().__init__(
            message=message,
            code="STORAGE_ERROR",
            status_code=500,
            details={"operation": operation} if operation else {},
        )


class AuthenticationError(TicketManagerError):
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message=message, code="AUTH_ERROR", status_code=401)


class AuthorizationError(TicketManagerError):
    def __init__(self, message: str = "Admin access required"):
        super().__init__(message=message, code="AUTH_FORBIDDEN", status_code=403)


class ExternalServiceError(TicketManagerError):
    def __init__(self, service: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"External service {service} is unavailable",
            code="EXTERNAL_SERVICE_ERROR",
            status_code=503,
            details={"service": service},
        )


def storage_guard(func):
    """
    Translate SQLAlchemy failures raised by an async service function.

    IntegrityError is a constraint violation caused by the caller's input and
    becomes a ValidationError; every other SQLAlchemyError becomes a logged
    StorageError.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except IntegrityError as e:
            logger.warning("constraint_violation", operation=func.__name__, error=str(e.orig))
            raise ValidationError(
                "Constraint violation", details={"operation": func.__name__}
            ) from e
        except SQLAlchemyError as e:
            record_storage_error(func.__name__)
            logger.error("storage_error", operation=func.__name__, error=str(e))
            raise StorageError(operation=func.__name__) from e

    return wrapper
