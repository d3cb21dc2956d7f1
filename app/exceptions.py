"""
Domain errors raised by the services layer.
app.main turns them into the standard {success, message, error} response.
"""
from typing import Any, Optional


class AppError(Exception):
    status_code = 500
    code = "SERVER_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    """Malformed or missing input"""
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    """A referenced order, driver or notification does not exist"""
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    """
    State precondition failed, e.g. the order was claimed by another driver.
    Expected under concurrent polling; clients retry against the next order.
    """
    status_code = 409
    code = "CONFLICT"


class InternalError(AppError):
    """Unexpected persistence failure"""
    status_code = 500
    code = "INTERNAL_ERROR"
