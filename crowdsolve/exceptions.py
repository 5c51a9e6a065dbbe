"""
Application exception classes.

Every failure of the consistency core is one of a small, stable taxonomy so
the presentation layer can render a message without inspecting internal
state. Each kind carries an HTTP status and a machine-readable error code.
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class AppException(HTTPException):
    """
    Base exception class for all application exceptions.
    Provides consistent error response format.
    """

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(status_code=status_code, detail=message, headers=headers)


class NotFoundException(AppException):
    """Raised when a referenced problem, solution or user does not exist."""

    def __init__(self, resource: str = "Resource", resource_id: Any = None):
        details = {"resource": resource}
        if resource_id is not None:
            details["id"] = resource_id
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="not_found",
            message=f"{resource} not found",
            details=details,
        )


class ValidationException(AppException):
    """Raised when an input field is malformed or out of range."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            status_code=422,
            error_code="validation_error",
            message=message,
            details={"field": field} if field else None,
        )


class ForbiddenException(AppException):
    """Raised when the acting principal may not perform the action."""

    def __init__(self, message: str = "Not authorized to perform this action"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="forbidden",
            message=message,
        )


class PreconditionFailedException(AppException):
    """
    Raised when a conditional write did not apply because the stored state
    changed underneath it. Signals a detected race; safe to retry.
    """

    def __init__(self, message: str = "Resource was modified concurrently, please retry"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="precondition_failed",
            message=message,
        )


class UnauthenticatedException(AppException):
    """Raised when a request carries no verified principal."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="unauthenticated",
            message=message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AlreadyExistsException(AppException):
    """Raised when a unique user attribute is already taken."""

    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="already_exists",
            message=message,
        )
