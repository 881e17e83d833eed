"""
Custom exceptions for the recetario domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, Supabase, etc.).
"""

from typing import Any, Optional


class RecetarioException(Exception):
    """Base exception for all recetario service errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(RecetarioException):
    """Raised when input validation fails."""

    def __init__(self, field: str, value: Any, reason: str):
        message = f"Validation failed for {field}: {reason}"
        super().__init__(
            message=message,
            details={"field": field, "value": str(value), "reason": reason},
        )


class RecipeNotFoundException(RecetarioException):
    """Raised when a recipe does not exist."""

    def __init__(self, recipe_id: str):
        super().__init__(
            message=f"Recipe not found: {recipe_id}", details={"recipe_id": recipe_id}
        )


class ProfileNotFoundException(RecetarioException):
    """Raised when a profile does not exist."""

    def __init__(self, user_id: str):
        super().__init__(
            message=f"Profile not found: {user_id}", details={"user_id": user_id}
        )


class PermissionDeniedException(RecetarioException):
    """Raised when the caller is neither the author nor an admin."""

    def __init__(self, action: str, resource_id: Optional[str] = None):
        message = f"Only the author or an admin can {action} this recipe"
        super().__init__(
            message=message, details={"action": action, "resource_id": resource_id}
        )


class AuthenticationException(RecetarioException):
    """Raised when a request needs a valid session and has none."""

    def __init__(self, reason: str = "Authentication required"):
        super().__init__(message=reason, details={"reason": reason})


class ExternalServiceException(RecetarioException):
    """Raised when the backend service fails."""

    def __init__(self, service: str, reason: Optional[str] = None):
        message = f"External service '{service}' unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"service": service, "reason": reason}
        )


class StorageException(RecetarioException):
    """Raised when a file upload fails."""

    def __init__(self, bucket: str, reason: Optional[str] = None):
        message = f"Upload to bucket '{bucket}' failed"
        if reason:
            message += f": {reason}"
        super().__init__(message=message, details={"bucket": bucket, "reason": reason})
