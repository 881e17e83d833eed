"""
Translation of domain exceptions into HTTP errors.

Every error body has the shape
``{"success": false, "error": code, "message": ..., "details": {...}}``.
"""

import structlog
from fastapi import HTTPException, status
from pydantic import BaseModel

from ..domain.exceptions import (
    AuthenticationException,
    ExternalServiceException,
    PermissionDeniedException,
    ProfileNotFoundException,
    RecetarioException,
    RecipeNotFoundException,
    StorageException,
    ValidationException,
)

logger = structlog.get_logger(__name__)


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    error: str
    message: str
    details: dict = {}


# Checked in order; subclasses before their bases
ERROR_MAPPING = (
    (ValidationException, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (RecipeNotFoundException, status.HTTP_404_NOT_FOUND, "not_found"),
    (ProfileNotFoundException, status.HTTP_404_NOT_FOUND, "not_found"),
    (PermissionDeniedException, status.HTTP_403_FORBIDDEN, "forbidden"),
    (AuthenticationException, status.HTTP_401_UNAUTHORIZED, "authentication_required"),
    (StorageException, status.HTTP_503_SERVICE_UNAVAILABLE, "storage_unavailable"),
    (ExternalServiceException, status.HTTP_503_SERVICE_UNAVAILABLE, "service_unavailable"),
)

ERROR_RESPONSES = {
    400: {"description": "Invalid request", "model": ErrorResponse},
    401: {"description": "Authentication required", "model": ErrorResponse},
    403: {"description": "Not the author or an admin", "model": ErrorResponse},
    404: {"description": "Not found", "model": ErrorResponse},
    503: {"description": "Backend unavailable", "model": ErrorResponse},
}


def to_http_exception(exc: RecetarioException) -> HTTPException:
    """Map a domain exception to an HTTPException with an error body."""
    for exc_type, status_code, code in ERROR_MAPPING:
        if isinstance(exc, exc_type):
            break
    else:
        status_code, code = status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error"

    if status_code >= 500:
        logger.error("Request failed", error=code, message=exc.message)

    return HTTPException(
        status_code=status_code,
        detail={
            "success": False,
            "error": code,
            "message": exc.message,
            "details": exc.details,
        },
        headers={"WWW-Authenticate": "Bearer"} if status_code == 401 else None,
    )
