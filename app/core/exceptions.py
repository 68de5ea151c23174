"""
Base exception classes for application-wide error handling.

Exception Hierarchy:
    BaseApplicationError (base)
    └── NotFoundError - Resource not found

Expected business failures travel as core.services.ServiceResult; these
exceptions are for the unexpected path and are turned into JSON by
api_exception_handler at the HTTP boundary.

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError(
        "Artifact not found",
        error_code="ARTIFACT_NOT_FOUND",
        details={"path": path},
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Artifact not found",
                "error_code": "NOT_FOUND",
                "details": {"path": "files/1700000000000/a.txt"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Use for single-resource lookups where existence is expected
    (a stored artifact that vanished from disk, for instance).
    """

    default_error_code: str = "NOT_FOUND"
    status_code: int = status.HTTP_404_NOT_FOUND


def api_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    DRF exception handler.

    - DRF validation errors become {"error", "error_code": "INVALID_REQUEST",
      "errors"} so every failure shares the service error shape.
    - Other DRF exceptions (authentication, permission, 404) keep their
      default handling.
    - BaseApplicationError subclasses render via to_dict().
    - Anything else becomes an opaque 500 with error_code UNEXPECTED; the
      exception text is only included when DEBUG is on.

    Configured through REST_FRAMEWORK["EXCEPTION_HANDLER"].
    """
    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(exc, ValidationError):
            response.data = {
                "error": "Invalid request",
                "error_code": "INVALID_REQUEST",
                "errors": response.data,
            }
        return response

    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else "unknown"

    if isinstance(exc, BaseApplicationError):
        logger.warning(f"{view_name} failed: {exc}")
        return Response(exc.to_dict(), status=exc.status_code)

    logger.error(f"Unhandled error in {view_name}: {exc}", exc_info=exc)
    body: dict[str, Any] = {
        "error": "Internal server error",
        "error_code": "UNEXPECTED",
    }
    if settings.DEBUG:
        body["details"] = {"exception": str(exc)}
    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
