"""
Domain exception hierarchy shared by every app.

Each exception carries a machine-readable ``error_code`` and the HTTP status
the API layer should answer with, so views can surface a domain failure
without knowing which service raised it.

Exception Hierarchy:
    BaseApplicationError (500)
    ├── ValidationError          400  INVALID_ARGUMENT
    ├── FailedPreconditionError  400  FAILED_PRECONDITION
    ├── PermissionDeniedError    403  PERMISSION_DENIED
    ├── NotFoundError            404  NOT_FOUND
    ├── ConflictError            409  ALREADY_EXISTS
    └── ExternalServiceError     500  INTERNAL

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError(
        "Watch party not found",
        details={"watch_party_id": watch_party_id},
    )

    # In a view
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.status_code)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description (safe to show clients)
        error_code: Machine-readable code for client-side handling
        details: Additional error context
        status_code: HTTP status used when the error reaches a view
    """

    default_error_code: str = "INTERNAL"
    status_code: int = 500

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
                "error": "No completed payment found for refund",
                "error_code": "NOT_FOUND",
                "details": {"watch_party_id": "wp-1"}
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
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when caller input is malformed or not allowed.

    Examples are an unknown product type or a checkout price id that is not
    sold to the requested kind of subject.
    """

    default_error_code: str = "INVALID_ARGUMENT"
    status_code: int = 400


class FailedPreconditionError(BaseApplicationError):
    """
    Raised when the request is well formed but the system is not in a state
    that allows it.

    Example:
        if not watch_party.allow_virtual_attendance:
            raise FailedPreconditionError(
                "Virtual attendance not available for this watch party"
            )
    """

    default_error_code: str = "FAILED_PRECONDITION"
    status_code: int = 400


class NotFoundError(BaseApplicationError):
    """Raised when a single resource that is expected to exist is missing."""

    default_error_code: str = "NOT_FOUND"
    status_code: int = 404


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when an authenticated caller is not allowed to act on a resource.

    Note:
        Missing or invalid credentials are handled by DRF authentication
        (HTTP 401). This exception is for authorization only.
    """

    default_error_code: str = "PERMISSION_DENIED"
    status_code: int = 403


class ConflictError(BaseApplicationError):
    """
    Raised when the operation would create a duplicate.

    Example:
        if PaymentRecord.objects.active_for(subject_type, subject_id, user).exists():
            raise ConflictError("Payment already exists for this watch party")
    """

    default_error_code: str = "ALREADY_EXISTS"
    status_code: int = 409


class ExternalServiceError(BaseApplicationError):
    """
    Raised when a third-party call fails.

    The original error text belongs in logs only. The message given to this
    exception is what clients see.
    """

    default_error_code: str = "INTERNAL"
    status_code: int = 500
