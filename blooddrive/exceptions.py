"""
Centralized exception hierarchy for BloodDrive.

Every error carries a user-facing message so request handlers can surface
it directly; the HTTP layer maps each type to a status code.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Base Exception
# =============================================================================


class BloodDriveError(RuntimeError):
    """
    Base exception for all BloodDrive errors.

    Attributes:
        message: Human-readable error message.
        detail: Additional error details (optional).
        error_code: Machine-readable error code.
        request_id: Unique identifier for the request (optional).
    """

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        error_code: str | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.error_code = error_code or self._default_error_code()
        self.request_id = request_id or str(uuid.uuid4())

    def _default_error_code(self) -> str:
        return f"blooddrive_{self.__class__.__name__.lower()}"

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        if self.request_id:
            result["request_id"] = self.request_id
        return result

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message

    def log(self, level: int = logging.ERROR) -> None:
        """Log the exception with structured data."""
        logger.log(
            level,
            self.message,
            extra={
                "error_code": self.error_code,
                "detail": self.detail,
                "request_id": self.request_id,
                "exception_type": self.__class__.__name__,
            },
        )


# =============================================================================
# Input Validation Errors
# =============================================================================


class ValidationError(BloodDriveError):
    """
    Raised when form input fails validation.

    HTTP Status: 400 Bad Request
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        detail: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.field = field
        super().__init__(
            message,
            detail=detail,
            error_code="validation_error",
            request_id=request_id,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class InvalidValidationCodeError(ValidationError):
    """Raised when a validation code does not match the (user, campaign) pair."""

    def __init__(self, *, request_id: str | None = None) -> None:
        super().__init__(
            "Invalid code. Check it and try again.",
            field="code",
            request_id=request_id,
        )
        self.error_code = "invalid_validation_code"


# =============================================================================
# Not Found Errors
# =============================================================================


class NotFoundError(BloodDriveError):
    """
    Raised when a requested resource is not found.

    HTTP Status: 404 Not Found
    """

    def __init__(
        self,
        message: str,
        *,
        resource_type: str | None = None,
        resource_id: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        detail = None
        if resource_type and resource_id:
            detail = f"{resource_type} with ID {resource_id!r} not found"
        super().__init__(
            message,
            detail=detail,
            error_code="not_found",
            request_id=request_id,
        )


class CampaignNotFoundError(NotFoundError):
    def __init__(self, campaign_id: str, *, request_id: str | None = None) -> None:
        super().__init__(
            "The campaign does not exist or was deleted",
            resource_type="Campaign",
            resource_id=str(campaign_id),
            request_id=request_id,
        )
        self.campaign_id = campaign_id


class LocationNotFoundError(NotFoundError):
    def __init__(self, location_id: str, *, request_id: str | None = None) -> None:
        super().__init__(
            "The location does not exist or was deleted",
            resource_type="Location",
            resource_id=str(location_id),
            request_id=request_id,
        )
        self.location_id = location_id


class RegistrationNotFoundError(NotFoundError):
    def __init__(self, registration_id: str, *, request_id: str | None = None) -> None:
        super().__init__(
            "Registration not found",
            resource_type="Registration",
            resource_id=str(registration_id),
            request_id=request_id,
        )
        self.registration_id = registration_id


class ProfileNotFoundError(NotFoundError):
    def __init__(self, user_id: str, *, request_id: str | None = None) -> None:
        super().__init__(
            "User profile not found",
            resource_type="Profile",
            resource_id=str(user_id),
            request_id=request_id,
        )
        self.user_id = user_id


# =============================================================================
# Access Errors
# =============================================================================


class AuthenticationRequiredError(BloodDriveError):
    """
    Raised when a route needs a signed-in user and there is none.

    HTTP Status: 401 Unauthorized
    """

    def __init__(self, message: str = "You must sign in to continue", *, request_id: str | None = None) -> None:
        super().__init__(message, error_code="authentication_required", request_id=request_id)


class PermissionDeniedError(BloodDriveError):
    """
    HTTP Status: 403 Forbidden
    """

    def __init__(
        self,
        message: str = "You do not have access to this resource",
        *,
        error_code: str = "permission_denied",
        request_id: str | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code, request_id=request_id)


class AdminRequiredError(PermissionDeniedError):
    def __init__(self, *, request_id: str | None = None) -> None:
        super().__init__("Administrator access required", error_code="admin_required", request_id=request_id)


class ProfileIncompleteError(PermissionDeniedError):
    """Raised when a signed-in user has not completed their donor profile yet."""

    def __init__(self, *, request_id: str | None = None) -> None:
        super().__init__(
            "Complete your profile before continuing",
            error_code="profile_incomplete",
            request_id=request_id,
        )


# =============================================================================
# State Conflicts
# =============================================================================


class ConflictError(BloodDriveError):
    """
    Raised when an operation clashes with the current state of a record.

    HTTP Status: 409 Conflict
    """

    def __init__(self, message: str, *, error_code: str = "conflict", request_id: str | None = None) -> None:
        super().__init__(message, error_code=error_code, request_id=request_id)


class AlreadyValidatedError(ConflictError):
    def __init__(self, *, request_id: str | None = None) -> None:
        super().__init__(
            "This participation was already validated",
            error_code="already_validated",
            request_id=request_id,
        )


class AlreadyRegisteredError(ConflictError):
    def __init__(self, *, request_id: str | None = None) -> None:
        super().__init__(
            "You are already registered for this campaign",
            error_code="already_registered",
            request_id=request_id,
        )


class RegistrationCancelledError(ConflictError):
    def __init__(self, *, request_id: str | None = None) -> None:
        super().__init__(
            "This registration was cancelled",
            error_code="registration_cancelled",
            request_id=request_id,
        )


class ProfileAlreadyCompleteError(ConflictError):
    def __init__(self, *, request_id: str | None = None) -> None:
        super().__init__(
            "Your profile is already complete",
            error_code="profile_already_complete",
            request_id=request_id,
        )


# =============================================================================
# Business Rule Errors
# =============================================================================


class NotEligibleError(BloodDriveError):
    """
    Raised when the donor's cooldown has not elapsed by the campaign start.

    HTTP Status: 422 Unprocessable Entity
    """

    def __init__(self, next_date: str, *, request_id: str | None = None) -> None:
        super().__init__(
            "You are not eligible to donate yet",
            detail=f"Next eligible date: {next_date}",
            error_code="not_eligible",
            request_id=request_id,
        )
        self.next_date = next_date


class CampaignClosedError(BloodDriveError):
    """HTTP Status: 422 Unprocessable Entity"""

    def __init__(self, status: str, *, request_id: str | None = None) -> None:
        super().__init__(
            "This campaign is not accepting registrations",
            detail=f"Campaign status: {status}",
            error_code="campaign_closed",
            request_id=request_id,
        )
        self.status = status


# =============================================================================
# Backend Errors
# =============================================================================


class BackendError(BloodDriveError):
    """
    Raised when a call to the hosted backend fails.

    The message is the user-facing text for the failed operation. The
    backend's own error text is logged where the call fails and is not
    carried here. ``backend_code`` keeps the Postgres error code (for
    example ``23505``) so callers can map known violations.

    HTTP Status: 502 Bad Gateway
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        backend_code: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.operation = operation
        self.backend_code = backend_code
        super().__init__(
            message,
            error_code="backend_error",
            request_id=request_id,
        )


class AuthBackendError(BackendError):
    """
    Raised when the auth service rejects a request (bad credentials,
    duplicate email, expired code). Its message is shown as-is.

    HTTP Status: 400 Bad Request
    """

    def __init__(self, message: str, *, operation: str | None = None, request_id: str | None = None) -> None:
        super().__init__(message, operation=operation, request_id=request_id)
        self.error_code = "auth_error"


# =============================================================================
# Error Code to HTTP Status Mapping
# =============================================================================


def exception_to_http_status(exc: Exception) -> int:
    """
    Map an exception to its HTTP status code.

    Args:
        exc: The exception to map.

    Returns:
        HTTP status code.
    """
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, AuthBackendError):
        return 400
    if isinstance(exc, AuthenticationRequiredError):
        return 401
    if isinstance(exc, PermissionDeniedError):
        return 403
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, (NotEligibleError, CampaignClosedError)):
        return 422
    if isinstance(exc, BackendError):
        return 502
    return 500
