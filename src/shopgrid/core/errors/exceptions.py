"""Domain exceptions for the application.

These exceptions represent business-logic errors and are automatically
converted to RFC 7807 Problem Details responses by the exception handlers.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a requested resource is not found.

    Example:
        raise NotFoundError("Tenant not found", resource="tenant", resource_id=slug)
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when there's a conflict with existing data.

    Example:
        raise ConflictError("Slug already registered", details={"slug": slug})
    """

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class InvalidArgumentError(AppException):
    """Raised when an argument is malformed before any state change.

    Example:
        raise InvalidArgumentError("Invalid slug", details={"slug": slug})
    """

    message = "Invalid argument"
    error_code = "invalid_argument"
    status_code = 400


class UnauthorizedError(AppException):
    """Raised when authentication is required but not provided or invalid."""

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401


class ForbiddenError(AppException):
    """Raised when the caller may not access a resource."""

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class TenantRequiredError(ForbiddenError):
    """Raised when an endpoint needs a tenant but the request resolved none."""

    message = "This endpoint requires a tenant context (subdomain or tenant header)"
    error_code = "tenant_required"


class TenantUnavailableError(AppException):
    """Raised when a query cannot be narrowed to its tenant partition.

    Covers deleted tenants, missing or corrupt partitions and pool
    exhaustion while opening the scoped transaction.
    """

    message = "Tenant is unavailable"
    error_code = "tenant_unavailable"
    status_code = 404


class ProvisioningFailedError(AppException):
    """Raised when a tenant partition could not be created.

    The directory row has already been removed when this is raised. The
    underlying error is chained as ``__cause__`` and kept out of the
    client-facing message.

    Example:
        raise ProvisioningFailedError(details={"slug": slug}) from exc
    """

    message = "Tenant provisioning failed"
    error_code = "provisioning_failed"
    status_code = 500
