"""Error handling module with RFC 7807 Problem Details."""

from shopgrid.core.errors.exceptions import (
    AppException,
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    ProvisioningFailedError,
    TenantRequiredError,
    TenantUnavailableError,
    UnauthorizedError,
)
from shopgrid.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    app_exception_handler,
    generic_exception_handler,
    problem_response,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "ConflictError",
    # Handlers
    "FieldError",
    "ForbiddenError",
    "InvalidArgumentError",
    "NotFoundError",
    "ProblemDetail",
    "ProvisioningFailedError",
    "TenantRequiredError",
    "TenantUnavailableError",
    "UnauthorizedError",
    "app_exception_handler",
    "generic_exception_handler",
    "problem_response",
    "register_exception_handlers",
]
