"""RFC 7807 Problem Details exception handlers.

Every error response is a problem document. Besides the standard members
it carries ``code`` (the machine-readable error code), ``trace_id`` (the
request id) and, for requests that resolved a tenant, ``tenant``.

See: https://tools.ietf.org/html/rfc7807
"""

from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from shopgrid.config import settings
from shopgrid.core.errors.exceptions import AppException


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()

PROBLEM_MEDIA_TYPE = "application/problem+json"


class FieldError(BaseModel):
    """Represents a single field validation error."""

    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details response schema.

    Attributes:
        type: URI reference identifying the problem type
        title: Short human-readable summary
        status: HTTP status code
        detail: Human-readable explanation specific to this occurrence
        code: Machine-readable error code
        instance: Request path
        errors: Field-level errors (validation failures only)
        trace_id: Request id for correlating logs
        tenant: Slug of the tenant the request resolved to, if any
    """

    type: str
    title: str
    status: int
    detail: str
    code: str
    instance: str | None = None
    errors: list[FieldError] | None = None
    trace_id: str | None = None
    tenant: str | None = None

    model_config = {"extra": "allow"}


def _request_tenant(request: Request) -> str | None:
    context = getattr(request.state, "request_context", None)
    if context is None or context.tenant is None:
        return None
    return context.tenant.slug


def problem_response(
    request: Request,
    status_code: int,
    error_code: str,
    detail: str,
    *,
    title: str | None = None,
    errors: list[FieldError] | None = None,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build a problem document response for the current request.

    Args:
        request: The request that failed
        status_code: HTTP status code
        error_code: Machine-readable error code; also names the type URI
        detail: Client-facing message
        title: Summary; derived from the error code when omitted
        errors: Field-level validation errors
        extra: Extension members; never override the standard members

    Returns:
        JSON response with the ``application/problem+json`` media type
    """
    content: dict[str, Any] = ProblemDetail(
        type=f"{settings.api_docs_base_url}/errors/{error_code}",
        title=title or error_code.replace("_", " ").title(),
        status=status_code,
        detail=detail,
        code=error_code,
        instance=request.url.path,
        errors=errors,
        trace_id=getattr(request.state, "trace_id", None),
        tenant=_request_tenant(request),
    ).model_dump(exclude_none=True)

    for key, value in (extra or {}).items():
        content.setdefault(key, value)

    return JSONResponse(
        status_code=status_code,
        content=content,
        media_type=PROBLEM_MEDIA_TYPE,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render an ``AppException`` as a problem document.

    Server-side failures keep their chained cause in the log only.
    """
    log_data: dict[str, Any] = {
        "error_code": exc.error_code,
        "status_code": exc.status_code,
        "path": request.url.path,
        "details": exc.details,
    }
    if exc.status_code >= 500:
        cause = exc.__cause__
        logger.error(
            "app_exception",
            message=exc.message,
            cause=repr(cause) if cause is not None else None,
            **log_data,
        )
    else:
        logger.warning("app_exception", message=exc.message, **log_data)

    return problem_response(
        request,
        exc.status_code,
        exc.error_code,
        exc.message,
        extra=exc.details,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures with one entry per field."""
    errors = [
        FieldError(
            # Drop the "body"/"query" location prefix from the field path
            field=".".join(str(part) for part in error.get("loc", ())[1:]) or "unknown",
            message=error.get("msg", "Invalid value"),
            type=error.get("type"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "validation_error",
        path=request.url.path,
        fields=[e.field for e in errors],
    )

    return problem_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "Request validation failed",
        title="Validation Error",
        errors=errors,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render unexpected exceptions as a bare 500.

    The exception is logged with its traceback and never shown to clients.
    """
    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        error_type=type(exc).__name__,
    )

    return problem_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
        title="Internal Server Error",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Call this function during app initialization:

        app = FastAPI()
        register_exception_handlers(app)
    """
    app.add_exception_handler(
        AppException, cast("ExceptionHandler", app_exception_handler)
    )
    app.add_exception_handler(
        RequestValidationError, cast("ExceptionHandler", validation_exception_handler)
    )
    app.add_exception_handler(Exception, generic_exception_handler)
