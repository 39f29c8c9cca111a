"""RFC 7807 Problem Details exception handlers.

Every error body carries the standard members plus ``reason``, the
machine-readable code clients branch on. Guard rejections add their
details (``missing_permissions``, ``minimum_role``) as extension members.

See: https://tools.ietf.org/html/rfc7807
"""

from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from mirath.config import settings
from mirath.core.errors.exceptions import AppException


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()


class FieldError(BaseModel):
    """One invalid request field."""

    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """RFC 7807 body with a ``reason`` member.

    Parameterised reasons such as ``permission_required:will:generate``
    share the ``type`` URI and ``title`` of their prefix.
    """

    type: str
    title: str
    status: int
    detail: str
    reason: str
    instance: str | None = None
    errors: list[FieldError] | None = None
    trace_id: str | None = None

    model_config = {"extra": "allow"}

    @classmethod
    def build(
        cls,
        request: Request,
        status_code: int,
        reason: str,
        detail: str,
        **extra: Any,
    ) -> "ProblemDetail":
        prefix = reason.split(":", 1)[0]
        return cls(
            type=f"{settings.api_docs_base_url}/errors/{prefix}",
            title=prefix.replace("_", " ").title(),
            status=status_code,
            detail=detail,
            reason=reason,
            instance=request.url.path,
            trace_id=getattr(request.state, "trace_id", None),
            **extra,
        )

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status,
            content=self.model_dump(mode="json", exclude_none=True),
        )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning(
        "app_exception",
        reason=exc.error_code,
        status_code=exc.status_code,
        path=request.url.path,
    )
    # Standard members win over same-named detail keys
    extra = {k: v for k, v in exc.details.items() if k not in ProblemDetail.model_fields}
    return ProblemDetail.build(
        request, exc.status_code, exc.error_code, exc.message, **extra
    ).to_response()


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures with one entry per field."""
    errors = [
        FieldError(
            field=".".join(str(part) for part in error.get("loc", ()) if part != "body")
            or "unknown",
            message=error.get("msg", "Invalid value"),
            type=error.get("type"),
        )
        for error in exc.errors()
    ]
    logger.warning("validation_error", path=request.url.path, error_count=len(errors))
    return ProblemDetail.build(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "Request validation failed",
        errors=errors,
    ).to_response()


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the failure and answer 500 without exposing its message."""
    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return ProblemDetail.build(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
    ).to_response()


def register_exception_handlers(app: FastAPI) -> None:
    """Register the Problem Details handlers on ``app``."""
    app.add_exception_handler(AppException, cast("ExceptionHandler", app_exception_handler))
    app.add_exception_handler(
        RequestValidationError, cast("ExceptionHandler", validation_exception_handler)
    )
    app.add_exception_handler(Exception, cast("ExceptionHandler", generic_exception_handler))
