"""Global exception handlers for FastAPI.

Every error response has the shape {"error": {"code", "message", "details?"}}.
Internal server errors are logged but never exposed to clients.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.exceptions import NewsletterAPIException, NotFoundError
from newsletter.generation.errors import GenerationNotFoundError, VoiceProfileNotFoundError
from newsletter.logging import get_logger
from newsletter.store import RecordNotFoundError

logger = get_logger(__name__)

STATUS_CODE_MAP = {
    400: "BAD_REQUEST",
    401: "AUTHENTICATION_FAILED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    500: "INTERNAL_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


def create_error_response(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create the standard error response body."""
    error = {
        "code": code,
        "message": message,
    }
    if details:
        error["details"] = details
    return {"error": error}


async def api_exception_handler(
    request: Request, exc: NewsletterAPIException
) -> JSONResponse:
    """Handle NewsletterAPIException and subclasses."""
    logger.warning(
        "api_error",
        error_code=exc.error_code,
        status_code=exc.status_code,
        path=request.url.path,
        error=exc.message,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.to_dict()},
    )


async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    """Collapse core not-found errors to a uniform 404.

    Absence and ownership mismatch are reported identically.
    """
    return await api_exception_handler(request, NotFoundError())


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert FastAPI's request validation errors to the standard format."""
    errors = []
    for error in exc.errors():
        loc = ".".join(str(x) for x in error.get("loc", []))
        errors.append(
            {
                "field": loc,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "value_error"),
            }
        )

    logger.info("request_validation_failed", path=request.url.path, error_count=len(errors))

    return JSONResponse(
        status_code=400,
        content=create_error_response(
            code="VALIDATION_ERROR",
            message="Request validation failed",
            details={"errors": errors},
        ),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Convert Starlette/FastAPI HTTPExceptions to the standard format."""
    error_code = STATUS_CODE_MAP.get(exc.status_code, "ERROR")
    message = str(exc.detail) if exc.detail else "An error occurred"

    log = logger.error if exc.status_code >= 500 else logger.info
    log("http_error", status_code=exc.status_code, path=request.url.path, error=message)

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(code=error_code, message=message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback and return a generic message."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content=create_error_response(
            code="INTERNAL_ERROR",
            message="An unexpected error occurred",
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers with the FastAPI app."""
    app.add_exception_handler(NewsletterAPIException, api_exception_handler)
    app.add_exception_handler(GenerationNotFoundError, not_found_handler)
    app.add_exception_handler(VoiceProfileNotFoundError, not_found_handler)
    app.add_exception_handler(RecordNotFoundError, not_found_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
