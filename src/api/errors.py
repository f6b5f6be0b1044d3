"""
Exception handlers translating domain errors into JSON error responses.

Every error body has an `error` message; validation failures also carry `details`,
a list of field-level issues. Internal errors never leak exception text.
"""
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.exceptions import ConflictError, InternalError, NotFoundError

logger = logging.getLogger(__name__)

# Request locations that add no information to a field path
_LOCATION_PREFIXES = {"body", "query", "path"}


def format_validation_details(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic errors into {field, message, type} entries."""
    details = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        details.append(
            {
                "field": ".".join(loc),
                "message": err.get("msg", "Invalid value"),
                "type": err.get("type", "value_error"),
            },
        )
    return details


def _error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def validation_exception_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Handle request validation failures as 400 with field details."""
    message = "Invalid query parameters" if request.method == "GET" else "Invalid request body"
    return _error_response(400, message, details=format_validation_details(exc.errors()))


async def not_found_exception_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle missing entities."""
    return _error_response(404, str(exc))


async def conflict_exception_handler(_request: Request, exc: ConflictError) -> JSONResponse:
    """Handle uniqueness conflicts."""
    return _error_response(409, str(exc))


async def internal_exception_handler(_request: Request, exc: InternalError) -> JSONResponse:
    """Handle translated storage failures (already logged with traceback)."""
    return _error_response(500, str(exc))


async def http_exception_handler(
    _request: Request, exc: StarletteHTTPException,
) -> JSONResponse:
    """Keep framework errors (unknown route, wrong method) in the same shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, _exc: Exception) -> JSONResponse:
    """Last line of defense: log and return a generic 500."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all handlers to the application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(NotFoundError, not_found_exception_handler)
    app.add_exception_handler(ConflictError, conflict_exception_handler)
    app.add_exception_handler(InternalError, internal_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
