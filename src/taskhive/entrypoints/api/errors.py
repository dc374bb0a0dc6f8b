"""Exception handlers mapping domain errors to the response envelope."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskhive.core.exceptions import TaskhiveError, UnauthorizedError

logger = structlog.get_logger()

INTERNAL_ERROR_MESSAGE = "Internal server error"


def error_response(
    status_code: int,
    message: str,
    errors: list[dict[str, Any]] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build an error envelope."""
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _field_errors(errors: Any) -> list[dict[str, Any]]:
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in errors
    ]


async def handle_taskhive_error(request: Request, exc: Exception) -> JSONResponse:
    """Map a TaskhiveError to its status code."""
    assert isinstance(exc, TaskhiveError)
    if exc.status_code >= 500:
        logger.exception("request_failed", path=request.url.path, method=request.method)
        return error_response(exc.status_code, INTERNAL_ERROR_MESSAGE)

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return error_response(exc.status_code, exc.message, headers=headers)


async def handle_request_validation(request: Request, exc: Exception) -> JSONResponse:
    """Request-shape errors become 400."""
    assert isinstance(exc, (RequestValidationError, PydanticValidationError))
    errors = _field_errors(exc.errors())
    logger.info("request_validation_failed", path=request.url.path, errors=len(errors))
    return error_response(400, "Validation failed", errors=errors)


async def handle_http_exception(request: Request, exc: Exception) -> JSONResponse:
    """Framework HTTP errors (unknown route, wrong method) in envelope form."""
    assert isinstance(exc, StarletteHTTPException)
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is a 500; the traceback is logged, never returned."""
    logger.exception("unhandled_exception", path=request.url.path, method=request.method)
    return error_response(500, INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    """Install all exception handlers on an app."""
    app.add_exception_handler(TaskhiveError, handle_taskhive_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(PydanticValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)
