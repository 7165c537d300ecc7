"""
Global exception handlers. Every error response body is
``{"message": "..."}``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

UNION_MEMBER_TAGS = frozenset({"int", "float", "str", "bool", "none"})


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_http_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def format_validation_errors(exc: RequestValidationError) -> str:
    """
    Join pydantic errors into ``field: reason`` clauses, one per field.

    Union fields report one error per member (``wholesalePrice.int``,
    ``wholesalePrice.float``); the member tags are dropped and only the
    first reason for a field is kept.
    """
    clauses: dict[str, str] = {}
    for error in exc.errors():
        loc = [
            str(item)
            for item in error.get("loc", ())
            if item != "body" and item not in UNION_MEMBER_TAGS
        ]
        field = ".".join(loc)
        clauses.setdefault(field, error.get("msg", "invalid value"))
    parts = [f"{field}: {msg}" if field else msg for field, msg in clauses.items()]
    return "Validation failed: " + "; ".join(parts)


def _register_http_error_handler(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        message = format_validation_errors(exc)
        logger.warning("Validation error on %s: %s", request.url.path, message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": message},
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all, never leaks internal details."""
        logger.error(
            "Unhandled exception on %s: %s", request.url.path, exc, exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "An unexpected error occurred"},
        )
