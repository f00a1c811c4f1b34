"""Uniform success/error envelopes and exception-to-status mapping."""

import logging
import math
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from recipehub.config import get_settings

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes with a dedicated response
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
INSUFFICIENT_PRIVILEGE = "42501"


def send_success(
    data: Any = None, message: str = "Success", status_code: int = status.HTTP_200_OK
) -> JSONResponse:
    """Build a success response.

    Object payloads (dicts and pydantic models) are merged next to ``message``;
    lists and primitives are nested under ``data``.
    """
    body: dict[str, Any] = {"message": message}
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    if isinstance(data, dict):
        body.update(data)
    elif data is not None:
        body["data"] = data
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def send_error(
    message: str,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    details: Any = None,
) -> JSONResponse:
    """Build an error response. Details are withheld in production."""
    body: dict[str, Any] = {"error": message}
    if details is not None and not get_settings().is_production:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def paginated(items: list, page: int, limit: int, total: int, key: str = "data") -> dict:
    """Shape a page of items with its pagination metadata."""
    return {
        key: items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit) if limit else 0,
        },
    }


def _sqlstate(exc: SQLAlchemyError) -> str | None:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def map_database_error(exc: SQLAlchemyError) -> tuple[int, str]:
    """Translate a persistence error into an HTTP status and public message."""
    code = _sqlstate(exc)
    text = str(getattr(exc, "orig", exc))

    if code == UNIQUE_VIOLATION or "UNIQUE constraint failed" in text:
        return status.HTTP_409_CONFLICT, "Resource already exists"
    if code == FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in text:
        return status.HTTP_400_BAD_REQUEST, "Referenced resource not found"
    if code == INSUFFICIENT_PRIVILEGE or "row-level security" in text.lower():
        return status.HTTP_403_FORBIDDEN, "Access denied"
    if isinstance(exc, IntegrityError):
        return status.HTTP_400_BAD_REQUEST, "Invalid data"
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Database operation failed"


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = send_error(str(exc.detail), exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return send_error("Invalid request data", status.HTTP_400_BAD_REQUEST, exc.errors())


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    status_code, message = map_database_error(exc)
    logger.error(f"Database error during {request.method} {request.url.path}: {exc}")
    details = str(exc.orig) if isinstance(exc, DBAPIError) else str(exc)
    return send_error(message, status_code, details)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error through the uniform ``{"error": ...}`` envelope."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
