"""
HTTP error taxonomy.

Every failure leaves the API as `{"error": str, "details"?: str, "code"?: str}`.
Store failures are mapped here from their `StoreErrorKind`; handlers only
special-case the kinds they care about (optional tables, upsert fallback).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .store import StoreError, StoreErrorKind

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    def __init__(
        self,
        status_code: int,
        error: str,
        *,
        details: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=error)
        self.error = error
        self.details = details
        self.code = code

    def body(self) -> dict[str, str]:
        out = {"error": self.error}
        if self.details:
            out["details"] = self.details
        if self.code:
            out["code"] = self.code
        return out


def bad_request(error: str) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, error)


def not_found(error: str) -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, error)


def http_error_for(exc: StoreError, message: str) -> ApiError:
    """
    Translate a store failure on a primary operation into an HTTP error.
    """
    if exc.kind is StoreErrorKind.NOT_CONFIGURED:
        return ApiError(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Store is not configured.",
            details=exc.message,
            code=StoreErrorKind.NOT_CONFIGURED.value,
        )
    if exc.kind is StoreErrorKind.TIMEOUT:
        return ApiError(
            status.HTTP_504_GATEWAY_TIMEOUT,
            "Timed out waiting for the database.",
            details=exc.message,
            code=StoreErrorKind.TIMEOUT.value,
        )
    if exc.kind is StoreErrorKind.UNAVAILABLE:
        return ApiError(
            status.HTTP_502_BAD_GATEWAY,
            "Database is unreachable.",
            details=exc.message,
            code=StoreErrorKind.UNAVAILABLE.value,
        )
    if exc.kind is StoreErrorKind.UNIQUE_VIOLATION:
        return ApiError(
            status.HTTP_409_CONFLICT,
            "Record already exists.",
            details=exc.details or exc.message,
            code=exc.code,
        )
    return ApiError(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        message,
        details=exc.message,
        code=exc.code,
    )


@contextmanager
def store_errors(message: str) -> Iterator[None]:
    """
    Convert any StoreError raised inside the block into an ApiError.
    """
    try:
        yield
    except StoreError as exc:
        logger.error("store_error message=%r kind=%s code=%s detail=%r", message, exc.kind.value, exc.code, exc.message)
        raise http_error_for(exc, message) from exc


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header", "form")]
    return ".".join(parts) or "body"


def validation_message(exc: RequestValidationError) -> tuple[str, str | None]:
    errors = exc.errors()
    if not errors:
        return "Invalid request.", None
    first = errors[0]
    field = _field_name(tuple(first.get("loc") or ()))
    kind = str(first.get("type") or "")
    if kind == "missing" or kind.startswith("string_too_short"):
        return f"{field} is required", None
    return f"{field} is invalid", str(first.get("msg") or "")


async def _api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.body(), headers=exc.headers)


async def _http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    error, details = validation_message(exc)
    content = {"error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


async def _store_error_handler(_: Request, exc: StoreError) -> JSONResponse:
    logger.error("unhandled_store_error kind=%s code=%s detail=%r", exc.kind.value, exc.code, exc.message)
    api_error = http_error_for(exc, "Store request failed.")
    return JSONResponse(status_code=api_error.status_code, content=api_error.body())


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StoreError, _store_error_handler)
