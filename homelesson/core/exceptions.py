"""
Error taxonomy and global exception handlers.

Services raise the ``AppError`` subclasses below; the handlers turn them
(and anything unexpected) into JSON responses without leaking stack traces.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class AppError(Exception):
    status_code = 500
    detail = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class NotFoundError(AppError):
    status_code = 404
    detail = "Not found"


class ValidationFailed(AppError):
    """Malformed or out-of-range input, reported with per-field detail."""

    status_code = 400
    detail = "Validation failed"

    def __init__(
        self, detail: str | None = None, errors: list[dict[str, Any]] | None = None
    ) -> None:
        super().__init__(detail)
        self.errors = errors or []


class TransactionFailure(AppError):
    """A multi-statement write was rolled back. Callers only see a generic 500."""

    status_code = 500
    detail = "Internal server error"


# ── Handlers ────────────────────────────────────────────────────────
def _error_body(detail: Any, **extra: Any) -> dict[str, Any]:
    return {"detail": detail, "success": False, **extra}


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    detail = exc.detail
    if exc.status_code == 404 and detail == "Not Found":
        detail = f"Route {request.url.path} not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(detail),
        headers=getattr(exc, "headers", None),
    )


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


async def _request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": _field_name(tuple(err.get("loc", ()))), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=_error_body("Validation failed", errors=errors),
    )


async def _app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, TransactionFailure):
        logger.error("Transaction failure: %s", exc, exc_info=exc.__cause__ or exc)
        return JSONResponse(
            status_code=500, content=_error_body("Internal server error")
        )
    if isinstance(exc, ValidationFailed):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail, errors=exc.errors),
        )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.detail))


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content=_error_body("Database constraint violation"),
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_error_body("Internal server error"),
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content=_error_body("Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(AppError, _app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
