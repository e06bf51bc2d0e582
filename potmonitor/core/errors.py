from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A persistence call failed."""


class StoreReadError(StoreError):
    """A query failed; distinct from an empty result."""


class StoreWriteError(StoreError):
    """A mutation failed and was rolled back."""


def _error_response(request: Request, status_code: int, code: str, message: str, headers=None) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "request_id": request_id,
            }
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error_response(request, 422, "validation_error", "Invalid request payload.")

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return _error_response(request, exc.status_code, "http_error", str(exc.detail), headers=exc.headers)

    @app.exception_handler(StoreReadError)
    async def store_read_exception_handler(request: Request, exc: StoreReadError):
        logger.error("Store read failed: %s", exc)
        return _error_response(request, 503, "read_failed", "Could not read data. Retry later.")

    @app.exception_handler(StoreWriteError)
    async def store_write_exception_handler(request: Request, exc: StoreWriteError):
        logger.error("Store write failed: %s", exc)
        return _error_response(request, 503, "write_failed", "Could not save changes. Retry later.")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled server error: %s", exc)
        return _error_response(
            request,
            500,
            "internal_server_error",
            "Unexpected server error. Contact support with request_id.",
        )
