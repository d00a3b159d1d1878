"""
Response envelope and error handling shared by the API routes.

Success: {"success": true, "data": ..., "message": ...}
Failure: {"success": false, "message": ..., "error": ...}
"""
import functools
import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class APIError(Exception):
    """An error that maps directly onto an HTTP response."""

    def __init__(self, status_code: int, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error = error


def success_response(data: Any, message: str, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": True, "data": data, "message": message}),
    )


def error_response(message: str, status_code: int, error: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error": error},
    )


def handle_failures(message: str):
    """Turn anything unexpected raised by a route into a logged, generic 500."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (APIError, HTTPException):
                raise
            except Exception:
                logger.exception("%s", message)
                raise APIError(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

        return wrapper

    return decorator


def register_exception_handlers(app: FastAPI) -> None:
    # imported here, validation depends on this module
    from validation import format_validation_errors

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        return error_response(exc.message, exc.status_code, exc.error)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(str(exc.detail), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        summary = format_validation_errors(exc.errors(), strip_source=True)
        return error_response(summary, status.HTTP_400_BAD_REQUEST, summary)
