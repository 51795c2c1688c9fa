# docvault/core/errors.py
"""
Error taxonomy and the FastAPI handlers that turn it into the uniform
``{"success": false, "message": ...}`` envelope.

Messages carried by these exceptions are safe to show to clients; details
for operators go to the log only.
"""
import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Fatal misconfiguration detected while building the application."""


class AppError(Exception):
    status: HTTPStatus = HTTPStatus.BAD_REQUEST
    message: str = "Bad request"

    def __init__(self, message: str = None, *, status: HTTPStatus = None) -> None:
        self.message = message or self.message
        self.status = status or self.status
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return error_envelope(self.message)


class ValidationError(AppError):
    status = HTTPStatus.BAD_REQUEST
    message = "Validation failed"


class AuthenticationError(AppError):
    status = HTTPStatus.UNAUTHORIZED
    message = "Authentication required"


class NotFoundError(AppError):
    status = HTTPStatus.NOT_FOUND
    message = "Not found"


class ConflictError(AppError):
    status = HTTPStatus.CONFLICT
    message = "Conflict"


class PayloadTooLargeError(AppError):
    status = HTTPStatus.REQUEST_ENTITY_TOO_LARGE
    message = "Request too large"


class RateLimitError(AppError):
    status = HTTPStatus.TOO_MANY_REQUESTS
    message = "Too many requests"


class DependencyError(AppError):
    # database or storage failure; the cause stays in the server log
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    message = "Internal server error"


def error_envelope(message: str) -> dict:
    return {"success": False, "message": message}


def success_envelope(**payload) -> dict:
    return {"success": True, **payload}


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=int(exc.status), content=exc.to_dict())


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # field locations only; raw inputs may hold passwords
    logger.info("Request validation failed on %s: %s", request.url.path, [e.get("loc") for e in exc.errors()])
    return JSONResponse(status_code=400, content=error_envelope("Validation failed"))


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else HTTPStatus(exc.status_code).phrase
    return JSONResponse(status_code=exc.status_code, content=error_envelope(message), headers=exc.headers)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_envelope("Internal server error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
