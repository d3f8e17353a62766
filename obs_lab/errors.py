from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base class for errors the API classifies itself; unclassified errors are internal faults."""

    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)

    @property
    def detail(self) -> str:
        return str(self)


class ClientError(AppError):
    status_code = 400
    message = "Bad request"


class MissingParams(ClientError):
    message = "Missing params"


class InvalidParams(ClientError):
    message = "Invalid params"


class InvalidCredentials(ClientError):
    status_code = 401
    message = "Invalid credentials"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def classify(exc: Exception) -> tuple[int, str]:
    """Map an exception to the status code and message sent to the caller."""

    if isinstance(exc, AppError):
        return exc.status_code, exc.detail
    if isinstance(exc, RequestValidationError):
        return 400, "Invalid request"
    return 500, str(exc) or exc.__class__.__name__


async def _app_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code, message = classify(exc)
    structlog.get_logger("errors").info(
        "client_error",
        status_code=status_code,
        error=message,
        path=request.url.path,
    )
    return error_response(status_code, message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _app_error_handler)
