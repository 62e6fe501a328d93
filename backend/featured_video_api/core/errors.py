"""API error types and their JSON rendering as ``{code, message}``."""

import logging

import asyncpg
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base error carrying an HTTP status and a machine-readable code."""

    status_code = 500
    code = "error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class ValidationError(ApiError, ValueError):
    status_code = 400

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message, code)


class NotFoundError(ApiError):
    status_code = 404
    code = "not_found"


class ForbiddenError(ApiError):
    status_code = 403
    code = "rest_forbidden"


class StorageError(ApiError):
    status_code = 500
    code = "storage_error"


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=StorageError(str(exc)).to_dict())


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    missing = [_field_name(e) for e in errors if e.get("type") == "missing"]
    if missing:
        error = ValidationError(
            "rest_missing_callback_param", f"Missing parameter(s): {', '.join(missing)}"
        )
    else:
        invalid = sorted({_field_name(e) for e in errors})
        error = ValidationError("invalid_request", f"Invalid parameter(s): {', '.join(invalid)}")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def _field_name(error: dict) -> str:
    # loc is ("body", "field", ...) or ("query", "field")
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    return ".".join(loc) or "body"


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(asyncpg.PostgresError, _storage_error_handler)
    app.add_exception_handler(asyncpg.InterfaceError, _storage_error_handler)
