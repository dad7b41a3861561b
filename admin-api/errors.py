import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AdminAPIError(Exception):
    """Base error rendered to clients as {"error": message}."""
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(AdminAPIError):
    status_code = 400
    default_message = "Bad request"


class Unauthorized(AdminAPIError):
    status_code = 401
    default_message = "Access token required"


class Forbidden(AdminAPIError):
    status_code = 403
    default_message = "Invalid or expired token"


class NotFound(AdminAPIError):
    status_code = 404
    default_message = "Not found"


class StorageError(AdminAPIError):
    status_code = 500
    default_message = "Database error"


class UpstreamError(AdminAPIError):
    status_code = 502
    default_message = "Upstream service error"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def admin_api_error_handler(request: Request, exc: AdminAPIError):
    return _error(exc.status_code, exc.message)


async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    # Never leak SQL or driver details to the caller
    logger.error(f"Storage failure on {request.method} {request.url.path}", exc_info=exc)
    return _error(StorageError.status_code, StorageError.default_message)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg")
    else:
        message = "Invalid request payload"
    return _error(400, message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(AdminAPIError, admin_api_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
