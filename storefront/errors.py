# storefront/errors.py
import logging
from typing import Dict, List, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that are turned into the JSON error envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal error"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def body(self) -> dict:
        return {"success": False, "message": self.message}


class ValidationFailed(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    message = "The given data was invalid."

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def field(cls, name: str, message: str) -> "ValidationFailed":
        return cls({name: [message]})

    def body(self) -> dict:
        return {**super().body(), "errors": self.errors}


class AuthenticationRequired(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthenticated."
    headers = {"WWW-Authenticate": "Bearer"}


class AuthorizationDenied(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden."


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found."


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Conflict."


class StorageFailure(AppError):
    message = "File storage failed."


# Map a pydantic/FastAPI location tuple to the name of the offending field
def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form")]
    return ".".join(parts) or "request"


def errors_from_request_validation(exc: RequestValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        errors.setdefault(_field_name(err.get("loc", ())), []).append(err.get("msg", "Invalid value"))
    return errors


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.body(), headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return await app_error_handler(request, ValidationFailed(errors_from_request_validation(exc)))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return await app_error_handler(request, AppError("Server Error."))


def register_error_handlers(app) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
