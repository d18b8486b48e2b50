"""Application error taxonomy and the FastAPI handlers that render it.

Services raise these instead of ``HTTPException`` so the same functions can
run from scripts and webhooks. Every error carries an HTTP status code and a
message that is safe to show to the caller; ``context`` is logged only.

    AppError
    ├── NotFoundError     404  referenced entity does not exist
    ├── ConflictError     409  unique-key collision
    ├── BadRequestError   400  input that is well-formed but inconsistent
    ├── ForbiddenError    403  caller lacks the required relationship
    └── UpstreamError     502  payment or email provider failure
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.context = context or {}
        super().__init__(self.message)


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to perform this action"


class UpstreamError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Upstream provider request failed"


def error_body(message: str, sources: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    """Failure envelope shared by every handler."""
    return {
        "success": False,
        "message": message,
        "errorSources": sources or [{"path": "", "message": message}],
    }


def register_exception_handlers(app: FastAPI) -> None:
    """Attach handlers so every failure leaves the API in the same envelope."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message} {exc.context}")
        else:
            logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        sources = [
            {
                "path": ".".join(str(part) for part in err.get("loc", ())[1:]),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body("Validation error", sources),
        )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=error_body("Duplicate value violates a unique constraint"),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Internal server error"),
        )
