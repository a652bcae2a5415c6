# backend/app/core/errors.py
"""
Declined-operation errors and their JSON rendering.

Every failure leaving the API is rendered as
    {"error": <message>, "reason": <machine-readable reason>, ...extra}
so the admin panel can tell a wrong code from a rate limit or an
expired session. Internal error text never crosses the boundary.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    reason: str = "error"
    message: str = "Request failed"
    extra: Dict[str, Any] = {}

    def __init__(self, message: Optional[str] = None, **extra: Any):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.extra = {**self.extra, **extra}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "reason": self.reason, **self.extra}


class MissingInput(AppError):
    reason = "missing_input"
    message = "Missing required field"


class InvalidInput(AppError):
    reason = "invalid_input"
    message = "Invalid input"


class InvalidAction(AppError):
    reason = "invalid_action"
    message = "Invalid action"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    reason = "not_found"
    message = "Not found"


class NotConfigured(AppError):
    reason = "not_configured"
    message = "Authentication not configured"
    extra = {"valid": False, "notConfigured": True}


class InvalidCode(AppError):
    reason = "invalid_code"
    message = "Invalid authentication code"
    extra = {"success": False}


class RateLimited(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    reason = "rate_limited"
    message = "Too many failed attempts. Please wait 5 minutes."
    extra = {"valid": False, "rateLimited": True}


class SessionExpired(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    reason = "session_expired"
    message = "Session expired"
    extra = {"sessionExpired": True}


class PersistenceFailure(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    reason = "persistence_failure"
    message = "Storage error, please try again"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def persistence_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Storage error on %s %s", request.method, request.url.path)
    return await app_error_handler(request, PersistenceFailure())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(loc) for loc in err.get("loc", ())) for err in exc.errors()]
    return await app_error_handler(request, InvalidInput(f"Invalid input: {', '.join(fields)}"))


def register_exception_handlers(app) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(SQLAlchemyError, persistence_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
