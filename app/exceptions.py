"""
Domain errors raised by the service layer.

Services raise these as soon as a rule is violated; the handlers registered
by ``register_exception_handlers`` translate them into ``{"detail": ...}``
JSON responses.  Keeping HTTP status codes on the exception classes lets the
routers stay free of error-mapping boilerplate.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = 400
    default_detail: str = "Bad request"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidInputError(AppError):
    status_code = 400
    default_detail = "Invalid input"


class AuthenticationRequiredError(AppError):
    status_code = 401
    default_detail = "Login is required."


class PermissionDeniedError(AppError):
    status_code = 403
    default_detail = "You do not have permission."


class MarkerCeilingError(PermissionDeniedError):
    """The actor tried to set a read permission above what their role may assign."""

    default_detail = "You cannot assign this read permission."


class NotFoundError(AppError):
    status_code = 404
    default_detail = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    default_detail = "Resource already exists"


async def _handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    logger.info(
        "%s %s -> %d %s: %s",
        request.method, request.url.path, exc.status_code, type(exc).__name__, exc.detail,
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _handle_app_error)
