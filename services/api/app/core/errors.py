"""
API error taxonomy.

Handlers raise these; register_error_handlers renders them as
``{"detail": message}``. ``public_message`` replaces the message in
production so internal detail stays in the server log.
"""
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .logging import get_logger


class ApiError(Exception):
    status_code = 500
    default_message = "An error occurred"
    default_public_message: str | None = None

    def __init__(self, message: str | None = None, public_message: str | None = None):
        self.message = message or self.default_message
        self.public_message = public_message or self.default_public_message
        super().__init__(self.message)

    def client_message(self, production: bool) -> str:
        if production and self.public_message:
            return self.public_message
        return self.message


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class InvalidSignature(ApiError):
    status_code = 401
    default_message = "Invalid signature"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"
    default_public_message = "Insufficient permissions"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Conflict"


class UpstreamFailure(ApiError):
    status_code = 500
    default_message = "Upstream request failed"
    default_public_message = "Something went wrong"


class InternalError(ApiError):
    status_code = 500
    default_message = "Internal server error"
    default_public_message = "Something went wrong"


def register_error_handlers(app: FastAPI, production: bool) -> None:
    """Render every failure as ``{"detail": ...}`` and log it once."""
    logger = get_logger("api.errors")

    async def on_api_error(request: Request, exc: ApiError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "request.api_error",
            path=request.url.path,
            status_code=exc.status_code,
            error=exc.message,
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            {"detail": exc.client_message(production)}, status_code=exc.status_code
        )

    async def on_invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        logger.info("request.validation_error", path=request.url.path, errors=errors)
        return JSONResponse(
            {"detail": "Validation error", "errors": errors},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    async def on_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(
            "request.database_error", path=request.url.path, error=str(exc), exc_info=True
        )
        return JSONResponse(
            {"detail": "Database error occurred"},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    async def on_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "request.unhandled_exception",
            method=request.method,
            path=request.url.path,
            error_type=type(exc).__name__,
            exc_info=True,
        )
        detail = InternalError.default_public_message if production else InternalError.default_message
        return JSONResponse({"detail": detail}, status_code=500)

    app.add_exception_handler(ApiError, on_api_error)
    app.add_exception_handler(RequestValidationError, on_invalid_request)
    app.add_exception_handler(SQLAlchemyError, on_database_error)
    app.add_exception_handler(Exception, on_unexpected)
