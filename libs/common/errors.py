"""Error taxonomy and the two response entry points used by every route.

Every failure ends up in ``error_response``, which always produces a JSON body
of the form ``{"error": str}`` (plus ``details`` for validation failures).
Successful payloads go through ``success_response`` so both share one
encoder.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from libs.common.logging import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"
UNKNOWN_ERROR_MESSAGE = "An unexpected error occurred"


class ApiError(Exception):
    """An error with an explicit HTTP status and a client-safe message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, status_code: Optional[int] = None, message: str = ""):
        if status_code is not None:
            self.status_code = status_code
        self.message = message or UNKNOWN_ERROR_MESSAGE
        super().__init__(self.message)


class BadRequestError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Bad request"):
        super().__init__(message=message)


class UnauthorizedError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message)


class ForbiddenError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message=message)


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Not found"):
        super().__init__(message=message)


class StoreError(ApiError):
    """The backing store rejected or failed an operation."""

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message=message)


class ExternalServiceError(ApiError):
    """A round trip to storage or the identity provider failed."""

    def __init__(self, message: str = "External service request failed"):
        super().__init__(message=message)


def _field_path(loc: tuple) -> str:
    # FastAPI prefixes locations with the request part ("body", "query", ...)
    parts = [str(p) for p in loc]
    if parts and parts[0] in ("body", "query", "path", "header", "cookie"):
        parts = parts[1:]
    return ".".join(parts)


def validation_details(errors: list[dict]) -> list[dict[str, str]]:
    return [
        {"field": _field_path(tuple(e.get("loc", ()))), "message": e.get("msg", "")}
        for e in errors
    ]


def error_response(error: object) -> JSONResponse:
    """Map any caught failure value to the uniform error envelope."""
    if isinstance(error, (RequestValidationError, ValidationError)):
        details = validation_details(list(error.errors()))
        logger.warning("Validation failed: %s", details)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation failed", "details": details},
        )

    if isinstance(error, ApiError):
        if error.status_code >= 500:
            logger.error(
                "API error: %s", error.message, exc_info=error.__cause__ or error
            )
        else:
            logger.info("API error %s: %s", error.status_code, error.message)
        return JSONResponse(
            status_code=error.status_code, content={"error": error.message}
        )

    if isinstance(error, StarletteHTTPException):
        # Raised by the framework itself (unknown route, method not allowed)
        return JSONResponse(
            status_code=error.status_code,
            content={"error": str(error.detail)},
            headers=getattr(error, "headers", None),
        )

    if isinstance(error, SQLAlchemyError):
        logger.error("Store error", exc_info=error)
        return error_response(StoreError())

    if isinstance(error, Exception):
        logger.error("Unhandled exception: %s", error, exc_info=error)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": INTERNAL_ERROR_MESSAGE},
        )

    logger.error("Unknown failure value: %r", error)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": UNKNOWN_ERROR_MESSAGE},
    )


def success_response(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Wrap a successful payload in the same envelope shape."""
    return JSONResponse(status_code=status_code, content=jsonable_encoder(data))


def add_exception_handlers(app: FastAPI) -> None:
    """
    Route all of FastAPI's exception handling through ``error_response``.
    """

    async def _handle(request: Request, exc: Exception) -> JSONResponse:
        return error_response(exc)

    app.add_exception_handler(RequestValidationError, _handle)
    app.add_exception_handler(ValidationError, _handle)
    app.add_exception_handler(ApiError, _handle)
    app.add_exception_handler(StarletteHTTPException, _handle)
    app.add_exception_handler(SQLAlchemyError, _handle)
    app.add_exception_handler(Exception, _handle)
