"""
Error handling and sanitization

- CargoBaseError subclasses -> JSON body with their own status code
- Unhandled exceptions -> logged with traceback, generic message to the client
- Messages that look like they leak internals (DB driver names, secrets, paths)
  are replaced before they leave the service
"""
import logging
import traceback
from typing import Union

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.exceptions import CargoBaseError

logger = logging.getLogger(__name__)

# Patterns that indicate internal/sensitive error information
SENSITIVE_PATTERNS = [
    "password",
    "sifre",
    "secret",
    "token",
    "credential",
    "sqlalchemy",
    "asyncpg",
    "postgresql",
    "traceback",
    "file \"",
    "/app/",
    "\\app\\",
]

GENERIC_ERROR_MESSAGE = "An internal error occurred. Please try again later."
MAX_MESSAGE_LENGTH = 300


def is_sensitive_error(message: str) -> bool:
    """Check if error message contains sensitive information."""
    message_lower = message.lower()
    return any(pattern in message_lower for pattern in SENSITIVE_PATTERNS)


def sanitize_error_message(error: Union[str, Exception]) -> str:
    """
    Sanitize an error message for safe client exposure.

    In debug mode the message is returned unchanged.
    """
    message = error if isinstance(error, str) else str(error)

    if settings.DEBUG:
        return message

    if is_sensitive_error(message):
        return GENERIC_ERROR_MESSAGE

    if len(message) > MAX_MESSAGE_LENGTH:
        return message[:MAX_MESSAGE_LENGTH] + "..."

    return message


async def cargo_error_handler(request: Request, exc: CargoBaseError) -> JSONResponse:
    """Exception handler for the cargo error hierarchy."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.code,
            "message": sanitize_error_message(exc.message),
            "details": exc.details,
        },
    )


class ErrorSanitizationMiddleware(BaseHTTPMiddleware):
    """
    Catch unhandled exceptions and return a sanitized error response.

    - In production: generic error, full details only in the log
    - In development: full error for debugging
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except HTTPException:
            raise
        except Exception as e:
            error_id = f"{request.client.host if request.client else 'unknown'}-{id(e)}"
            logger.error(
                f"Unhandled exception [{error_id}]: {type(e).__name__}: {str(e)}\n"
                f"Path: {request.url.path}\n"
                f"Method: {request.method}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            if settings.DEBUG:
                return JSONResponse(
                    status_code=500,
                    content={
                        "error": "internal_error",
                        "message": str(e),
                        "type": type(e).__name__,
                        "error_id": error_id,
                    }
                )
            return JSONResponse(
                status_code=500,
                content={
                    "error": "internal_error",
                    "message": "An unexpected error occurred. Please try again later.",
                    "error_id": error_id,
                }
            )
