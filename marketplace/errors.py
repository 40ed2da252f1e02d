"""Structured error types and helpers for API responses."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message
        self.payload = build_error_payload(self.code, message, details)


class ValidationError(AppError):
    """Malformed or missing request / filter fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class ArgumentNullError(AppError):
    """A required argument (id, name, title, filter) was null or blank."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "ARGUMENT_NULL"

    def __init__(self, argument: str, message: Optional[str] = None):
        super().__init__(message or f"Value cannot be null or empty: '{argument}'", {"argument": argument})
        self.argument = argument


class NotFoundError(AppError):
    """An id or name does not resolve to an existing row."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "ARGUMENT_OUT_OF_RANGE"

    def __init__(self, argument: str, message: str):
        super().__init__(message, {"argument": argument})
        self.argument = argument


class InvalidOperationError(AppError):
    """The operation conflicts with the current state of the entity."""

    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_OPERATION"


class SecurityError(AppError):
    """No usable principal could be resolved from the request."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    """The principal is known but not allowed to perform the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Unhandled application error on %s: %s", request.url.path, exc.message)
    else:
        logger.info("Request %s rejected (%s): %s", request.url.path, exc.code, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, SecurityError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.payload, headers=headers)
