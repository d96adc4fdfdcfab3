"""Service error taxonomy and its translation into HTTP responses."""
from __future__ import annotations

import enum
import logging
from typing import Mapping

from fastapi import Request, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    CONFIGURATION = "configuration"
    VALIDATION = "validation"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.CONFIGURATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
}


class ServiceError(Exception):
    """Base class for errors that map directly onto a client-visible response."""

    kind: ErrorKind
    default_detail = "Request failed"

    def __init__(self, detail: str | None = None, headers: Mapping[str, str] | None = None) -> None:
        self.detail = detail or self.default_detail
        self.headers = dict(headers or {})
        super().__init__(self.detail)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class Unauthorized(ServiceError):
    kind = ErrorKind.UNAUTHORIZED
    default_detail = "Unauthorized"


class Forbidden(ServiceError):
    kind = ErrorKind.FORBIDDEN
    default_detail = "Forbidden"


class NotFound(ServiceError):
    kind = ErrorKind.NOT_FOUND
    default_detail = "Not found"


class UserNotFound(NotFound):
    default_detail = "User not found"


class BuildNotFound(NotFound):
    default_detail = "Build not found"


class CommentNotFound(NotFound):
    default_detail = "Comment not found"


class Conflict(ServiceError):
    kind = ErrorKind.CONFLICT
    default_detail = "Conflict"


class RateLimited(ServiceError):
    kind = ErrorKind.RATE_LIMITED
    default_detail = "Too many requests, please try again later."


class ConfigurationError(ServiceError):
    """Deployment misconfiguration, e.g. a signing secret absent from the environment."""

    kind = ErrorKind.CONFIGURATION
    default_detail = "Server configuration error"


class ValidationError(ServiceError):
    kind = ErrorKind.VALIDATION
    default_detail = "Invalid request"


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a ServiceError as a JSON body with its mapped status code.

    Rate-limit headers recorded earlier in the request are kept on the error
    response; headers carried by the exception take precedence.
    """
    from buildhub.core.rate_limit import pending_rate_limit_headers

    if exc.kind is ErrorKind.CONFIGURATION:
        logger.error(
            "Configuration error on %s %s: %s",
            request.method,
            request.url.path,
            exc.detail,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers={**pending_rate_limit_headers(request), **exc.headers} or None,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """FastAPI's 422 response, plus any rate-limit headers recorded for the request."""
    from buildhub.core.rate_limit import pending_rate_limit_headers

    response = await request_validation_exception_handler(request, exc)
    response.headers.update(pending_rate_limit_headers(request))
    return response


__all__ = [
    "BuildNotFound",
    "CommentNotFound",
    "ConfigurationError",
    "Conflict",
    "ErrorKind",
    "Forbidden",
    "NotFound",
    "RateLimited",
    "STATUS_BY_KIND",
    "ServiceError",
    "Unauthorized",
    "UserNotFound",
    "ValidationError",
    "service_error_handler",
    "validation_error_handler",
]
