# SPDX-License-Identifier: MIT
"""Feed error taxonomy and its conversion to JSON responses."""

import logging
from dataclasses import dataclass, field

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode:
    """Standard API error codes."""

    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INVALID_PACKAGE = "INVALID_PACKAGE"
    PACKAGE_EXISTS = "PACKAGE_EXISTS"
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# HTTP status codes for each error
ERROR_STATUS_CODES = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.METHOD_NOT_ALLOWED: 405,
    ErrorCode.INVALID_PACKAGE: 400,
    ErrorCode.PACKAGE_EXISTS: 409,
    ErrorCode.STORAGE_ERROR: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


@dataclass
class ErrorDetail:
    """Detailed error information for a specific field or issue."""

    field: str
    error: str


@dataclass
class APIError(Exception):
    """Base API exception with structured error response.

    Attributes:
        code: Error code from ErrorCode class
        message: Human-readable error message
        details: List of detailed error information
    """

    code: str
    message: str
    details: list[ErrorDetail] = field(default_factory=list)

    def __str__(self) -> str:
        return self.message

    @property
    def status_code(self) -> int:
        """Get HTTP status code for this error."""
        return ERROR_STATUS_CODES.get(self.code, 500)

    @property
    def headers(self) -> dict[str, str]:
        """Extra response headers for this error."""
        return {}

    def to_response(self) -> dict:
        """Convert to API response format."""
        response = {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }
        if self.details:
            response["error"]["details"] = [
                {"field": d.field, "error": d.error} for d in self.details
            ]
        return response


class NotFoundError(APIError):
    """Resource does not exist or lies outside this service."""

    def __init__(self, path: str):
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=f"Resource '{path}' not found",
        )


class MethodNotAllowedError(APIError):
    """Resource exists but does not support the request method."""

    def __init__(self, method: str, allowed: tuple[str, ...] = (), path: str | None = None):
        message = f"Method {method} not allowed"
        if path is not None:
            message += f" for '{path}'"
        super().__init__(code=ErrorCode.METHOD_NOT_ALLOWED, message=message)
        self.allowed = allowed

    @property
    def headers(self) -> dict[str, str]:
        if not self.allowed:
            return {}
        return {"Allow": ", ".join(self.allowed)}


class InvalidPackageError(APIError):
    """Uploaded archive or its manifest could not be read."""

    def __init__(self, message: str, details: list[ErrorDetail] | None = None):
        super().__init__(
            code=ErrorCode.INVALID_PACKAGE,
            message=message,
            details=details or [],
        )


class PackageExistsError(APIError):
    """Version already exists (immutability violation)."""

    def __init__(self, package_id: str, version: str):
        super().__init__(
            code=ErrorCode.PACKAGE_EXISTS,
            message=f"Version '{version}' of package '{package_id}' already exists",
        )


class StorageError(APIError):
    """Underlying storage operation failed."""

    def __init__(self, message: str):
        super().__init__(
            code=ErrorCode.STORAGE_ERROR,
            message=message,
        )


def error_response(exc: APIError) -> JSONResponse:
    """Build the JSON response for an API error."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response(),
        headers=exc.headers,
    )


def internal_error_response() -> JSONResponse:
    """Build the JSON response for an unexpected failure."""
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred",
            }
        },
    )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return error_response(exc)


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error("Unhandled error for %s %s", request.method, request.url.path, exc_info=exc)
    return internal_error_response()


def add_error_handlers(app: FastAPI) -> None:
    """Register error handlers with the FastAPI application."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)
