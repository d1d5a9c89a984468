"""
API Error Handling for the plugin server
Maps plugin exceptions onto standardized JSON error responses and logs them
"""

import logging
import traceback
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.middleware.base import BaseHTTPMiddleware

from ..services.plugins.exceptions import (
    ArchiveDecodeError,
    PluginError,
    PluginOperationNotSupportedError,
    PluginValidationError,
)

logger = logging.getLogger(__name__)


class ErrorDetail(BaseModel):
    """Detailed error information"""

    field: Optional[str] = None
    message: str
    type: Optional[str] = None


class APIErrorResponse(BaseModel):
    """Standardized API error response"""

    success: bool = False
    error: str
    message: str
    details: List[ErrorDetail] = Field(default_factory=list)
    error_id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    path: Optional[str] = None
    method: Optional[str] = None


class ErrorType:
    """Standard error types for consistent handling"""

    VALIDATION_ERROR = "validation_error"
    NOT_SUPPORTED_ERROR = "not_supported_error"
    ARCHIVE_ERROR = "archive_error"
    INTERNAL_ERROR = "internal_error"


# Most specific class first
PLUGIN_ERROR_MAPPINGS = (
    (PluginValidationError, status.HTTP_400_BAD_REQUEST, ErrorType.VALIDATION_ERROR),
    (PluginOperationNotSupportedError, status.HTTP_405_METHOD_NOT_ALLOWED, ErrorType.NOT_SUPPORTED_ERROR),
    (ArchiveDecodeError, status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorType.ARCHIVE_ERROR),
)


def classify_plugin_error(exc: PluginError):
    """Return (status code, error type) for a plugin exception."""
    for exception_class, status_code, error_type in PLUGIN_ERROR_MAPPINGS:
        if isinstance(exc, exception_class):
            return status_code, error_type
    return status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorType.INTERNAL_ERROR


def _error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: List[ErrorDetail],
) -> JSONResponse:
    error_response = APIErrorResponse(
        error=error_type,
        message=message,
        details=details,
        path=str(request.url.path),
        method=request.method,
    )

    log_extra = {
        "error_id": error_response.error_id,
        "path": request.url.path,
        "method": request.method,
    }
    if status_code >= 500:
        logger.error(f"HTTP {status_code} {error_type}: {message}", extra=log_extra)
    else:
        logger.warning(f"HTTP {status_code} {error_type}: {message}", extra=log_extra)

    return JSONResponse(status_code=status_code, content=error_response.model_dump(mode="json"))


async def plugin_error_handler(request: Request, exc: PluginError) -> JSONResponse:
    """Render any PluginError as an APIErrorResponse"""
    status_code, error_type = classify_plugin_error(exc)
    field = getattr(exc, "field", None)
    details = [ErrorDetail(field=field, message=exc.message, type=type(exc).__name__)]
    return _error_response(request, status_code, error_type, exc.message, details)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed query or path parameters are reported like any other validation error"""
    details = []
    for item in exc.errors():
        loc = item.get("loc") or ()
        details.append(
            ErrorDetail(
                field=str(loc[-1]) if loc else None,
                message=item.get("msg", "Validation error"),
                type=item.get("type"),
            )
        )
    message = details[0].message if details else "Invalid request data provided"
    return _error_response(request, status.HTTP_400_BAD_REQUEST, ErrorType.VALIDATION_ERROR, message, details)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns exceptions no handler claimed into a 500 APIErrorResponse"""

    def __init__(self, app, include_debug_info: bool = False):
        super().__init__(app)
        self.include_debug_info = include_debug_info

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_unexpected_exception(request, exc)

    def _handle_unexpected_exception(self, request: Request, exc: Exception) -> JSONResponse:
        error_id = str(uuid.uuid4())[:8]

        details = [ErrorDetail(message=str(exc), type=type(exc).__name__)]
        if self.include_debug_info:
            details.append(ErrorDetail(message=traceback.format_exc(), type="traceback"))

        error_response = APIErrorResponse(
            error=ErrorType.INTERNAL_ERROR,
            message="Internal server error occurred",
            details=details,
            error_id=error_id,
            path=str(request.url.path),
            method=request.method,
        )

        logger.error(
            f"Unexpected error ({error_id}): {exc}",
            extra={
                "error_id": error_id,
                "exception_type": type(exc).__name__,
                "path": request.url.path,
                "method": request.method,
                "traceback": traceback.format_exc(),
            },
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response.model_dump(mode="json"),
        )


def register_error_handlers(app: FastAPI, include_debug_info: bool = False) -> None:
    """Install the plugin exception handlers and the catch-all middleware."""
    app.add_exception_handler(PluginError, plugin_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_middleware(ErrorHandlingMiddleware, include_debug_info=include_debug_info)
