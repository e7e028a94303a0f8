"""
Error handling utilities for the Tutorbook search service.

This module provides exception classes and handlers for consistent error responses.
"""

from enum import Enum
from typing import Any, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tutorbook.utils.logging import get_logger

logger = get_logger(__name__)


class ErrorCode(str, Enum):
    """Error codes carried in every error response."""

    # Server errors (1xxx)
    SERVER_ERROR = "1000"

    # Caller authentication errors (2xxx)
    UNAUTHORIZED = "2000"
    INVALID_TOKEN = "2001"
    EXPIRED_TOKEN = "2002"

    # Request errors (3xxx)
    VALIDATION_ERROR = "3001"

    # Search index errors (4xxx)
    SEARCH_INDEX_ERROR = "4000"
    SEARCH_INDEX_UNAUTHORIZED = "4001"

    # Document store errors (5xxx)
    DOCUMENT_STORE_ERROR = "5000"


class ErrorDetail(BaseModel):
    """Where in the request an error was found, and why."""

    location: Optional[str] = None
    param: Optional[str] = None
    value: Optional[Any] = None
    message: str


class ErrorResponse(BaseModel):
    """JSON body of every error response."""

    code: str
    message: str
    details: Optional[List[ErrorDetail]] = None
    request_id: Optional[str] = None


class TutorbookError(Exception):
    """Base exception class for service errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: ErrorCode = ErrorCode.SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[List[ErrorDetail]] = None,
        code: Optional[ErrorCode] = None,
        status_code: Optional[int] = None,
    ):
        """
        Initialize a new service error.

        Args:
            message: Error message (the class default when omitted)
            details: Optional list of error details
            code: Error code (the class default when omitted)
            status_code: HTTP status code (the class default when omitted)
        """
        self.message = message or self.default_message
        self.details = details or []
        self.code = code or self.default_code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(TutorbookError):
    """The request's parameters could not be parsed."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = ErrorCode.VALIDATION_ERROR
    default_message = "Validation error"


class UnauthorizedError(TutorbookError):
    """The caller's identity token was missing, invalid or expired."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = ErrorCode.UNAUTHORIZED
    default_message = "Unauthorized"


class SearchIndexError(TutorbookError):
    """A request to the hosted search index failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_code = ErrorCode.SEARCH_INDEX_ERROR
    default_message = "Search index error"


class DocumentStoreError(TutorbookError):
    """A request to the hosted document database failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_code = ErrorCode.DOCUMENT_STORE_ERROR
    default_message = "Document store error"


def error_response(
    request: Request,
    status_code: int,
    code: ErrorCode,
    message: str,
    details: Optional[List[ErrorDetail]] = None,
) -> JSONResponse:
    """Render an ``ErrorResponse`` tagged with the request's correlation ID."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            code=code.value,
            message=message,
            details=details or None,
            request_id=getattr(request.state, "request_id", None),
        ).model_dump(),
    )


def request_validation_details(exc: RequestValidationError) -> List[ErrorDetail]:
    """One detail per FastAPI validation error, located by its dotted ``loc``."""
    details = []
    for error in exc.errors():
        loc = error.get("loc") or ()
        details.append(
            ErrorDetail(
                location=".".join(str(part) for part in loc) or None,
                param=str(loc[-1]) if loc else None,
                message=error.get("msg", "Validation error"),
            )
        )
    return details


def setup_error_handlers(app: FastAPI) -> None:
    """
    Register the service's exception handlers on ``app``.

    Service errors keep their own status and code, request validation
    failures become 400 ``VALIDATION_ERROR``, and anything else is logged
    with its traceback and reported as a generic 500.
    """

    @app.exception_handler(TutorbookError)
    async def service_error_handler(request: Request, exc: TutorbookError) -> JSONResponse:
        # 4xx at WARNING, 5xx at ERROR.
        log = logger.warning if exc.status_code < 500 else logger.error
        log(f"{exc.code.name} ({exc.code.value}): {exc.message}")
        return error_response(request, exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = request_validation_details(exc)
        logger.warning(f"Request validation error: {[d.message for d in details]}")
        return error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            ErrorCode.VALIDATION_ERROR,
            "Request validation error",
            details,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}")
        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorCode.SERVER_ERROR,
            "An unexpected error occurred",
        )
