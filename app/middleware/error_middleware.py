"""
Error Handling Middleware

Maps moderation refusals to HTTP responses and turns any other unhandled
exception into a logged, uniform JSON error.
"""

import logging
from typing import Callable, Dict, Any
from fastapi import Request, Response, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError

from app.services.errors import ModerationError
from app.services.error_handler import (
    error_handler,
    ErrorCategory,
    ErrorSeverity
)

logger = logging.getLogger(__name__)


async def moderation_error_handler(request: Request, exc: ModerationError) -> JSONResponse:
    """Answer an expected refusal with its status code and error code."""
    logger.info(f"{request.method} {request.url.path} refused: {exc.code}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "code": exc.code},
    )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware for handling unhandled exceptions."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.error_mappings = {
            ValueError: (ErrorCategory.VALIDATION, ErrorSeverity.MEDIUM),
            TypeError: (ErrorCategory.VALIDATION, ErrorSeverity.MEDIUM),
            ValidationError: (ErrorCategory.VALIDATION, ErrorSeverity.MEDIUM),
            SQLAlchemyError: (ErrorCategory.DATABASE, ErrorSeverity.HIGH),
            PermissionError: (ErrorCategory.AUTHORIZATION, ErrorSeverity.HIGH),
            OSError: (ErrorCategory.SYSTEM, ErrorSeverity.HIGH),
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and handle any unhandled exceptions."""
        try:
            response = await call_next(request)
            return response

        except HTTPException as e:
            # Let FastAPI handle HTTP exceptions normally
            raise e

        except Exception as e:
            return await self._handle_unhandled_exception(request, e)

    async def _handle_unhandled_exception(
        self,
        request: Request,
        error: Exception
    ) -> JSONResponse:
        """Handle unhandled exceptions with proper error reporting."""
        category, severity = self._classify_error(error)

        context = {
            "method": request.method,
            "url": str(request.url),
            "client_ip": request.client.host if request.client else None,
            "user_agent": request.headers.get("user-agent"),
        }

        error_report = await error_handler.handle_error(
            error=error,
            category=category,
            severity=severity,
            context=context,
            principal=getattr(request.state, "principal", None),
            operation=f"{request.method} {request.url.path}"
        )

        status_code, response_body = self._generate_error_response(error_report)

        return JSONResponse(
            status_code=status_code,
            content=response_body,
            headers={"X-Error-ID": error_report["error_id"]}
        )

    def _classify_error(self, error: Exception) -> tuple[ErrorCategory, ErrorSeverity]:
        """Classify error by type to determine category and severity."""
        error_type = type(error)

        if error_type in self.error_mappings:
            return self.error_mappings[error_type]

        for mapped_type, (category, severity) in self.error_mappings.items():
            if isinstance(error, mapped_type):
                return category, severity

        return ErrorCategory.SYSTEM, ErrorSeverity.HIGH

    def _generate_error_response(
        self,
        error_report: Dict[str, Any]
    ) -> tuple[int, Dict[str, Any]]:
        """Generate appropriate HTTP response for the error."""
        status_code_mapping = {
            ErrorCategory.VALIDATION: 400,
            ErrorCategory.AUTHENTICATION: 401,
            ErrorCategory.AUTHORIZATION: 403,
            ErrorCategory.BUSINESS_LOGIC: 422,
            ErrorCategory.DATABASE: 500,
            ErrorCategory.SYSTEM: 500,
            ErrorCategory.CONFIGURATION: 500,
        }

        category = ErrorCategory(error_report["category"])
        status_code = status_code_mapping.get(category, 500)

        response_body = {
            "error": True,
            "error_id": error_report["error_id"],
            "message": self._get_user_friendly_message(category),
            "category": error_report["category"],
            "timestamp": error_report["timestamp"]
        }

        # Add details for development environment
        if logger.isEnabledFor(logging.DEBUG):
            response_body["debug"] = {
                "error_type": error_report["error_type"],
                "operation": error_report["operation"],
            }

        return status_code, response_body

    def _get_user_friendly_message(self, category: ErrorCategory) -> str:
        messages = {
            ErrorCategory.VALIDATION: "The provided data is invalid. Please check your input and try again.",
            ErrorCategory.AUTHENTICATION: "Authentication failed. Please log in and try again.",
            ErrorCategory.AUTHORIZATION: "You don't have permission to perform this action.",
            ErrorCategory.BUSINESS_LOGIC: "The operation cannot be completed due to business rules.",
            ErrorCategory.DATABASE: "A database error occurred. Please try again later.",
            ErrorCategory.SYSTEM: "An internal system error occurred. Please try again later.",
            ErrorCategory.CONFIGURATION: "A configuration error occurred. Please contact support."
        }

        return messages.get(category, "An unexpected error occurred. Please try again later.")
