"""
Error Handling Service

Centralized classification, logging and bookkeeping of unexpected errors.
Expected refusals (not found, forbidden, conflicts) are ModerationErrors and
are answered directly by the API layer; only the rest ends up here.
"""

import logging
import traceback
import uuid
from typing import Dict, Any, Optional, List
from datetime import datetime
from enum import Enum

logger = logging.getLogger(__name__)


class ErrorSeverity(str, Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    DATABASE = "database"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    BUSINESS_LOGIC = "business_logic"
    SYSTEM = "system"
    CONFIGURATION = "configuration"


class ErrorRecord:
    """Represents an error occurrence with context."""

    def __init__(
        self,
        error: Exception,
        category: ErrorCategory,
        severity: ErrorSeverity,
        context: Optional[Dict[str, Any]] = None,
        principal: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        self.error = error
        self.category = category
        self.severity = severity
        self.context = context or {}
        self.principal = principal
        self.operation = operation
        self.timestamp = datetime.utcnow()
        self.error_id = f"{category.value}_{uuid.uuid4().hex[:12]}"

        # Extract error details
        self.error_type = type(error).__name__
        self.error_message = str(error)
        self.stack_trace = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )


class ErrorHandlerService:
    """Service for logging and tracking unexpected errors."""

    def __init__(self, history_limit: int = 500):
        self.history_limit = history_limit
        self.error_history: List[ErrorRecord] = []

    async def handle_error(
        self,
        error: Exception,
        category: ErrorCategory,
        severity: ErrorSeverity,
        context: Optional[Dict[str, Any]] = None,
        principal: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Log an error and keep it in the in-memory history.

        Args:
            error: The exception that occurred
            category: Category of the error
            severity: Severity level of the error
            context: Additional context information
            principal: Caller principal when the error occurred
            operation: Name of the operation that failed

        Returns:
            Dictionary describing the error
        """
        error_record = ErrorRecord(
            error=error,
            category=category,
            severity=severity,
            context=context,
            principal=principal,
            operation=operation,
        )

        self.error_history.append(error_record)
        if len(self.error_history) > self.history_limit:
            del self.error_history[: len(self.error_history) - self.history_limit]

        self._log_error(error_record)

        if severity == ErrorSeverity.CRITICAL:
            logger.critical(
                f"CRITICAL ERROR ALERT: {error_record.error_id} - {error_record.error_message}"
            )

        return self._generate_error_report(error_record)

    def _log_error(self, error_record: ErrorRecord) -> None:
        log_level = {
            ErrorSeverity.LOW: logging.INFO,
            ErrorSeverity.MEDIUM: logging.WARNING,
            ErrorSeverity.HIGH: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL
        }.get(error_record.severity, logging.ERROR)

        logger.log(
            log_level,
            f"Error {error_record.error_id}: {error_record.error_type}: {error_record.error_message}",
            extra={
                "error_id": error_record.error_id,
                "category": error_record.category.value,
                "severity": error_record.severity.value,
                "principal": error_record.principal,
                "operation": error_record.operation,
            }
        )
        if error_record.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
            logger.debug(error_record.stack_trace)

    def _generate_error_report(self, error_record: ErrorRecord) -> Dict[str, Any]:
        return {
            "error_id": error_record.error_id,
            "timestamp": error_record.timestamp.isoformat(),
            "error_type": error_record.error_type,
            "error_message": error_record.error_message,
            "category": error_record.category.value,
            "severity": error_record.severity.value,
            "operation": error_record.operation,
            "principal": error_record.principal,
            "context": error_record.context,
        }

    def get_error_statistics(self) -> Dict[str, Any]:
        """Get error statistics for monitoring."""
        if not self.error_history:
            return {
                "total_errors": 0,
                "by_category": {},
                "by_severity": {},
                "recent_errors": []
            }

        category_counts: Dict[str, int] = {}
        severity_counts: Dict[str, int] = {}
        for error in self.error_history:
            category_counts[error.category.value] = category_counts.get(error.category.value, 0) + 1
            severity_counts[error.severity.value] = severity_counts.get(error.severity.value, 0) + 1

        # Recent errors (last 10)
        recent_errors = [
            {
                "error_id": error.error_id,
                "timestamp": error.timestamp.isoformat(),
                "category": error.category.value,
                "severity": error.severity.value,
                "message": error.error_message
            }
            for error in sorted(self.error_history, key=lambda x: x.timestamp, reverse=True)[:10]
        ]

        return {
            "total_errors": len(self.error_history),
            "by_category": category_counts,
            "by_severity": severity_counts,
            "recent_errors": recent_errors
        }

    def clear_error_history(self) -> None:
        """Clear error history (for testing or maintenance)."""
        self.error_history.clear()


# Global error handler instance
error_handler = ErrorHandlerService()
