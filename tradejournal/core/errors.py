"""
Trade Journal Error Handling Module

Structured error codes with user-friendly messages for the journal's
validation, persistence and edit-session failures.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Error Code Taxonomy
# =============================================================================


class ErrorCategory(Enum):
    """Top-level error categories."""

    VALIDATION = "VALIDATION"
    PERSISTENCE = "PERSISTENCE"
    DATA = "DATA"
    SESSION = "SESSION"


class ErrorSeverity(Enum):
    """Error severity levels for logging."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class ErrorCode:
    """Structured error code with metadata."""

    code: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    http_status: int
    retryable: bool = False
    recovery_hint: str = ""

    def __str__(self) -> str:
        return f"{self.category.value}_{self.code}"


class ErrorCodes:
    """Central registry of journal error codes."""

    # Validation Errors (1xxx)
    VALIDATION_INVALID_FIELDS = ErrorCode(
        code="1001",
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.INFO,
        message="Trade draft failed validation",
        user_message="Some fields need attention before the trade can be saved.",
        http_status=422,
        retryable=False,
        recovery_hint="Correct the highlighted fields and submit again.",
    )

    # Persistence Errors (2xxx)
    PERSISTENCE_WRITE_FAILED = ErrorCode(
        code="2001",
        category=ErrorCategory.PERSISTENCE,
        severity=ErrorSeverity.ERROR,
        message="Document store write failed",
        user_message="The trade could not be saved.",
        http_status=503,
        retryable=True,
        recovery_hint="Your input is kept. Retry, or cancel to discard it.",
    )

    PERSISTENCE_DELETE_FAILED = ErrorCode(
        code="2002",
        category=ErrorCategory.PERSISTENCE,
        severity=ErrorSeverity.ERROR,
        message="Document store delete failed",
        user_message="The trade could not be deleted.",
        http_status=503,
        retryable=True,
        recovery_hint="The trade is still in your journal. Try deleting it again.",
    )

    # Data Errors (3xxx)
    DATA_RECORD_NOT_FOUND = ErrorCode(
        code="3001",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.WARNING,
        message="Trade record no longer exists",
        user_message="This trade was already changed or removed elsewhere.",
        http_status=404,
        retryable=False,
        recovery_hint="Close the editor; the journal shows the latest trades.",
    )

    # Session Errors (4xxx)
    SESSION_INVALID_TRANSITION = ErrorCode(
        code="4001",
        category=ErrorCategory.SESSION,
        severity=ErrorSeverity.WARNING,
        message="Edit session transition not allowed",
        user_message="That action is not available right now.",
        http_status=409,
        retryable=False,
        recovery_hint="Wait for the current save to finish.",
    )


# =============================================================================
# Base Exception Classes
# =============================================================================


class JournalError(Exception):
    """
    Base exception for all journal errors.

    Provides structured error information including error codes,
    user-friendly messages, and recovery suggestions.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        detail: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.detail = detail
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.utcnow()

        super().__init__(self.technical_message)

    @property
    def code(self) -> str:
        """Full error code string."""
        return str(self.error_code)

    @property
    def category(self) -> ErrorCategory:
        return self.error_code.category

    @property
    def severity(self) -> ErrorSeverity:
        return self.error_code.severity

    @property
    def http_status(self) -> int:
        return self.error_code.http_status

    @property
    def is_retryable(self) -> bool:
        """Whether the operation can be retried."""
        return self.error_code.retryable

    @property
    def user_message(self) -> str:
        """User-friendly error message."""
        msg = self.error_code.user_message
        if self.detail:
            msg = f"{msg} ({self.detail})"
        return msg

    @property
    def technical_message(self) -> str:
        """Technical error message for logging."""
        msg = f"[{self.code}] {self.error_code.message}"
        if self.detail:
            msg = f"{msg}: {self.detail}"
        return msg

    @property
    def recovery_hint(self) -> str:
        return self.error_code.recovery_hint

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.user_message,
            "recoveryHint": self.recovery_hint,
            "retryable": self.is_retryable,
            "timestamp": self.timestamp.isoformat(),
        }

    def log(self) -> None:
        """Log the error with appropriate severity."""
        log_method = getattr(logger, self.severity.name.lower(), logger.error)
        log_method(
            self.technical_message,
            extra={
                "ctx_error_code": self.code,
                "ctx_retryable": self.is_retryable,
                **{f"ctx_{k}": v for k, v in self.context.items()},
            },
        )


class ValidationError(JournalError):
    """
    A draft failed validation.

    Carries one message per offending field so callers can highlight
    each field separately.
    """

    def __init__(self, field_errors: Mapping[str, str], **kwargs):
        self.field_errors: Dict[str, str] = dict(field_errors)
        super().__init__(
            ErrorCodes.VALIDATION_INVALID_FIELDS,
            detail=", ".join(sorted(self.field_errors)),
            **kwargs,
        )

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["fieldErrors"] = dict(self.field_errors)
        return result


class PersistenceError(JournalError):
    """The document store rejected or failed to complete a write."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.PERSISTENCE_WRITE_FAILED,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


class NotFoundError(JournalError):
    """A mutation targets a record that is no longer in the store."""

    def __init__(self, record_id: str, **kwargs):
        self.record_id = record_id
        kwargs.setdefault("detail", f"id={record_id}")
        super().__init__(ErrorCodes.DATA_RECORD_NOT_FOUND, **kwargs)


class InvalidTransitionError(JournalError):
    """An edit session action was requested from the wrong state."""

    def __init__(self, action: str, state: str, **kwargs):
        self.action = action
        self.state = state
        super().__init__(
            ErrorCodes.SESSION_INVALID_TRANSITION,
            detail=f"cannot {action} while {state}",
            **kwargs,
        )


__all__ = [
    "ErrorCategory",
    "ErrorSeverity",
    "ErrorCode",
    "ErrorCodes",
    "JournalError",
    "ValidationError",
    "PersistenceError",
    "NotFoundError",
    "InvalidTransitionError",
]
