"""
Trade Journal Logging Configuration

Structured logging with JSON output for log shipping, a colored console
format for development, and request correlation for the HTTP API.
"""

import json
import logging
import os
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

# Context variable for request correlation
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


# =============================================================================
# Log Level Strategy
# =============================================================================
#
# DEBUG   - Snapshot sizes, rejected drafts, ignored listen events
# INFO    - Subscriptions opened/closed, trades added/updated/deleted
# WARNING - Records sanitized with fallbacks, stale edits, config fallbacks
# ERROR   - Store writes that failed, consumer callbacks that raised
# =============================================================================


class StructuredFormatter(logging.Formatter):
    """JSON formatter; one object per line."""

    def __init__(self, service_name: str = "tradejournal", environment: str = "development"):
        super().__init__()
        self.service_name = service_name
        self.environment = environment
        self.hostname = os.uname().nodename if hasattr(os, "uname") else ""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "environment": self.environment,
            "hostname": self.hostname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "request_id": request_id_var.get(),
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        # Context fields prefixed with ctx_ are included without the prefix
        for key, value in record.__dict__.items():
            if key.startswith("ctx_"):
                log_data[key[4:]] = value

        log_data = {k: v for k, v in log_data.items() if v is not None}
        return json.dumps(log_data, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Human-readable colored formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        request_id = request_id_var.get()
        req_str = f"[{request_id[:8]}] " if request_id else ""

        formatted = (
            f"{timestamp} {color}{record.levelname:8}{self.RESET} "
            f"{req_str}{record.name} - {record.getMessage()}"
        )

        extras = [f"{key[4:]}={value}" for key, value in record.__dict__.items() if key.startswith("ctx_")]
        if extras:
            formatted += f" | {', '.join(extras)}"

        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    service_name: str = "tradejournal",
    environment: str = "development",
    log_file: Optional[str] = None,
) -> None:
    """
    Configure logging for the journal.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON structured logging
        service_name: Service name for structured logs
        environment: Environment name
        log_file: Optional file path; always written as JSON
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    if json_format:
        formatter: logging.Formatter = StructuredFormatter(service_name, environment)
    else:
        formatter = ConsoleFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter(service_name, environment))
        root_logger.addHandler(file_handler)

    # Third-party noise
    for name in ("uvicorn", "uvicorn.access", "httpx", "urllib3", "google.auth", "firebase_admin"):
        logging.getLogger(name).setLevel(logging.WARNING)


# =============================================================================
# Context Management
# =============================================================================


def set_request_context(request_id: Optional[str] = None) -> str:
    """Set the correlation id for the current request; generated if omitted."""
    req_id = request_id or str(uuid.uuid4())
    request_id_var.set(req_id)
    return req_id


def clear_request_context() -> None:
    request_id_var.set(None)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log a message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Additional context fields
    """
    extra = {f"ctx_{k}": v for k, v in context.items()}
    logger.log(level, message, extra=extra)
