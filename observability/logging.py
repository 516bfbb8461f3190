"""
Structured JSON logging for the task planner.

Provides request correlation IDs and task identifiers embedded in every
log line, plus helpers for the task lifecycle events.
"""

import json
import uuid
import logging
from datetime import datetime, timezone
from typing import Optional, Dict
from contextvars import ContextVar

# Context variables for request tracing
REQUEST_ID: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
TASK_ID: ContextVar[Optional[str]] = ContextVar('task_id', default=None)


class StructuredLogger:
    """Structured JSON logger with correlation IDs."""

    def __init__(self, name: str, level: int = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        # Remove any existing handlers to avoid duplicates
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        handler = logging.StreamHandler()
        handler.setFormatter(self.JSONFormatter())
        self.logger.addHandler(handler)

        self.logger.propagate = False

    class JSONFormatter(logging.Formatter):
        """JSON formatter with correlation IDs and structured fields."""

        def format(self, record):
            log_entry = {
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'level': record.levelname,
                'logger': record.name,
                'message': record.getMessage(),
                'module': record.module,
                'function': record.funcName,
                'line': record.lineno,
            }

            for key, value in get_request_context().items():
                if value:
                    log_entry[key] = value

            if hasattr(record, 'extra_fields'):
                log_entry.update(record.extra_fields)

            if hasattr(record, 'latency_ms'):
                log_entry['latency_ms'] = record.latency_ms

            if record.exc_info:
                log_entry['exception'] = self.formatException(record.exc_info)
                log_entry['exception_type'] = record.exc_info[0].__name__ if record.exc_info[0] else None

            return json.dumps(log_entry, default=str)

    def set_level(self, level: int):
        self.logger.setLevel(level)

    def _log_with_extras(self, level: int, message: str, **extra_fields):
        """Log message with extra structured fields."""
        self.logger.log(level, message, extra={'extra_fields': extra_fields})

    def debug(self, message: str, **extra_fields):
        self._log_with_extras(logging.DEBUG, message, **extra_fields)

    def info(self, message: str, **extra_fields):
        self._log_with_extras(logging.INFO, message, **extra_fields)

    def warning(self, message: str, **extra_fields):
        self._log_with_extras(logging.WARNING, message, **extra_fields)

    def error(self, message: str, **extra_fields):
        self._log_with_extras(logging.ERROR, message, **extra_fields)

    def exception(self, message: str, **extra_fields):
        """Log exception with traceback and extra fields."""
        self.logger.exception(message, extra={'extra_fields': extra_fields})

    # Task lifecycle events
    def task_created(self, task_id: int, date: str, repeat: str):
        self.info(
            "Task created",
            task_id=str(task_id),
            date=date,
            repeat=repeat,
            event_type="task_created"
        )

    def task_updated(self, task_id: int, date: str, repeat: str):
        self.info(
            "Task updated",
            task_id=str(task_id),
            date=date,
            repeat=repeat,
            event_type="task_updated"
        )

    def task_completed(self, task_id: int, next_date: Optional[str]):
        """Log task completion; next_date is None when a one-shot task was removed."""
        self.info(
            "Task rescheduled" if next_date else "One-shot task completed and removed",
            task_id=str(task_id),
            next_date=next_date,
            event_type="task_completed"
        )

    def task_deleted(self, task_id: int):
        self.info("Task deleted", task_id=str(task_id), event_type="task_deleted")

    def rule_rejected(self, repeat: str, reason: str):
        self.warning(
            "Repeat rule rejected",
            repeat=repeat,
            reason=reason,
            event_type="rule_rejected"
        )

    def api_request(self, method: str, path: str, status_code: int, duration_ms: float):
        self.info(
            "API request processed",
            method=method,
            path=path,
            status_code=status_code,
            latency_ms=duration_ms,
            event_type="api_request"
        )


def set_request_context(request_id: str = None, task_id: str = None):
    """Set request context for logging correlation."""
    if request_id:
        REQUEST_ID.set(request_id)
    if task_id:
        TASK_ID.set(task_id)


def clear_request_context():
    for ctx_var in [REQUEST_ID, TASK_ID]:
        ctx_var.set(None)


def get_request_context() -> Dict[str, Optional[str]]:
    return {
        'request_id': REQUEST_ID.get(),
        'task_id': TASK_ID.get(),
    }


def generate_request_id() -> str:
    """Generate unique request ID."""
    return f"req-{uuid.uuid4().hex[:8]}"


def configure_logging(level: str = "INFO"):
    """Apply a textual log level to every component logger."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    for component in (api_logger, store_logger, health_logger):
        component.set_level(numeric)
    logging.getLogger("engine").setLevel(numeric)


# Pre-configured loggers for different components
api_logger = StructuredLogger("planner.api")
store_logger = StructuredLogger("planner.store")
health_logger = StructuredLogger("planner.health")
