"""
Structured Logging Service

Provides JSON-formatted structured logging with correlation context
for request tracing and scheduled run tracking.

Features:
- JSON log formatter for machine-parseable output
- Request correlation via X-Request-ID
- Trigger correlation (pull, push, scheduled) for pipeline runs
- Context propagation via contextvars
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional, Dict, Any


# Context variables for correlation
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
trigger_var: ContextVar[Optional[str]] = ContextVar('trigger', default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_var.get()


def set_request_id(request_id: Optional[str]) -> None:
    """Set the request ID in context."""
    request_id_var.set(request_id)


def get_trigger() -> Optional[str]:
    """Get the current invocation trigger from context."""
    return trigger_var.get()


def set_trigger(trigger: Optional[str]) -> None:
    """Set the invocation trigger in context."""
    trigger_var.set(trigger)


def clear_context() -> None:
    """Clear all context variables."""
    request_id_var.set(None)
    trigger_var.set(None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid.uuid4())[:8]


class JSONLogFormatter(logging.Formatter):
    """
    JSON formatter for structured logging output.

    Produces machine-parseable JSON logs with correlation IDs.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        trigger = get_trigger()
        if trigger:
            log_data["trigger"] = trigger

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        return json.dumps(log_data, default=str)


class CorrelationContext:
    """
    Context manager for setting correlation IDs.

    Usage:
        with CorrelationContext(request_id="abc123", trigger="scheduled"):
            logger.info("This log will include correlation IDs")
    """

    def __init__(self, request_id: Optional[str] = None, trigger: Optional[str] = None):
        self.request_id = request_id
        self.trigger = trigger
        self._old_request_id = None
        self._old_trigger = None

    def __enter__(self):
        self._old_request_id = get_request_id()
        self._old_trigger = get_trigger()

        if self.request_id:
            set_request_id(self.request_id)
        if self.trigger:
            set_trigger(self.trigger)

        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        set_request_id(self._old_request_id)
        set_trigger(self._old_trigger)
        return False


def setup_logging(level: int = logging.INFO, json_output: bool = False) -> logging.Handler:
    """
    Configure the root logger with a single stream handler.

    Args:
        level: Minimum log level
        json_output: Whether to output JSON (True) or plain text (False)

    Returns:
        The configured handler
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if json_output:
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

    root_logger.addHandler(handler)
    return handler
