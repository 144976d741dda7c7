"""Structured logging for the staff service: correlation ids, timing and contact masking."""

import inspect
import logging
import re
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Optional

from ulid import ULID

from staff_service.utils.logging_config import LoggingConfig, get_logger

SERVICE_NAME = "staff-management"

_current_correlation_id: ContextVar[Optional[str]] = ContextVar("staff_correlation_id", default=None)

_EMAIL = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
_PHONE = re.compile(r"\+?\d[\d\s().-]{7,}\d")


def get_correlation_id() -> Optional[str]:
    return _current_correlation_id.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None):
    """Bind a correlation id for the duration of one invocation."""
    correlation_id = correlation_id or f"req_{str(ULID()).lower()}"
    token = _current_correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _current_correlation_id.reset(token)


def mask_sensitive_data(text: str) -> str:
    """Redact email addresses and phone numbers found in free text."""
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text
    return _PHONE.sub("[REDACTED_PHONE]", _EMAIL.sub("[REDACTED_EMAIL]", text))


def mask_email(email: Optional[str]) -> Optional[str]:
    """f***@insure.ae style masking for staff emails."""
    if not LoggingConfig.LOG_MASK_SENSITIVE or not email or "@" not in email:
        return email
    local, domain = email.split("@", 1)
    return f"{local[:1]}***@{domain}"


class StructuredLogger:
    """
    Wraps a stdlib logger so keyword arguments become JSON fields.

    Every record carries the service name and, inside a request, the
    correlation id. Fields given to bind() are repeated on each record.
    """

    def __init__(self, logger: logging.Logger, **bound: Any):
        self.logger = logger
        self.bound = bound

    def bind(self, **fields: Any) -> "StructuredLogger":
        return StructuredLogger(self.logger, **{**self.bound, **fields})

    def _log(self, level: int, message: str, exc_info: bool = False, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            **self.bound,
            **fields,
        }
        correlation_id = get_correlation_id()
        if correlation_id:
            extra["correlation_id"] = correlation_id
        self.logger.log(level, message, extra=extra, exc_info=exc_info)

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=True, **fields)


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **fields: Any):
    """Log how long a block took, and warn past the slow-operation threshold."""
    log = logger or get_structured_logger(__name__)
    started = time.perf_counter()
    outcome = "ok"
    try:
        yield
    except Exception:
        outcome = "error"
        raise
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        threshold = LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS
        level = logging.WARNING if elapsed_ms > threshold else logging.INFO
        log._log(
            level,
            f"{operation_name} finished in {elapsed_ms}ms",
            operation=operation_name,
            outcome=outcome,
            processing_time_ms=elapsed_ms,
            slow=elapsed_ms > threshold,
            **fields,
        )


def timed(operation_name: Optional[str] = None, logger: Optional[StructuredLogger] = None):
    """Decorator form of log_timing for plain and async functions."""
    def decorator(func: Callable) -> Callable:
        name = operation_name or func.__qualname__
        log = logger or get_structured_logger(func.__module__)

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def run_async(*args, **kwargs):
                with log_timing(name, logger=log):
                    return await func(*args, **kwargs)
            return run_async

        @wraps(func)
        def run(*args, **kwargs):
            with log_timing(name, logger=log):
                return func(*args, **kwargs)
        return run

    return decorator
