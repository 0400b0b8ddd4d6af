"""
Structured logging with request correlation IDs.

Usage:
    from observability import get_logger

    logger = get_logger(__name__)
    logger.info("Engine finished", extra={"engine": "pornhub", "results": 42})

Every record emitted while a request is in flight carries that request's
correlation ID, so the per-engine lines of one fan-out can be grouped.
"""

import logging
import os
import re
import uuid
from contextvars import ContextVar
from typing import Optional, Dict, Any

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "vidveil-backend"

_correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id_ctx.get()


def generate_correlation_id() -> str:
    return f"req-{uuid.uuid4().hex[:16]}"


class correlation_id_context:
    """Bind a correlation ID for the duration of a ``with`` block."""

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or generate_correlation_id()
        self.token = None

    def __enter__(self) -> str:
        self.token = _correlation_id_ctx.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        _correlation_id_ctx.reset(self.token)


class CorrelationIDFilter(logging.Filter):
    """Stamps correlation_id on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "none"
        return True


_URL_CREDENTIALS = re.compile(r"(\b[a-z][a-z0-9+.-]*://)[^/\s:@]+:[^/\s@]+@", re.IGNORECASE)
_URL_QUERY = re.compile(r"(\bhttps?://[^\s?#]+)\?[^\s#]+", re.IGNORECASE)
_STANDARD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}


def scrub(text: str) -> str:
    """Mask proxy credentials and the query strings of upstream search URLs."""
    text = _URL_CREDENTIALS.sub(r"\1[REDACTED]@", text)
    return _URL_QUERY.sub(r"\1?[REDACTED]", text)


class SensitiveDataFilter(logging.Filter):
    """Keeps search text and proxy credentials out of log output.

    Engine URLs carry the user's query in their query string and the SOCKS
    proxy URL may embed a username and password.
    """

    REDACTED_KEYS = {
        "q", "query", "search_query", "proxy_url", "tor_proxy_url",
        "sentry_dsn", "authorization", "cookie",
    }

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            record.msg = record.getMessage()
            record.args = None
        if isinstance(record.msg, str):
            record.msg = scrub(record.msg)

        for key, value in list(record.__dict__.items()):
            if key in _STANDARD_ATTRS:
                continue
            if key.lower() in self.REDACTED_KEYS:
                setattr(record, key, "[REDACTED]")
            elif isinstance(value, str):
                setattr(record, key, scrub(value))

        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that adds service and request context to each line."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["correlation_id"] = getattr(record, "correlation_id", "none")
        log_record["environment"] = os.getenv("ENVIRONMENT", "development")
        log_record["service"] = SERVICE_NAME

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging() -> None:
    """
    Configure the root logger.

    Environment variables:
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default INFO)
    - LOG_FORMAT: json or text (default: json in production, text elsewhere)
    - ENVIRONMENT: development, staging, production
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_format = os.getenv("LOG_FORMAT", "json" if os.getenv("ENVIRONMENT") == "production" else "text")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()

    if log_format == "json":
        formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(logger)s %(correlation_id)s %(message)s",
            rename_fields={"timestamp": "@timestamp"},
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIDFilter())
    handler.addFilter(SensitiveDataFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # Upstream engines are chatty; per-request lines come from the coordinator.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


setup_logging()
