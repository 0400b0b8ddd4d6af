"""
Sentry error tracking integration.
"""

import os
import logging

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from .logging import get_logger, get_correlation_id

logger = get_logger(__name__)

# Upstream engine failures are expected traffic, recorded per engine in the
# search response and in Prometheus; they are not application errors.
_IGNORED_EXCEPTION_TYPES = {"SourceFetchError", "ExtractionSkip", "RateLimitError"}


def init_sentry() -> bool:
    """
    Initialize Sentry error tracking.

    Environment variables:
    - SENTRY_DSN: Sentry Data Source Name (required)
    - SENTRY_ENVIRONMENT: Environment name (falls back to ENVIRONMENT)
    - SENTRY_RELEASE: Release version
    - SENTRY_TRACES_SAMPLE_RATE: Fraction of transactions to trace (0.0-1.0)
    - SENTRY_ENABLE: Set to "false" to disable Sentry

    Returns True when Sentry was initialized.
    """
    sentry_dsn = os.getenv("SENTRY_DSN")
    sentry_enable = os.getenv("SENTRY_ENABLE", "true").lower() == "true"

    if not sentry_dsn or not sentry_enable:
        logger.info("Sentry is disabled (SENTRY_DSN not set or SENTRY_ENABLE=false)")
        return False

    environment = os.getenv("SENTRY_ENVIRONMENT") or os.getenv("ENVIRONMENT", "development")
    release = os.getenv("SENTRY_RELEASE") or "unknown"
    is_production = environment == "production"
    traces_sample_rate = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.2" if is_production else "0.0"))

    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=environment,
        release=f"vidveil-backend@{release}",
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=traces_sample_rate,
        # Search queries are user data.
        send_default_pii=False,
        attach_stacktrace=True,
        max_breadcrumbs=50,
        before_send=before_send_hook,
    )

    logger.info(
        "Sentry initialized",
        extra={"environment": environment, "release": release, "traces_sample_rate": traces_sample_rate},
    )
    return True


def before_send_hook(event, hint):
    """Drop expected upstream noise and tag events with the correlation ID."""
    exc_info = hint.get("exc_info") if hint else None
    if exc_info and exc_info[0] is not None and exc_info[0].__name__ in _IGNORED_EXCEPTION_TYPES:
        return None

    if "exception" in event:
        for exc_value in event["exception"].get("values", []):
            if "client disconnected" in str(exc_value.get("value", "")).lower():
                return None

    correlation_id = get_correlation_id()
    if correlation_id:
        event.setdefault("tags", {})["correlation_id"] = correlation_id

    return event


def capture_exception(exc: Exception, **kwargs) -> None:
    """Capture an exception with the correlation ID and optional tags/extra."""
    with sentry_sdk.new_scope() as scope:
        correlation_id = get_correlation_id()
        if correlation_id:
            scope.set_tag("correlation_id", correlation_id)

        for key, value in kwargs.get("tags", {}).items():
            scope.set_tag(key, value)

        for key, value in kwargs.get("extra", {}).items():
            scope.set_extra(key, value)

        sentry_sdk.capture_exception(exc)
