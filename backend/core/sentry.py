"""
Sentry error tracking for the API and background migration tasks.

Disabled unless SENTRY_DSN is set. Events are tagged with the migration
session so failures in a batch run can be grouped per session.
"""

import asyncio
import logging
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from core.config import settings

logger = logging.getLogger(__name__)

# A browser closing the progress stream surfaces as one of these
CLIENT_DISCONNECT_ERRORS = (ConnectionResetError, BrokenPipeError, asyncio.CancelledError)

# Transactions that would only add noise: liveness probes and the long-lived SSE stream
UNTRACED_PATH_SUFFIXES = ("/health", "/progress")

FILTERED_HEADERS = ("authorization", "cookie")


def init_sentry(
    dsn: Optional[str] = None,
    environment: Optional[str] = None,
    release: Optional[str] = None,
) -> bool:
    """
    Initialize the Sentry SDK.

    Returns True when error tracking is active.
    """
    sentry_dsn = dsn or settings.SENTRY_DSN
    if not sentry_dsn:
        logger.info("Sentry DSN not configured; error tracking disabled")
        return False

    env = environment or settings.ENVIRONMENT

    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=env,
        release=release or settings.SENTRY_RELEASE,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            AsyncioIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        # Mailbox addresses are personal data
        send_default_pii=False,
        attach_stacktrace=True,
        before_send=before_send,
        before_send_transaction=before_send_transaction,
    )

    logger.info(f"Sentry initialized for environment: {env}")
    return True


def before_send(event, hint):
    """Drop client disconnects; mask credential headers"""
    exc_info = hint.get("exc_info")
    if exc_info and isinstance(exc_info[1], CLIENT_DISCONNECT_ERRORS):
        return None

    headers = (event.get("request") or {}).get("headers") or {}
    for name in list(headers):
        if name.lower() in FILTERED_HEADERS:
            headers[name] = "[Filtered]"

    return event


def before_send_transaction(event, hint):
    transaction = event.get("transaction") or ""
    if transaction.endswith(UNTRACED_PATH_SUFFIXES):
        return None
    return event


def capture_exception(
    exception: Exception,
    session_id: Optional[str] = None,
    mailbox_id: Optional[str] = None,
) -> Optional[str]:
    """Report an exception tagged with its migration session; returns the event id"""
    with sentry_sdk.new_scope() as scope:
        if session_id:
            scope.set_tag("migration_session", session_id)
        if mailbox_id:
            scope.set_context("mailbox", {"source": mailbox_id})
        return sentry_sdk.capture_exception(exception)
