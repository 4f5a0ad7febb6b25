"""
Mailbox Migration - Domain Models
"""
from .migration_models import (
    MailboxRecord,
    MigrationConfig,
    ValidationStatus,
    ValidationOutcome,
    OutcomeStatus,
    MigrationOutcome,
    SessionStats,
    SessionStatus,
    LogLevel,
    LogEntry,
    MigrationSession,
    InvalidTransitionError,
    format_duration,
)

__all__ = [
    "MailboxRecord",
    "MigrationConfig",
    "ValidationStatus",
    "ValidationOutcome",
    "OutcomeStatus",
    "MigrationOutcome",
    "SessionStats",
    "SessionStatus",
    "LogLevel",
    "LogEntry",
    "MigrationSession",
    "InvalidTransitionError",
    "format_duration",
]
