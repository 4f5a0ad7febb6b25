# Mailbox migration service: validation, batch orchestration, progress and reports
# Sources are Exchange mailboxes, moved by a simulator or by PowerShell cmdlets

from .exceptions import MigrationError, SessionNotFoundError, SessionExistsError, MailboxMoverError
from .session_store import SessionStore, InMemorySessionStore, get_session_store
from .validator import MailboxValidator
from .orchestrator import MigrationOrchestrator, get_orchestrator, partition_batches
from .progress import ProgressNotifier, ProgressEvent, get_progress_notifier

__all__ = [
    "MigrationError",
    "SessionNotFoundError",
    "SessionExistsError",
    "MailboxMoverError",
    "SessionStore",
    "InMemorySessionStore",
    "get_session_store",
    "MailboxValidator",
    "MigrationOrchestrator",
    "get_orchestrator",
    "partition_batches",
    "ProgressNotifier",
    "ProgressEvent",
    "get_progress_notifier",
]
