"""
Mailbox Migration - Domain Models
Records, validation and migration outcomes, and per-session state
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

MIN_BATCH_SIZE = 1
MAX_BATCH_SIZE = 50


class InvalidTransitionError(Exception):
    """Raised when a finished migration outcome is asked to change state"""
    pass


class ValidationStatus(str, Enum):
    PASSED = "Passed"
    WARNING = "Warning"
    FAILED = "Failed"


class OutcomeStatus(str, Enum):
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    FAILED = "Failed"


class SessionStatus(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    READY = "ready"
    MIGRATING = "migrating"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.ERROR)


class LogLevel(str, Enum):
    INFO = "Info"
    SUCCESS = "Success"
    WARNING = "Warning"
    ERROR = "Error"
    PROGRESS = "Progress"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() + "Z" if value else None


@dataclass(frozen=True)
class MailboxRecord:
    """One source/target/display-name triple requested for migration"""
    source_email: str
    target_email: str
    display_name: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "source_email": self.source_email,
            "target_email": self.target_email,
            "display_name": self.display_name,
        }


@dataclass(frozen=True)
class MigrationConfig:
    """Per-session settings, fixed when the session is created"""
    batch_size: int = 10
    validate_only: bool = False
    skip_validation: bool = False

    def __post_init__(self):
        clamped = max(MIN_BATCH_SIZE, min(MAX_BATCH_SIZE, int(self.batch_size)))
        object.__setattr__(self, "batch_size", clamped)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_size": self.batch_size,
            "validate_only": self.validate_only,
            "skip_validation": self.skip_validation,
        }


@dataclass(frozen=True)
class ValidationOutcome:
    """Pre-flight check result for one mailbox"""
    record: MailboxRecord
    source_exists: bool
    source_size_mb: float
    status: ValidationStatus
    issues: List[str] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.record.to_dict(),
            "source_exists": self.source_exists,
            "source_size_mb": round(self.source_size_mb, 2),
            "status": self.status.value,
            "issues": list(self.issues),
            "messages": list(self.messages),
        }


def format_duration(seconds: float) -> str:
    """
    Format a wall-clock duration as MM:SS.

    There is no hour component: minutes wrap at 60, so a 61 minute move
    reads as 01:00.
    """
    total = int(seconds)
    minutes = (total // 60) % 60
    return f"{minutes:02d}:{total % 60:02d}"


@dataclass
class MigrationOutcome:
    """
    Result of migrating one mailbox.

    Starts In Progress and transitions exactly once, to Completed or Failed.
    """
    record: MailboxRecord
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[str] = None
    status: OutcomeStatus = OutcomeStatus.IN_PROGRESS
    items_moved: int = 0
    data_moved: str = "0 MB"
    error_message: str = ""

    @classmethod
    def begin(cls, record: MailboxRecord, start_time: Optional[datetime] = None) -> "MigrationOutcome":
        return cls(record=record, start_time=start_time or datetime.utcnow())

    @property
    def is_finished(self) -> bool:
        return self.status != OutcomeStatus.IN_PROGRESS

    def _finish(self, status: OutcomeStatus, end_time: Optional[datetime]):
        if self.is_finished:
            raise InvalidTransitionError(
                f"Outcome for {self.record.source_email} is already {self.status.value}"
            )
        self.end_time = end_time or datetime.utcnow()
        self.duration = format_duration((self.end_time - self.start_time).total_seconds())
        self.status = status

    def complete(self, items_moved: int, data_moved: str, end_time: Optional[datetime] = None):
        self._finish(OutcomeStatus.COMPLETED, end_time)
        self.items_moved = items_moved
        self.data_moved = data_moved

    def fail(self, error_message: str, end_time: Optional[datetime] = None):
        self._finish(OutcomeStatus.FAILED, end_time)
        self.error_message = error_message or "Migration failed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.record.to_dict(),
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "duration": self.duration,
            "status": self.status.value,
            "items_moved": self.items_moved,
            "data_moved": self.data_moved,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class SessionStats:
    """Counters derived from a session's outcomes; never edited directly"""
    total: int = 0
    successful: int = 0
    failed: int = 0
    in_progress: int = 0
    skipped: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: List[MigrationOutcome], skipped: int = 0) -> "SessionStats":
        successful = sum(1 for o in outcomes if o.status == OutcomeStatus.COMPLETED)
        failed = sum(1 for o in outcomes if o.status == OutcomeStatus.FAILED)
        in_progress = sum(1 for o in outcomes if o.status == OutcomeStatus.IN_PROGRESS)
        return cls(
            total=len(outcomes) + skipped,
            successful=successful,
            failed=failed,
            in_progress=in_progress,
            skipped=skipped,
        )

    @property
    def success_rate(self) -> int:
        finished = self.successful + self.failed
        return round(self.successful / finished * 100) if finished else 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "in_progress": self.in_progress,
            "skipped": self.skipped,
        }


@dataclass(frozen=True)
class LogEntry:
    """One line of a session's user-facing activity log"""
    timestamp: datetime
    level: LogLevel
    message: str
    mailbox_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": _iso(self.timestamp),
            "level": self.level.value,
            "message": self.message,
            "mailbox_id": self.mailbox_id,
        }


@dataclass
class MigrationSession:
    """State of one migration run, keyed by a caller-supplied id"""
    id: str
    config: MigrationConfig
    records: List[MailboxRecord]
    validation_outcomes: Optional[List[ValidationOutcome]] = None
    outcomes: List[MigrationOutcome] = field(default_factory=list)
    stats: SessionStats = field(default_factory=SessionStats)
    logs: List[LogEntry] = field(default_factory=list)
    status: SessionStatus = SessionStatus.IDLE
    skipped: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    error: Optional[str] = None

    def log(self, message: str, level: LogLevel = LogLevel.INFO, mailbox_id: Optional[str] = None) -> LogEntry:
        entry = LogEntry(timestamp=datetime.utcnow(), level=level, message=message, mailbox_id=mailbox_id)
        self.logs.append(entry)
        return entry

    def recompute_stats(self):
        self.stats = SessionStats.from_outcomes(self.outcomes, self.skipped)

    def progress_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "stats": self.stats.to_dict(),
            "results": [o.to_dict() for o in self.outcomes],
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "config": self.config.to_dict(),
            "status": self.status.value,
            "stats": self.stats.to_dict(),
            "total_records": len(self.records),
            "validation_results": (
                [v.to_dict() for v in self.validation_outcomes]
                if self.validation_outcomes is not None else None
            ),
            "results": [o.to_dict() for o in self.outcomes],
            "logs": [entry.to_dict() for entry in self.logs],
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "error": self.error,
        }
