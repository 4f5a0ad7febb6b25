"""
Base interface for mailbox movers.
The simulator and the PowerShell-backed Exchange mover implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Optional
from dataclasses import dataclass


@dataclass
class MailboxLookup:
    """What the source system knows about a mailbox"""
    exists: bool
    size_mb: float = 0.0
    item_count: Optional[int] = None
    database: Optional[str] = None
    error: Optional[str] = None


@dataclass
class MoveResult:
    """Outcome of one move request"""
    success: bool
    move_request_id: Optional[str] = None
    items_moved: int = 0
    data_moved_mb: float = 0.0
    error: Optional[str] = None

    @property
    def data_moved_label(self) -> str:
        if self.data_moved_mb >= 1024:
            return f"{self.data_moved_mb / 1024:.2f} GB"
        return f"{self.data_moved_mb:.0f} MB"


@dataclass
class MoveStatus:
    """Progress of a move request on the source system"""
    status: str
    percent_complete: int
    bytes_transferred: Optional[int] = None
    error: Optional[str] = None


@dataclass
class ConnectionStatus:
    success: bool
    message: str
    version: Optional[str] = None


class BaseMailboxMover(ABC):
    """Abstract base class for mailbox movers"""

    name: str = "base"

    @abstractmethod
    async def test_connection(self) -> ConnectionStatus:
        """Check that the mailbox system can be reached"""
        pass

    @abstractmethod
    async def lookup(self, identity: str) -> MailboxLookup:
        """Read-only existence and size check for a mailbox"""
        pass

    @abstractmethod
    async def move(self, source_identity: str, target_identity: str) -> MoveResult:
        """Move one mailbox; returns when the move has finished or failed"""
        pass

    async def get_move_status(self, move_request_id: str) -> MoveStatus:
        """Progress of a previously submitted move"""
        return MoveStatus(status="Unknown", percent_complete=0)

    async def close(self):
        """Release any connection to the mailbox system"""
        pass
