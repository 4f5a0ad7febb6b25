# Mailbox movers: the simulator and the PowerShell-backed Exchange mover

from typing import Optional

from core.config import settings
from .base import (
    BaseMailboxMover,
    MailboxLookup,
    MoveResult,
    MoveStatus,
    ConnectionStatus,
)
from .simulated_provider import SimulatedMailboxMover
from .powershell_provider import PowerShellMailboxMover

MOVERS = {
    SimulatedMailboxMover.name: SimulatedMailboxMover,
    PowerShellMailboxMover.name: PowerShellMailboxMover,
}


def create_mailbox_mover(mode: Optional[str] = None) -> BaseMailboxMover:
    """Build the mailbox mover selected by MAILBOX_MODE"""
    mode = (mode or settings.MAILBOX_MODE).lower()
    if mode not in MOVERS:
        raise ValueError(f"Unknown mailbox mode: {mode}. Use one of: {', '.join(MOVERS)}")
    return MOVERS[mode]()


__all__ = [
    "BaseMailboxMover",
    "MailboxLookup",
    "MoveResult",
    "MoveStatus",
    "ConnectionStatus",
    "SimulatedMailboxMover",
    "PowerShellMailboxMover",
    "create_mailbox_mover",
]
