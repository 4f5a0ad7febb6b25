"""
Simulated mailbox mover.
Stands in for Exchange during demos and tests: lookups answer from a
checksum of the address, moves take a random time and occasionally fail.
"""

import asyncio
import random
import time
from typing import Optional, Tuple

from .base import BaseMailboxMover, ConnectionStatus, MailboxLookup, MoveResult, MoveStatus


def mailbox_checksum(identity: str) -> int:
    return sum(ord(ch) for ch in identity)


class SimulatedMailboxMover(BaseMailboxMover):
    """Randomized stand-in for a real mailbox system"""

    name = "simulation"

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        move_delay: Tuple[float, float] = (2.0, 8.0),
        success_rate: float = 0.95,
    ):
        self.rng = rng or random.Random()
        self.move_delay = move_delay
        self.success_rate = success_rate

    async def test_connection(self) -> ConnectionStatus:
        return ConnectionStatus(
            success=True,
            message="Using mock data (simulation mode)",
            version="Simulation v1.0",
        )

    async def lookup(self, identity: str) -> MailboxLookup:
        # Roughly one address in ten is reported missing
        if mailbox_checksum(identity) % 10 == 0:
            return MailboxLookup(exists=False, error="Mailbox not found")

        return MailboxLookup(
            exists=True,
            size_mb=self.rng.random() * 5000 + 100,
            item_count=self.rng.randint(1000, 50999),
            database="SimulatedDB01",
        )

    async def move(self, source_identity: str, target_identity: str) -> MoveResult:
        low, high = self.move_delay
        await asyncio.sleep(low + self.rng.random() * (high - low))

        if self.rng.random() >= self.success_rate:
            return MoveResult(success=False, error="Simulated migration failure - mailbox locked")

        return MoveResult(
            success=True,
            move_request_id=f"Move-{int(time.time() * 1000)}-{self.rng.getrandbits(36):09x}",
            items_moved=self.rng.randint(1000, 50999),
            data_moved_mb=(self.rng.random() * 5 + 0.1) * 1024,
        )

    async def get_move_status(self, move_request_id: str) -> MoveStatus:
        return MoveStatus(
            status="Completed",
            percent_complete=100,
            bytes_transferred=int(self.rng.random() * 5000 * 1024 * 1024),
        )
