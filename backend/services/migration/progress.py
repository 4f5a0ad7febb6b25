"""
Progress notifier.

Cooperative polling: each consumer reads its session every `interval`
seconds and receives whatever changed. Log entries are tracked with a
cursor, so each entry is delivered once per consumer. Disconnecting stops
the consumer's loop and never touches the migration itself.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from core.config import settings
from core.logging import get_logger
from .exceptions import SessionNotFoundError
from .session_store import SessionStore, get_session_store

logger = get_logger("migration.progress")

DisconnectCheck = Callable[[], Awaitable[bool]]


@dataclass
class ProgressEvent:
    event: str
    data: Dict[str, Any]

    def to_sse(self) -> str:
        """Render as a Server-Sent Events frame"""
        payload = json.dumps({"type": self.event, **self.data}, default=str)
        return f"event: {self.event}\ndata: {payload}\n\n"


async def _never_disconnected() -> bool:
    return False


class ProgressNotifier:
    """Streams a session's progress to one consumer at a time"""

    def __init__(self, store: SessionStore, interval: Optional[float] = None):
        self.store = store
        self.interval = settings.PROGRESS_INTERVAL_SECONDS if interval is None else interval

    async def stream(
        self,
        session_id: str,
        is_disconnected: DisconnectCheck = _never_disconnected,
    ) -> AsyncIterator[ProgressEvent]:
        """
        Yield connected, then log/progress events each tick, then exactly one
        complete event once the session reaches a terminal status.

        An unknown session yields a single error event after the connected
        acknowledgment.
        """
        yield ProgressEvent("connected", {"message": "Progress stream connected", "session_id": session_id})

        log = logger.bind(session_id=session_id)
        log_cursor = 0
        while True:
            await asyncio.sleep(self.interval)

            if await is_disconnected():
                log.info("Progress consumer disconnected", action="progress_cancelled")
                return

            try:
                session = await self.store.get(session_id)
            except SessionNotFoundError:
                yield ProgressEvent("error", {"message": "Session not found", "session_id": session_id})
                return

            # Snapshot before yielding so every event of one tick shows the same state
            new_logs = [entry.to_dict() for entry in session.logs[log_cursor:]]
            log_cursor += len(new_logs)
            progress = session.progress_dict()
            terminal = session.status.is_terminal
            final = session.to_dict() if terminal else None

            for entry in new_logs:
                yield ProgressEvent("log", {"log": entry})

            yield ProgressEvent("progress", {"session": progress})

            if terminal:
                yield ProgressEvent("complete", {"session": final})
                return


# Singleton instance
_notifier: Optional[ProgressNotifier] = None


def get_progress_notifier() -> ProgressNotifier:
    """Get or create the progress notifier."""
    global _notifier
    if _notifier is None:
        _notifier = ProgressNotifier(get_session_store())
    return _notifier
