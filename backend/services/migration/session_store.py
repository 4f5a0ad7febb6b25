"""
Migration session storage.

Sessions live for the lifetime of the process: created when a migration
starts, mutated by the orchestrator, read by progress and report consumers.
Nothing evicts them. The orchestrator only depends on SessionStore, so a
durable backing can replace InMemorySessionStore.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Dict, List

from models.migration_models import MailboxRecord, MigrationConfig, MigrationSession
from .exceptions import SessionExistsError, SessionNotFoundError

SessionMutator = Callable[[MigrationSession], None]


class SessionStore(ABC):
    """Storage interface for migration sessions"""

    @abstractmethod
    async def create(
        self, session_id: str, config: MigrationConfig, records: List[MailboxRecord]
    ) -> MigrationSession:
        pass

    @abstractmethod
    async def get(self, session_id: str) -> MigrationSession:
        """Raises SessionNotFoundError for unknown ids"""
        pass

    @abstractmethod
    async def update(self, session_id: str, mutator: SessionMutator) -> MigrationSession:
        """Apply mutator and recompute stats as one atomic step"""
        pass

    @abstractmethod
    async def list_ids(self) -> List[str]:
        pass


class InMemorySessionStore(SessionStore):
    """
    Process-wide dictionary of sessions.

    Updates to one session are serialized by a per-session lock, so many
    in-flight items can record outcomes without lost updates.
    """

    def __init__(self):
        self._sessions: Dict[str, MigrationSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    async def create(
        self, session_id: str, config: MigrationConfig, records: List[MailboxRecord]
    ) -> MigrationSession:
        if session_id in self._sessions:
            raise SessionExistsError(session_id)

        session = MigrationSession(
            id=session_id,
            config=config,
            records=list(records),
            start_time=datetime.utcnow(),
        )
        self._sessions[session_id] = session
        self._locks[session_id] = asyncio.Lock()
        return session

    async def get(self, session_id: str) -> MigrationSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id)

    async def update(self, session_id: str, mutator: SessionMutator) -> MigrationSession:
        session = await self.get(session_id)
        async with self._locks[session_id]:
            mutator(session)
            session.recompute_stats()
        return session

    async def list_ids(self) -> List[str]:
        return list(self._sessions)


session_store = InMemorySessionStore()


def get_session_store() -> SessionStore:
    return session_store
