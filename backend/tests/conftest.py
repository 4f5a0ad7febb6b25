"""
Pytest Configuration and Fixtures

This file contains shared fixtures and configuration for all tests.
"""

import asyncio
import os
from typing import AsyncGenerator, Dict, Iterable, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Set test environment before importing app
os.environ["MAILBOX_MODE"] = "simulation"
os.environ["BATCH_DELAY_SECONDS"] = "0"
os.environ["PROGRESS_INTERVAL_SECONDS"] = "0.01"
os.environ["LOG_FORMAT"] = "text"

from main import app
from models.migration_models import MailboxRecord, MigrationConfig
from services.migration import (
    InMemorySessionStore,
    MigrationOrchestrator,
    ProgressNotifier,
    get_orchestrator,
    get_progress_notifier,
    get_session_store,
)
from services.migration.providers.base import (
    BaseMailboxMover,
    ConnectionStatus,
    MailboxLookup,
    MoveResult,
)


# ===========================================
# Mailbox Mover Test Double
# ===========================================

class FakeMailboxMover(BaseMailboxMover):
    """
    Deterministic mailbox mover.

    Records every move start/end so tests can check batch ordering and
    concurrency.
    """

    name = "fake"

    def __init__(
        self,
        missing: Iterable[str] = (),
        sizes: Optional[Dict[str, float]] = None,
        failing: Iterable[str] = (),
        raising: Iterable[str] = (),
        delays: Optional[Dict[str, float]] = None,
        delay: float = 0.0,
    ):
        self.missing = set(missing)
        self.sizes = sizes or {}
        self.failing = set(failing)
        self.raising = set(raising)
        self.delays = delays or {}
        self.delay = delay
        self.events = []
        self.active = 0
        self.max_active = 0
        self.lookups = []

    async def test_connection(self) -> ConnectionStatus:
        return ConnectionStatus(success=True, message="Fake mailbox system", version="test")

    async def lookup(self, identity: str) -> MailboxLookup:
        self.lookups.append(identity)
        if identity in self.missing:
            return MailboxLookup(exists=False, error="Mailbox not found")
        return MailboxLookup(
            exists=True,
            size_mb=self.sizes.get(identity, 512.0),
            item_count=1200,
            database="TestDB01",
        )

    async def move(self, source_identity: str, target_identity: str) -> MoveResult:
        self.events.append(("start", source_identity))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(source_identity, self.delay))
            if source_identity in self.raising:
                raise RuntimeError(f"Exchange unavailable for {source_identity}")
            if source_identity in self.failing:
                return MoveResult(success=False, error="Mailbox locked")
            return MoveResult(
                success=True,
                move_request_id=f"Move-{source_identity}",
                items_moved=1500,
                data_moved_mb=2048.0,
            )
        finally:
            self.active -= 1
            self.events.append(("end", source_identity))


# ===========================================
# Service Fixtures
# ===========================================

@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def mover() -> FakeMailboxMover:
    return FakeMailboxMover()


@pytest.fixture
def orchestrator(store, mover) -> MigrationOrchestrator:
    return MigrationOrchestrator(store, mover, batch_delay=0)


@pytest.fixture
def notifier(store) -> ProgressNotifier:
    return ProgressNotifier(store, interval=0.01)


@pytest_asyncio.fixture(scope="function")
async def client(orchestrator, store, notifier) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client wired to the per-test store, orchestrator and notifier.
    """
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_progress_notifier] = lambda: notifier

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    await orchestrator.wait_idle()
    app.dependency_overrides.clear()


# ===========================================
# Factory Fixtures
# ===========================================

@pytest.fixture
def make_record():
    """
    Factory fixture to create mailbox records.
    """
    from faker import Faker
    fake = Faker()

    def _make_record(
        source_email: str = None,
        target_email: str = None,
        display_name: str = None,
    ) -> MailboxRecord:
        user = fake.unique.user_name()
        return MailboxRecord(
            source_email=source_email or f"{user}@source.example.com",
            target_email=target_email or f"{user}@target.example.com",
            display_name=display_name or fake.name(),
        )

    return _make_record


@pytest.fixture
def make_session(store, make_record):
    """
    Factory fixture to create a stored session with no background work.
    """
    async def _make_session(session_id: str = "session-1", count: int = 2, batch_size: int = 10):
        records = [make_record() for _ in range(count)]
        return await store.create(session_id, MigrationConfig(batch_size=batch_size), records)

    return _make_session


@pytest.fixture
def sample_csv() -> bytes:
    """
    CSV upload with one incomplete row.
    """
    return (
        "\ufeffSourceEmail,TargetEmail,DisplayName\n"
        "a@x.com,a@y.com,A\n"
        "b@x.com,b@y.com,B\n"
        "c@x.com,c@y.com,\n"
    ).encode("utf-8")
