"""
Migration orchestrator.
Runs a session's mailbox moves in fixed-size batches and records every outcome.
"""

import asyncio
from datetime import datetime
from typing import List, Optional, Set

from core.config import settings
from core.logging import get_logger
from core.sentry import capture_exception
from models.migration_models import (
    LogLevel,
    MailboxRecord,
    MigrationConfig,
    MigrationOutcome,
    MigrationSession,
    SessionStatus,
    ValidationStatus,
)
from .providers import BaseMailboxMover, MoveResult, create_mailbox_mover
from .session_store import SessionStore, get_session_store
from .validator import MailboxValidator

logger = get_logger("migration.orchestrator")


def partition_batches(records: List[MailboxRecord], batch_size: int) -> List[List[MailboxRecord]]:
    """Split records into consecutive chunks; the last chunk may be smaller"""
    return [records[i:i + batch_size] for i in range(0, len(records), batch_size)]


def move_to_end(outcomes: List[MigrationOutcome], outcome: MigrationOutcome):
    """Move one outcome object to the end of the list, matched by identity"""
    outcomes[:] = [o for o in outcomes if o is not outcome]
    outcomes.append(outcome)


def record_log(
    session: MigrationSession,
    message: str,
    level: LogLevel = LogLevel.INFO,
    mailbox_id: Optional[str] = None,
):
    """Append to the session's activity log and mirror it to the process log"""
    session.log(message, level, mailbox_id)
    log_func = logger.error if level == LogLevel.ERROR else logger.info
    log_func(message, session_id=session.id, mailbox_id=mailbox_id, action=f"session_{level.value.lower()}")


class MigrationOrchestrator:
    """Orchestrate batch mailbox migrations"""

    def __init__(
        self,
        store: SessionStore,
        mover: BaseMailboxMover,
        validator: Optional[MailboxValidator] = None,
        batch_delay: Optional[float] = None,
    ):
        self.store = store
        self.mover = mover
        self.validator = validator or MailboxValidator(mover)
        self.batch_delay = settings.BATCH_DELAY_SECONDS if batch_delay is None else batch_delay
        self._tasks: Set[asyncio.Task] = set()

    async def start_migration(
        self,
        session_id: str,
        records: List[MailboxRecord],
        config: MigrationConfig,
    ) -> MigrationSession:
        """Create the session and start processing it in the background"""
        session = await self.store.create(session_id, config, records)

        def announce(s: MigrationSession):
            record_log(
                s,
                f"Starting migration of {len(records)} mailboxes in batches of {config.batch_size}...",
                LogLevel.PROGRESS,
            )

        await self.store.update(session_id, announce)

        task = asyncio.create_task(self.run_migration(session_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return session

    async def wait_idle(self):
        """Wait for every background migration started by this orchestrator"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def run_migration(self, session_id: str):
        """Background migration task"""
        try:
            session = await self.store.get(session_id)
            config = session.config
            records = session.records

            if not config.skip_validation:
                records = await self._validation_pass(session_id, records)
                if config.validate_only:
                    await self._finish(session_id)
                    return

            await self._set_status(session_id, SessionStatus.MIGRATING)

            batches = partition_batches(records, config.batch_size)
            for number, batch in enumerate(batches, start=1):
                await self._run_batch(session_id, number, batch)

                if number < len(batches):
                    def announce_pause(s: MigrationSession):
                        record_log(s, f"Pausing {self.batch_delay:g} seconds before next batch...")

                    await self.store.update(session_id, announce_pause)
                    await asyncio.sleep(self.batch_delay)

            await self._finish(session_id)

        except Exception as e:
            logger.bind(session_id=session_id).exception(f"Migration session failed: {e}", action="session_error")
            capture_exception(e, session_id=session_id)
            await self._fail_session(session_id, str(e))

    async def _run_batch(self, session_id: str, number: int, batch: List[MailboxRecord]):
        def announce(s: MigrationSession):
            record_log(s, f"Processing Batch {number} ({len(batch)} mailboxes)", LogLevel.PROGRESS)

        await self.store.update(session_id, announce)

        results = await asyncio.gather(
            *(self._migrate_mailbox(session_id, record) for record in batch),
            return_exceptions=True,
        )

        for record, result in zip(batch, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Unhandled error migrating {record.source_email}: {result}",
                    session_id=session_id,
                    mailbox_id=record.source_email,
                )
                capture_exception(result, session_id=session_id, mailbox_id=record.source_email)

        def finished(s: MigrationSession):
            record_log(s, f"Batch {number} complete", LogLevel.PROGRESS)

        await self.store.update(session_id, finished)

    async def _migrate_mailbox(self, session_id: str, record: MailboxRecord) -> MigrationOutcome:
        outcome = MigrationOutcome.begin(record)

        def started(s: MigrationSession):
            s.outcomes.append(outcome)
            record_log(
                s,
                f"Starting migration: {record.source_email} -> {record.target_email}",
                LogLevel.PROGRESS,
                record.source_email,
            )

        await self.store.update(session_id, started)

        try:
            result = await self.mover.move(record.source_email, record.target_email)
        except Exception as e:
            result = MoveResult(success=False, error=str(e) or type(e).__name__)

        def finished(s: MigrationSession):
            if result.success:
                outcome.complete(result.items_moved, result.data_moved_label)
                record_log(
                    s,
                    f"Migration completed successfully - Items: {outcome.items_moved}, "
                    f"Data: {outcome.data_moved}, Duration: {outcome.duration}",
                    LogLevel.SUCCESS,
                    record.source_email,
                )
            else:
                outcome.fail(result.error or "Migration failed")
                record_log(s, f"Migration failed: {outcome.error_message}", LogLevel.ERROR, record.source_email)

            # Finished outcomes are kept in completion order
            move_to_end(s.outcomes, outcome)

        await self.store.update(session_id, finished)
        return outcome

    async def _validation_pass(self, session_id: str, records: List[MailboxRecord]) -> List[MailboxRecord]:
        """Validate every record; returns the records that may be migrated"""
        await self._set_status(session_id, SessionStatus.VALIDATING)

        outcomes = await self.validator.validate_many(records)
        passed = sum(1 for v in outcomes if v.status == ValidationStatus.PASSED)
        warnings = sum(1 for v in outcomes if v.status == ValidationStatus.WARNING)
        failed = sum(1 for v in outcomes if v.status == ValidationStatus.FAILED)

        def store_results(s: MigrationSession):
            s.validation_outcomes = outcomes
            s.skipped = failed
            s.status = SessionStatus.READY
            record_log(
                s,
                f"Validation complete: {passed} passed, {warnings} warnings, {failed} failed",
                LogLevel.SUCCESS if not failed else LogLevel.WARNING,
            )
            for v in outcomes:
                if v.status == ValidationStatus.FAILED:
                    record_log(
                        s,
                        f"Skipping mailbox: {'; '.join(v.issues)}",
                        LogLevel.WARNING,
                        v.record.source_email,
                    )

        await self.store.update(session_id, store_results)
        return [v.record for v in outcomes if v.status != ValidationStatus.FAILED]

    async def _set_status(self, session_id: str, status: SessionStatus):
        def apply(s: MigrationSession):
            s.status = status

        await self.store.update(session_id, apply)

    async def _finish(self, session_id: str):
        def complete(s: MigrationSession):
            for outcome in s.outcomes:
                if not outcome.is_finished:
                    outcome.fail("Migration did not report a result")
            s.recompute_stats()
            s.status = SessionStatus.COMPLETED
            s.end_time = datetime.utcnow()

            stats = s.stats
            if s.config.validate_only:
                record_log(s, "Validation-only run complete; no mailboxes were moved", LogLevel.SUCCESS)
            else:
                record_log(
                    s,
                    f"Migration Complete! Total: {stats.total}, Successful: {stats.successful}, "
                    f"Failed: {stats.failed}, Success Rate: {stats.success_rate}%",
                    LogLevel.SUCCESS,
                )

        await self.store.update(session_id, complete)

    async def _fail_session(self, session_id: str, error: str):
        def mark_error(s: MigrationSession):
            s.status = SessionStatus.ERROR
            s.error = error
            s.end_time = datetime.utcnow()
            record_log(s, f"Migration error: {error}", LogLevel.ERROR)

        try:
            await self.store.update(session_id, mark_error)
        except Exception as e:
            logger.error(f"Could not record failure for session {session_id}: {e}", session_id=session_id)


# Singleton instance
_orchestrator: Optional[MigrationOrchestrator] = None


def get_orchestrator() -> MigrationOrchestrator:
    """Get or create the process-wide orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = MigrationOrchestrator(get_session_store(), create_mailbox_mover())
    return _orchestrator
