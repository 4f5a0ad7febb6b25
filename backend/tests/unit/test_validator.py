"""
Mailbox Validator Unit Tests
"""

import pytest
from unittest.mock import AsyncMock

from conftest import FakeMailboxMover
from models.migration_models import MailboxRecord, ValidationStatus
from services.migration.validator import (
    ISSUE_INVALID_TARGET,
    ISSUE_LARGE_MAILBOX,
    ISSUE_SOURCE_NOT_FOUND,
    MailboxValidator,
)

pytestmark = pytest.mark.unit


class TestMailboxValidator:
    """Pass / warning / fail policy."""

    @pytest.mark.asyncio
    async def test_existing_mailbox_passes(self):
        validator = MailboxValidator(FakeMailboxMover(), large_mailbox_threshold_mb=10000)
        outcome = await validator.validate(MailboxRecord("a@x.com", "a@y.com", "A"))

        assert outcome.status == ValidationStatus.PASSED
        assert outcome.source_exists is True
        assert outcome.source_size_mb == 512.0
        assert outcome.issues == []
        assert outcome.messages[0] == "Source mailbox exists (512MB, 1,200 items)"
        assert "Database: TestDB01" in outcome.messages

    @pytest.mark.asyncio
    async def test_missing_source_fails(self):
        validator = MailboxValidator(FakeMailboxMover(missing=["a@x.com"]))
        outcome = await validator.validate(MailboxRecord("a@x.com", "a@y.com", "A"))

        assert outcome.status == ValidationStatus.FAILED
        assert outcome.source_exists is False
        assert outcome.issues == [ISSUE_SOURCE_NOT_FOUND]

    @pytest.mark.asyncio
    async def test_missing_source_short_circuits_target_check(self):
        validator = MailboxValidator(FakeMailboxMover(missing=["a@x.com"]))
        outcome = await validator.validate(MailboxRecord("a@x.com", "not-an-address", "A"))

        assert outcome.issues == [ISSUE_SOURCE_NOT_FOUND]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", ["no-at-sign", "user@nodot", "spa ce@y.com", "@y.com"])
    async def test_malformed_target_fails(self, target):
        validator = MailboxValidator(FakeMailboxMover(sizes={"a@x.com": 50000}))
        outcome = await validator.validate(MailboxRecord("a@x.com", target, "A"))

        assert outcome.status == ValidationStatus.FAILED
        # Size warning is not evaluated once the target is rejected
        assert outcome.issues == [ISSUE_INVALID_TARGET]

    @pytest.mark.asyncio
    async def test_large_mailbox_warns(self):
        mover = FakeMailboxMover(sizes={"big@x.com": 10000.5})
        validator = MailboxValidator(mover, large_mailbox_threshold_mb=10000)
        outcome = await validator.validate(MailboxRecord("big@x.com", "big@y.com", "Big"))

        assert outcome.status == ValidationStatus.WARNING
        assert outcome.issues == [ISSUE_LARGE_MAILBOX]

    @pytest.mark.asyncio
    async def test_threshold_is_exclusive(self):
        mover = FakeMailboxMover(sizes={"edge@x.com": 10000})
        validator = MailboxValidator(mover, large_mailbox_threshold_mb=10000)
        outcome = await validator.validate(MailboxRecord("edge@x.com", "edge@y.com", "Edge"))

        assert outcome.status == ValidationStatus.PASSED

    @pytest.mark.asyncio
    async def test_lookup_error_counts_as_missing(self):
        mover = FakeMailboxMover()
        mover.lookup = AsyncMock(side_effect=RuntimeError("timeout"))
        validator = MailboxValidator(mover)

        outcome = await validator.validate(MailboxRecord("a@x.com", "a@y.com", "A"))

        assert outcome.status == ValidationStatus.FAILED
        assert outcome.issues == [ISSUE_SOURCE_NOT_FOUND]

    @pytest.mark.asyncio
    async def test_validation_is_deterministic(self):
        validator = MailboxValidator(FakeMailboxMover(sizes={"a@x.com": 20000}), large_mailbox_threshold_mb=10000)
        record = MailboxRecord("a@x.com", "a@y.com", "A")

        first = await validator.validate(record)
        second = await validator.validate(record)

        assert (first.status, first.issues) == (second.status, second.issues)

    @pytest.mark.asyncio
    async def test_validate_many_preserves_input_order(self):
        mover = FakeMailboxMover(missing=["b@x.com"])
        validator = MailboxValidator(mover)
        records = [
            MailboxRecord("c@x.com", "c@y.com", "C"),
            MailboxRecord("b@x.com", "b@y.com", "B"),
            MailboxRecord("a@x.com", "a@y.com", "A"),
        ]

        outcomes = await validator.validate_many(records)

        assert [o.record.source_email for o in outcomes] == ["c@x.com", "b@x.com", "a@x.com"]
        assert [o.status for o in outcomes] == [
            ValidationStatus.PASSED, ValidationStatus.FAILED, ValidationStatus.PASSED
        ]
