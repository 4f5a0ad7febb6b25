"""
Pre-flight mailbox validation.
Checks that the source mailbox exists and the target address is well formed.
"""

import logging
import re
from typing import List, Optional

from core.config import settings
from models.migration_models import MailboxRecord, ValidationOutcome, ValidationStatus
from .providers.base import BaseMailboxMover, MailboxLookup

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ISSUE_SOURCE_NOT_FOUND = "Source mailbox not found"
ISSUE_INVALID_TARGET = "Invalid target email format"
ISSUE_LARGE_MAILBOX = "Large mailbox (>10GB) - migration may take extended time"


class MailboxValidator:
    """Decides Passed / Warning / Failed for each mailbox record"""

    def __init__(self, mover: BaseMailboxMover, large_mailbox_threshold_mb: Optional[float] = None):
        self.mover = mover
        self.large_mailbox_threshold_mb = (
            large_mailbox_threshold_mb
            if large_mailbox_threshold_mb is not None
            else settings.LARGE_MAILBOX_THRESHOLD_MB
        )

    async def _lookup(self, identity: str) -> MailboxLookup:
        try:
            return await self.mover.lookup(identity)
        except Exception as e:
            # A failed lookup counts as a missing mailbox
            logger.warning(f"Lookup error for {identity}: {e}")
            return MailboxLookup(exists=False, error=str(e))

    async def validate(self, record: MailboxRecord) -> ValidationOutcome:
        lookup = await self._lookup(record.source_email)

        if not lookup.exists:
            return ValidationOutcome(
                record=record,
                source_exists=False,
                source_size_mb=0.0,
                status=ValidationStatus.FAILED,
                issues=[ISSUE_SOURCE_NOT_FOUND],
                messages=[f"Source mailbox {record.source_email} does not exist"],
            )

        if not EMAIL_PATTERN.match(record.target_email):
            return ValidationOutcome(
                record=record,
                source_exists=True,
                source_size_mb=lookup.size_mb,
                status=ValidationStatus.FAILED,
                issues=[ISSUE_INVALID_TARGET],
                messages=[f"Target email {record.target_email} is not valid"],
            )

        summary = f"Source mailbox exists ({round(lookup.size_mb)}MB"
        if lookup.item_count is not None:
            summary += f", {lookup.item_count:,} items"
        messages = [summary + ")"]
        if lookup.database:
            messages.append(f"Database: {lookup.database}")

        status = ValidationStatus.PASSED
        issues = []
        if lookup.size_mb > self.large_mailbox_threshold_mb:
            status = ValidationStatus.WARNING
            issues.append(ISSUE_LARGE_MAILBOX)
            messages.append("Large mailbox detected - consider scheduling during off-hours")

        return ValidationOutcome(
            record=record,
            source_exists=True,
            source_size_mb=lookup.size_mb,
            status=status,
            issues=issues,
            messages=messages,
        )

    async def validate_many(self, records: List[MailboxRecord]) -> List[ValidationOutcome]:
        """Validate records one at a time, preserving input order"""
        return [await self.validate(record) for record in records]
