"""
Mailbox list ingestion.
Turns uploaded CSV rows or JSON objects into MailboxRecords.
Rows missing any of the three fields are dropped without error.
"""

import csv
import io
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from models.migration_models import MailboxRecord

REQUIRED_COLUMNS = ["SourceEmail", "TargetEmail", "DisplayName"]


@dataclass
class IngestResult:
    records: List[MailboxRecord]
    dropped: int = 0

    @property
    def total(self) -> int:
        return len(self.records)


def _normalize_key(key: Any) -> str:
    # "SourceEmail", "source_email" and " Source Email " all map to "sourceemail"
    return "".join(ch for ch in str(key).lower() if ch.isalnum())


def _value(row: Dict[str, Any], column: str) -> str:
    value = row.get(_normalize_key(column))
    return str(value).strip() if value is not None else ""


def ingest_rows(rows: Iterable[Dict[str, Any]]) -> IngestResult:
    records = []
    dropped = 0
    for row in rows:
        normalized = {_normalize_key(k): v for k, v in (row or {}).items() if k is not None}
        source, target, name = (_value(normalized, column) for column in REQUIRED_COLUMNS)
        if source and target and name:
            records.append(MailboxRecord(source_email=source, target_email=target, display_name=name))
        else:
            dropped += 1
    return IngestResult(records=records, dropped=dropped)


def parse_csv(content: bytes) -> IngestResult:
    """Parse an uploaded CSV; raises ValueError when it cannot be read"""
    try:
        text = content.decode("utf-8-sig")  # Handle BOM
    except UnicodeDecodeError as e:
        raise ValueError(f"File is not UTF-8 text: {e}")

    reader = csv.DictReader(io.StringIO(text))
    headers = {_normalize_key(h) for h in (reader.fieldnames or [])}
    missing = [c for c in REQUIRED_COLUMNS if _normalize_key(c) not in headers]
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")

    try:
        return ingest_rows(reader)
    except csv.Error as e:
        raise ValueError(f"Failed to parse CSV: {e}")
