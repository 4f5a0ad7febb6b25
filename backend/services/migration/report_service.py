"""
Migration Reports
=================
Renders a session's outcomes as a CSV export or a self-contained HTML
document. The HTML carries its own styles and references no external
resources, so it opens offline.
"""

import csv
import io
from datetime import date, datetime
from html import escape
from typing import List, Optional

from models.migration_models import (
    MigrationSession,
    OutcomeStatus,
    SessionStats,
    ValidationStatus,
)

CSV_COLUMNS = [
    "Display Name",
    "Source Email",
    "Target Email",
    "Status",
    "Start Time",
    "End Time",
    "Duration",
    "Items Migrated",
    "Data Migrated",
    "Error Message",
]

REPORT_FORMATS = {
    "csv": ("text/csv", "csv"),
    "html": ("text/html", "html"),
}


def report_filename(fmt: str, today: Optional[date] = None) -> str:
    today = today or datetime.utcnow().date()
    extension = REPORT_FORMATS[fmt][1]
    return f"Migration_Report_{today.isoformat()}.{extension}"


def _timestamp(value: Optional[datetime]) -> str:
    return value.isoformat() + "Z" if value else "N/A"


def report_rows(session: MigrationSession) -> List[List[str]]:
    """One row per outcome, in CSV_COLUMNS order"""
    rows = []
    for outcome in session.outcomes:
        rows.append([
            outcome.record.display_name,
            outcome.record.source_email,
            outcome.record.target_email,
            outcome.status.value,
            _timestamp(outcome.start_time),
            _timestamp(outcome.end_time),
            outcome.duration or "N/A",
            str(outcome.items_moved),
            outcome.data_moved,
            outcome.error_message or "",
        ])
    return rows


def render_csv(session: MigrationSession) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_COLUMNS)
    writer.writerows(report_rows(session))
    return output.getvalue().encode("utf-8")


REPORT_STYLES = """
        body { font-family: 'Segoe UI', Arial, sans-serif; margin: 20px; background: #f5f5f5; }
        .container { max-width: 1200px; margin: 0 auto; background: white; padding: 30px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }
        h1 { color: #0078d4; border-bottom: 3px solid #0078d4; padding-bottom: 10px; }
        h2 { color: #333; margin-top: 30px; }
        .summary { display: grid; grid-template-columns: repeat(4, 1fr); gap: 20px; margin: 20px 0; }
        .stat-card { background: #5a67d8; color: white; padding: 20px; border-radius: 8px; text-align: center; }
        .stat-card.success { background: #11998e; }
        .stat-card.failed { background: #e53e3e; }
        .stat-card.warning { background: #dd8a2c; }
        .stat-number { font-size: 48px; font-weight: bold; }
        .stat-label { font-size: 14px; opacity: 0.9; margin-top: 5px; }
        table { width: 100%; border-collapse: collapse; margin: 20px 0; }
        th { background: #0078d4; color: white; padding: 12px; text-align: left; }
        td { padding: 10px; border-bottom: 1px solid #ddd; }
        .status-completed, .status-passed { color: #10b981; font-weight: bold; }
        .status-failed { color: #ef4444; font-weight: bold; }
        .status-in-progress, .status-warning { color: #d97706; font-weight: bold; }
        .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #ddd; text-align: center; color: #666; }
"""


def _status_class(status: str) -> str:
    return "status-" + status.lower().replace(" ", "-")


def _stat_card(value: int, label: str, variant: str = "") -> str:
    css = f"stat-card {variant}".strip()
    return (
        f'<div class="{css}"><div class="stat-number">{value}</div>'
        f'<div class="stat-label">{escape(label)}</div></div>'
    )


def _outcome_table(session: MigrationSession) -> str:
    rows = []
    for outcome in session.outcomes:
        status = outcome.status.value
        cells = [
            escape(outcome.record.display_name),
            escape(outcome.record.source_email),
            escape(outcome.record.target_email),
            f'<span class="{_status_class(status)}">{escape(status)}</span>',
            escape(outcome.duration or "N/A"),
            str(outcome.items_moved),
            escape(outcome.data_moved),
            escape(outcome.error_message or ""),
        ]
        rows.append("<tr>" + "".join(f"<td>{cell}</td>" for cell in cells) + "</tr>")

    return f"""<table>
            <thead>
                <tr>
                    <th>Display Name</th><th>Source Email</th><th>Target Email</th><th>Status</th>
                    <th>Duration</th><th>Items</th><th>Data Migrated</th><th>Error</th>
                </tr>
            </thead>
            <tbody>
                {''.join(rows)}
            </tbody>
        </table>"""


def _validation_table(session: MigrationSession) -> str:
    if not session.validation_outcomes:
        return ""

    rows = []
    for v in session.validation_outcomes:
        status = v.status.value
        rows.append(
            "<tr>"
            f"<td>{escape(v.record.display_name)}</td>"
            f"<td>{escape(v.record.source_email)}</td>"
            f"<td>{round(v.source_size_mb)} MB</td>"
            f'<td><span class="{_status_class(status)}">{escape(status)}</span></td>'
            f"<td>{escape('; '.join(v.issues))}</td>"
            "</tr>"
        )

    counts = {
        s: sum(1 for v in session.validation_outcomes if v.status == s)
        for s in ValidationStatus
    }
    summary = ", ".join(f"{counts[s]} {s.value.lower()}" for s in ValidationStatus)

    return f"""<h2>Validation Results</h2>
        <p>{escape(summary)}</p>
        <table>
            <thead>
                <tr><th>Display Name</th><th>Source Email</th><th>Size</th><th>Status</th><th>Issues</th></tr>
            </thead>
            <tbody>
                {''.join(rows)}
            </tbody>
        </table>"""


def render_html(session: MigrationSession, generated_at: Optional[datetime] = None) -> bytes:
    """Styled report with summary counters and one table row per outcome"""
    generated_at = generated_at or datetime.utcnow()
    stats = SessionStats.from_outcomes(session.outcomes, session.skipped)

    cards = "".join([
        _stat_card(stats.total, "Total Mailboxes"),
        _stat_card(stats.successful, "Successful", "success"),
        _stat_card(stats.failed, "Failed", "failed"),
        _stat_card(stats.in_progress, OutcomeStatus.IN_PROGRESS.value, "warning"),
    ])

    document = f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Exchange Mailbox Migration Report</title>
    <style>{REPORT_STYLES}</style>
</head>
<body>
    <div class="container">
        <h1>Exchange Mailbox Migration Report</h1>
        <p><strong>Session:</strong> {escape(session.id)}</p>
        <p><strong>Generated:</strong> {generated_at.strftime('%Y-%m-%d %H:%M:%S')} UTC</p>

        <div class="summary">{cards}</div>

        <h2>Migration Results</h2>
        {_outcome_table(session)}

        {_validation_table(session)}

        <div class="footer">
            <p>Exchange Mailbox Migration Report</p>
        </div>
    </div>
</body>
</html>
"""
    return document.encode("utf-8")


def render_report(session: MigrationSession, fmt: str, generated_at: Optional[datetime] = None) -> bytes:
    if fmt == "csv":
        return render_csv(session)
    if fmt == "html":
        return render_html(session, generated_at)
    raise ValueError(f"Invalid format: {fmt}. Use csv or html")
