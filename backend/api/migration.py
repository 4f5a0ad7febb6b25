"""
Mailbox Migration API endpoints.
Upload a mailbox list, validate it, run batched moves with live progress, download reports.
"""

import io
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from core.config import settings
from core.logging import get_logger
from models.migration_models import MigrationConfig
from services.migration import (
    MigrationOrchestrator,
    ProgressNotifier,
    SessionExistsError,
    SessionNotFoundError,
    SessionStore,
    get_orchestrator,
    get_progress_notifier,
    get_session_store,
)
from services.migration.ingest import ingest_rows, parse_csv
from services.migration.report_service import REPORT_FORMATS, render_report, report_filename

logger = get_logger("migration.api")

router = APIRouter(prefix="/migration", tags=["Migration"])


# ==================== REQUEST MODELS ====================

class MigrationConfigRequest(BaseModel):
    """Batch settings; batch_size is clamped to 1-50"""
    batch_size: int = Field(default_factory=lambda: settings.DEFAULT_BATCH_SIZE)
    validate_only: bool = False
    skip_validation: bool = False

    def to_config(self) -> MigrationConfig:
        return MigrationConfig(
            batch_size=self.batch_size,
            validate_only=self.validate_only,
            skip_validation=self.skip_validation,
        )


class ValidateRequest(BaseModel):
    """Mailbox rows to validate"""
    records: Optional[List[Dict[str, Any]]] = None
    config: MigrationConfigRequest = Field(default_factory=MigrationConfigRequest)


class StartMigrationRequest(BaseModel):
    """Request to start a migration session"""
    session_id: Optional[str] = None
    records: Optional[List[Dict[str, Any]]] = None
    config: MigrationConfigRequest = Field(default_factory=MigrationConfigRequest)


# ==================== HELPER FUNCTIONS ====================

def _require_records(rows: Optional[List[Dict[str, Any]]]):
    if rows is None:
        raise HTTPException(status_code=400, detail="Invalid mailbox list")

    result = ingest_rows(rows)
    if not result.records:
        raise HTTPException(
            status_code=400,
            detail="No complete mailbox records (SourceEmail, TargetEmail, DisplayName are required)"
        )
    return result


# ==================== INGESTION & VALIDATION ====================

@router.post("/upload")
async def upload_mailbox_list(file: UploadFile = File(...)):
    """
    Parse a CSV mailbox list.
    Rows missing SourceEmail, TargetEmail or DisplayName are dropped.
    """
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="File must be CSV format (.csv)")

    # One byte past the limit is enough to know the file is too large
    content = await file.read(settings.MAX_UPLOAD_BYTES + 1)

    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB"
        )

    try:
        result = parse_csv(content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(
        f"Loaded {result.total} mailboxes from CSV",
        action="mailbox_upload",
        dropped=result.dropped,
    )

    return {
        "records": [r.to_dict() for r in result.records],
        "total": result.total,
        "dropped": result.dropped,
    }


@router.post("/validate")
async def validate_mailboxes(
    request: ValidateRequest,
    orchestrator: MigrationOrchestrator = Depends(get_orchestrator)
):
    """Validate every mailbox; results are in input order"""
    ingested = _require_records(request.records)
    outcomes = await orchestrator.validator.validate_many(ingested.records)
    return [v.to_dict() for v in outcomes]


# ==================== MIGRATION EXECUTION ====================

@router.post("/start", status_code=202)
async def start_migration(
    request: StartMigrationRequest,
    orchestrator: MigrationOrchestrator = Depends(get_orchestrator)
):
    """
    Start a migration session.
    Returns immediately; follow progress on /progress.
    """
    if not request.session_id:
        raise HTTPException(status_code=400, detail="Missing session_id")

    ingested = _require_records(request.records)

    try:
        await orchestrator.start_migration(
            session_id=request.session_id,
            records=ingested.records,
            config=request.config.to_config(),
        )
    except SessionExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {"session_id": request.session_id, "status": "started", "total": ingested.total}


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store)
):
    """Current session snapshot (for polling)"""
    try:
        session = await store.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    return session.to_dict()


@router.get("/progress")
async def stream_progress(
    request: Request,
    session_id: Optional[str] = Query(None),
    notifier: ProgressNotifier = Depends(get_progress_notifier)
):
    """Server-Sent Events stream of session progress"""
    if not session_id:
        raise HTTPException(status_code=400, detail="Missing session_id")

    async def event_source():
        async for event in notifier.stream(session_id, request.is_disconnected):
            yield event.to_sse()

    return StreamingResponse(
        event_source(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        }
    )


# ==================== REPORTS ====================

@router.get("/reports")
async def download_report(
    session_id: Optional[str] = Query(None),
    format: str = Query("csv"),
    store: SessionStore = Depends(get_session_store)
):
    """Download the session report as CSV or HTML"""
    if not session_id:
        raise HTTPException(status_code=400, detail="Missing session_id")

    if format not in REPORT_FORMATS:
        raise HTTPException(status_code=400, detail="Invalid format. Use csv or html")

    try:
        session = await store.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")

    content = render_report(session, format)
    media_type = REPORT_FORMATS[format][0]

    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{report_filename(format)}"'}
    )


# ==================== MAILBOX SYSTEM ====================

@router.get("/connection")
async def test_connection(orchestrator: MigrationOrchestrator = Depends(get_orchestrator)):
    """Check connectivity to the mailbox system"""
    status = await orchestrator.mover.test_connection()
    return {
        "mode": orchestrator.mover.name,
        "success": status.success,
        "message": status.message,
        "version": status.version,
    }
