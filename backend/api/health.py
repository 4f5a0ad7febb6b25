"""
Mailbox Migration Dashboard - Health Check API
Reports service health and the mailbox system connection
"""
from fastapi import APIRouter, Depends
from typing import Dict, Any
from datetime import datetime

from services.migration import MigrationOrchestrator, SessionStore, get_orchestrator, get_session_store

router = APIRouter(tags=["Health"])


async def check_mailbox_system(orchestrator: MigrationOrchestrator) -> Dict[str, Any]:
    """Check the mailbox mover connection"""
    try:
        start = datetime.utcnow()
        status = await orchestrator.mover.test_connection()
        latency = (datetime.utcnow() - start).total_seconds() * 1000
        return {
            "status": "healthy" if status.success else "unhealthy",
            "mode": orchestrator.mover.name,
            "latency_ms": round(latency, 2),
            "message": status.message,
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "mode": orchestrator.mover.name,
            "latency_ms": None,
            "message": str(e),
        }


@router.get("/health")
async def health_check(
    orchestrator: MigrationOrchestrator = Depends(get_orchestrator),
    store: SessionStore = Depends(get_session_store)
):
    """Service health with dependency checks"""
    mailbox_system = await check_mailbox_system(orchestrator)
    sessions = await store.list_ids()

    return {
        "status": "healthy" if mailbox_system["status"] == "healthy" else "degraded",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "checks": {
            "mailbox_system": mailbox_system,
        },
        "sessions": len(sessions),
    }
