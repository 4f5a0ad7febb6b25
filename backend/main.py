"""
Mailbox Migration Dashboard
Validate | Migrate | Progress | Reports
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import time
from dotenv import load_dotenv

load_dotenv()

from core.config import settings

# Setup structured logging
from core.logging import setup_logging, get_logger, log_request

setup_logging(
    level=settings.LOG_LEVEL,
    json_format=settings.LOG_FORMAT == "json"
)

logger = get_logger("migration.main")

from core.sentry import init_sentry
from api import migration_router, health_router
from services.migration import get_orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_sentry()
    logger.info(
        "Mailbox Migration Dashboard starting...",
        action="app_startup",
        mailbox_mode=settings.MAILBOX_MODE
    )
    yield
    await get_orchestrator().mover.close()
    logger.info("Mailbox Migration Dashboard shutting down...", action="app_shutdown")

app = FastAPI(
    title="Mailbox Migration Dashboard",
    description="Batch Exchange mailbox migration - validation, live progress and reports",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    # The progress stream stays open for the whole migration
    if request.url.path == "/health" or request.url.path.endswith("/progress"):
        return await call_next(request)

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000

    if request.url.path.startswith("/api/"):
        await log_request(
            request=request,
            response_status=response.status_code,
            duration_ms=duration_ms
        )

    return response

@app.get("/health")
async def health():
    return {"status": "healthy", "service": "mailbox-migration"}

@app.get("/api/v1")
async def api_info():
    return {
        "version": "v1",
        "endpoints": {
            "upload": "/api/v1/migration/upload",
            "validate": "/api/v1/migration/validate",
            "start": "/api/v1/migration/start",
            "sessions": "/api/v1/migration/sessions/{session_id}",
            "progress": "/api/v1/migration/progress",
            "reports": "/api/v1/migration/reports",
            "connection": "/api/v1/migration/connection",
            "health": "/api/v1/health"
        }
    }

app.include_router(migration_router, prefix="/api/v1")
app.include_router(health_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
