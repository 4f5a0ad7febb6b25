"""
Mailbox Migration Dashboard API Routers
"""
from .migration import router as migration_router
from .health import router as health_router

__all__ = [
    "migration_router",
    "health_router",
]
