"""
Mailbox Migration Dashboard - Configuration
"""
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # Mailbox mover backend: "simulation" or "powershell"
    MAILBOX_MODE: str = "simulation"

    # PowerShell (Exchange Management Shell / Exchange Online)
    POWERSHELL_EXECUTABLE: str = "powershell.exe"
    POWERSHELL_TIMEOUT_SECONDS: float = 60.0

    # Batch processing
    DEFAULT_BATCH_SIZE: int = 10
    BATCH_DELAY_SECONDS: float = 5.0  # Pause between batches to ease load on Exchange

    # Progress stream
    PROGRESS_INTERVAL_SECONDS: float = 1.0

    # Validation
    LARGE_MAILBOX_THRESHOLD_MB: float = 10000.0

    # Uploads
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024  # 5MB

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # Sentry
    SENTRY_DSN: Optional[str] = None
    ENVIRONMENT: str = "development"
    SENTRY_RELEASE: Optional[str] = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
