import os
import logging
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()

class SchedulerSettings(BaseModel):
    enabled: bool = Field(default=os.getenv("ENABLE_SCHEDULER", "true").lower() == "true")
    timezone: str = Field(default=os.getenv("SCHEDULER_TIMEZONE", "Asia/Kolkata"))
    # Monthly leave credit runs on the 1st of every month at 00:01
    credit_hour: int = Field(default=int(os.getenv("CREDIT_CRON_HOUR", "0")))
    credit_minute: int = Field(default=int(os.getenv("CREDIT_CRON_MINUTE", "1")))

class Config(BaseModel):
    app_name: str = "HRMS Leave Ledger"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./database.db")

    # Identity of the acting user (authentication lives in front of this service)
    actor_header: str = os.getenv("ACTOR_HEADER", "X-User-Email")
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

    # Background jobs
    scheduler: SchedulerSettings = SchedulerSettings()

settings = Config()

_logger = logging.getLogger(__name__)
if settings.environment == "production" and settings.database_url.startswith("sqlite"):
    _logger.warning("⚠ Running production with a SQLite database: balance increments are only atomic per process.")
