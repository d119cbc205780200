from __future__ import annotations
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional, List
from dotenv import load_dotenv
load_dotenv()  # populates os.environ from .env


class Settings(BaseSettings):
    # Storage
    data_dir: str = Field("data", env="DATA_DIR")
    inventory_file: str = Field("data/inventory.json", env="INVENTORY_FILE")
    events_file: str = Field("data/inventory_log.jsonl", env="EVENTS_FILE")
    notifications_file: str = Field("data/notifications.json", env="NOTIFICATIONS_FILE")
    metrics_file: str = Field("latency_log.jsonl", env="METRICS_FILE")  # relative to data_dir

    # Expiration reminders
    expiring_soon_days: int = Field(3, ge=0, env="EXPIRING_SOON_DAYS")
    notification_hour: int = Field(9, ge=0, le=23, env="NOTIFICATION_HOUR")
    immediate_delay_seconds: int = Field(60, ge=0, env="IMMEDIATE_DELAY_SECONDS")
    # IANA name, e.g. "Europe/Berlin"; system local time when unset
    timezone: Optional[str] = Field(None, env="TIMEZONE")

    # Logging
    log_level: str = Field("INFO", env="LOG_LEVEL")

    # CORS
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["http://127.0.0.1:8001"])

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
