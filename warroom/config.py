"""WarRoom configuration system using Pydantic Settings."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WarRoomConfig(BaseSettings):
    """Main configuration class. Loads from .env file and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "WarRoom"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 3001
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3001"]

    # Database
    database_url: str = "sqlite+aiosqlite:///./warroom.db"
    db_wal_mode: bool = True
    db_busy_timeout: int = 5000  # ms
    db_synchronous: str = "NORMAL"

    # Logging
    log_dir: str = "logs"
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    # Live feed
    ws_max_connections: int = 100
    ws_queue_size: int = 50
    ws_heartbeat_interval: int = 30  # seconds

    # Incident listing
    default_page_limit: int = 20
    max_page_limit: int = 100

    @field_validator(
        "ws_max_connections",
        "ws_queue_size",
        "ws_heartbeat_interval",
        "default_page_limit",
        "max_page_limit",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("db_synchronous")
    @classmethod
    def validate_synchronous(cls, v: str) -> str:
        allowed = {"OFF", "NORMAL", "FULL", "EXTRA"}
        if v.upper() not in allowed:
            raise ValueError(f"db_synchronous must be one of {allowed}")
        return v.upper()


def get_config() -> WarRoomConfig:
    """Factory function to create config instance."""
    return WarRoomConfig()
