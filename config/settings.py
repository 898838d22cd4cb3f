"""Centralized configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ==================== Server ====================
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # ==================== MongoDB ====================
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "tasker"

    # ==================== SMTP (Email) ====================
    smtp_host: Optional[str] = None  # If None, print messages to console
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from_email: Optional[str] = None
    smtp_timeout_seconds: float = 10.0

    # ==================== Registration ====================
    registration_code_ttl_seconds: int = 30

    # ==================== Deadline Reminders ====================
    reminders_enabled: bool = True
    reminder_interval_seconds: float = 3600.0
    reminder_window_hours: float = 24.0

    # Handle empty strings for optional string fields
    @field_validator(
        "smtp_host",
        "smtp_user",
        "smtp_password",
        "smtp_from_email",
        mode="before",
    )
    @classmethod
    def parse_optional_str(cls, v):
        if v == "":
            return None
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
