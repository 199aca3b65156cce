# logbook/core/config.py
"""
Central configuration for the logbook backend.

This module defines a single `settings` object (Pydantic BaseSettings) that reads
configuration from environment variables and a local `.env` file.

Guiding principles:
- Config is declared once, imported everywhere.
- Sensible defaults for local dev.
- Secrets live in env vars; `.env` is never committed.
"""

from __future__ import annotations

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and optional `.env`.

    `.env` location:
      - uvicorn is started from `backend/`, so `.env` lives in `backend/.env`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # deployment environments often add extra env vars
        case_sensitive=False,
    )

    # -----------------------
    # Runtime
    # -----------------------
    ENV: str = Field(default="dev", description="Environment: dev|test|prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level (e.g., INFO, DEBUG)")

    # -----------------------
    # API / CORS
    # -----------------------
    API_PREFIX: str = Field(default="/api", description="Prefix for every API route")
    CORS_ALLOW_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins for the frontend",
    )

    # -----------------------
    # Listing
    # -----------------------
    DEFAULT_PAGE_LIMIT: int = Field(
        default=100,
        ge=1,
        description="Page size used by list endpoints when page[limit] is not given",
    )

    # -----------------------
    # Attachments
    # -----------------------
    ATTACHMENTS_DIR: str = Field(
        default="./data/attachments",
        description="Directory where uploaded attachment files are stored",
    )
    MAX_UPLOAD_MB: int = Field(
        default=25,
        ge=1,
        le=500,
        description="Max upload size in megabytes for attachment uploads",
    )

    @property
    def MAX_UPLOAD_BYTES(self) -> int:
        """Derived upload size limit in bytes."""
        return int(self.MAX_UPLOAD_MB) * 1024 * 1024

    # -----------------------
    # Database
    # -----------------------
    # Async SQLAlchemy URL for SQLite (aiosqlite driver).
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./data/logbook.db",
        description="SQLAlchemy async database URL",
    )

    # -----------------------
    # Validators / normalizers
    # -----------------------
    @field_validator("ENV")
    @classmethod
    def _normalize_env(cls, v: str) -> str:
        return (v or "dev").strip().lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        return (v or "INFO").strip().upper()

    @field_validator("API_PREFIX")
    @classmethod
    def _normalize_prefix(cls, v: str) -> str:
        v = (v or "").strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    @field_validator("CORS_ALLOW_ORIGINS")
    @classmethod
    def _clean_cors_origins(cls, v: List[str]) -> List[str]:
        # Drop empty entries to avoid weird CORS behavior.
        cleaned = []
        for origin in v or []:
            o = (origin or "").strip()
            if o:
                cleaned.append(o)
        return cleaned

    @field_validator("DATABASE_URL", "ATTACHMENTS_DIR")
    @classmethod
    def _strip_strings(cls, v: str) -> str:
        return (v or "").strip()


# Singleton instance imported across the codebase.
settings = Settings()
