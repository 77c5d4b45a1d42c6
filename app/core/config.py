"""
Centralised configuration via Pydantic Settings.

Reads from .env in dev and from the process environment in production.
Every pipeline stage and the admin app receive a Settings instance explicitly;
get_settings() is only called at the process root.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Application ─────────────────────────────────────────
    app_env: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]
    app_base_url: str = "http://localhost:8000"

    # ── Database ────────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./dev.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def assemble_db_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgres:// but SQLAlchemy needs postgresql+asyncpg://."""
        if v.startswith("postgres://"):
            v = v.replace("postgres://", "postgresql+asyncpg://", 1)
        elif v.startswith("postgresql://"):
            v = v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.database_url

    # ── LLM: Gemini ────────────────────────────────────────
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"

    # ── Images: Unsplash ───────────────────────────────────
    unsplash_access_key: str = ""

    # ── Email ───────────────────────────────────────────────
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    email_sender: str = ""
    email_to: str = ""

    @property
    def email_recipients(self) -> list[str]:
        raw = self.email_to or self.smtp_user
        return [e.strip() for e in raw.split(",") if e.strip()]

    @property
    def email_from(self) -> str:
        return self.email_sender or self.smtp_user

    # ── Pipeline tunables ───────────────────────────────────
    feed_subreddit: str = "technology"
    feed_limit: int = Field(default=25, gt=0)
    label_topic_count: int = Field(default=3, gt=0)
    draft_context_topics: int = Field(default=5, gt=0)
    ai_max_attempts: int = Field(default=3, ge=1)
    ai_backoff_base: float = Field(default=2.0, ge=0, description="Seconds before the first retry")
    http_timeout: float = 30.0


@lru_cache
def get_settings() -> Settings:
    return Settings()
