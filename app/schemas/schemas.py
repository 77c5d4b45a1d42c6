"""
Pydantic v2 schemas for API request/response validation.

Drafts travel as camelCase JSON (imagePrompt, topicId, createdAt); snake_case
names are accepted on input too.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.models import DraftStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Drafts ──────────────────────────────────────────────────
class DraftRead(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    title: str
    summary: str
    body: str
    image_prompt: str | None = None
    images: list[str] = Field(default_factory=list)
    status: DraftStatus
    topic_id: int | None = None
    created_at: datetime


class DraftUpdate(_CamelModel):
    """Editable fields. A missing, null or blank imagePrompt leaves the stored prompt as is."""

    title: str = Field(min_length=1, max_length=500)
    summary: str = Field(min_length=1)
    body: str = Field(min_length=1)
    image_prompt: str | None = None

    @field_validator("image_prompt")
    @classmethod
    def blank_prompt_is_unset(cls, v: str | None) -> str | None:
        """Blank counts as not provided."""
        if v is None or not v.strip():
            return None
        return v.strip()

    def to_fields(self) -> dict:
        return self.model_dump(exclude_none=True)


# ── Health check ────────────────────────────────────────────
class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str = "0.1.0"
    environment: str
    database: str = "connected"
