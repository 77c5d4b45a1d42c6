"""
SQLAlchemy 2.0 ORM models.

Three entities: Topic (ingested feed item), TopicLabel (AI theme summary) and
Draft (the reviewable article). Uses mapped_column (SQLAlchemy 2.0 style).
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

LABEL_MAX_LENGTH = 200


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ── Enums ───────────────────────────────────────────────────
class DraftStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"


# ── Models ──────────────────────────────────────────────────
class Topic(Base):
    __tablename__ = "topics"
    __table_args__ = (
        UniqueConstraint("url", "source", name="uq_topics_url_source"),
        UniqueConstraint("title", "source", name="uq_topics_title_source"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500))
    subreddit: Mapped[str] = mapped_column(String(100))
    score: Mapped[int] = mapped_column(Integer, default=0)
    url: Mapped[str] = mapped_column(String(2000))
    source: Mapped[str] = mapped_column(String(50), default="reddit")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)


class TopicLabel(Base):
    __tablename__ = "topic_labels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label: Mapped[str] = mapped_column(String(LABEL_MAX_LENGTH), unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)


class Draft(Base):
    __tablename__ = "drafts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500))
    summary: Mapped[str] = mapped_column(Text)
    body: Mapped[str] = mapped_column(Text)
    image_prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    images: Mapped[list[str]] = mapped_column(JSON, default=list)
    status: Mapped[DraftStatus] = mapped_column(
        Enum(
            DraftStatus,
            name="draft_status",
            values_callable=lambda e: [member.value for member in e],
        ),
        default=DraftStatus.PENDING,
        index=True,
    )
    # Weak reference: the seeding topic, not enforced as a foreign key
    topic_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)
