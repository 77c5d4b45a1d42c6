"""
Topic ingestion stage: ranked feed items into the topics table.

Safe to re-run at any time: candidates colliding on (url, source) or
(title, source) are skipped by the store, and duplicates inside one batch are
dropped before the insert.
"""

from __future__ import annotations

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.logging import get_logger
from app.models.repositories import TopicRepository
from app.services.feed_service import RedditFeedService

logger = get_logger(__name__)


def _dedupe_batch(candidates: list[dict]) -> list[dict]:
    """Keep the first candidate per natural key within a single batch."""
    seen: set[tuple[str, str, str]] = set()
    unique: list[dict] = []
    for c in candidates:
        keys = {("url", c["url"], c["source"]), ("title", c["title"], c["source"])}
        if keys & seen:
            continue
        seen |= keys
        unique.append(c)
    return unique


async def ingest_topics(
    session: AsyncSession,
    settings: Settings,
    client: httpx.AsyncClient,
    *,
    subreddit: str | None = None,
    limit: int | None = None,
) -> int:
    """Fetch the feed and insert new topics. Returns the number inserted."""
    subreddit = subreddit or settings.feed_subreddit
    limit = settings.feed_limit if limit is None else limit

    logger.info("topic_ingestion_started", subreddit=subreddit, limit=limit)
    candidates = await RedditFeedService(client).fetch_hot(subreddit, limit)

    unique = _dedupe_batch(candidates)
    inserted = await TopicRepository(session).add_many(unique)
    await session.commit()

    logger.info(
        "topics_ingested",
        fetched=len(candidates),
        unique=len(unique),
        inserted=inserted,
        skipped=len(candidates) - inserted,
    )
    return inserted
