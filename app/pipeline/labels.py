"""
Label synthesis stage: recent topic titles into 3-5 short thematic labels.

Gemini calls go through the shared retry policy (503 "model overloaded" and
transport errors are retried with doubling backoff). Any terminal failure or a
payload that is not ``{"labels": [str, ...]}`` saves nothing.
"""

from __future__ import annotations

import asyncio

import httpx
from pydantic import BaseModel, StrictStr
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.errors import ConfigurationError
from app.core.logging import get_logger
from app.core.retry import RetryPolicy, Sleep
from app.models.models import LABEL_MAX_LENGTH
from app.models.repositories import TopicLabelRepository, TopicRepository
from app.services.gemini_service import GeminiService

logger = get_logger(__name__)

LABELS_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "labels": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["labels"],
}


class LabelSet(BaseModel):
    labels: list[StrictStr]


def build_labels_prompt(titles: list[str]) -> str:
    joined = "\n".join(titles)
    return (
        "Based on the following list of article titles, generate 3-5 concise and "
        "distinct topic labels that summarize the key themes. Each label should be "
        f"3-5 words long.\n\nTitles:\n{joined}"
    )


def ai_retry_policy(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.ai_max_attempts,
        initial_interval=settings.ai_backoff_base,
        backoff_factor=2.0,
    )


async def synthesize_labels(
    session: AsyncSession,
    settings: Settings,
    client: httpx.AsyncClient,
    *,
    sleep: Sleep = asyncio.sleep,
) -> int:
    """Generate labels for the newest topics. Returns the number of new labels."""
    if not settings.gemini_api_key:
        raise ConfigurationError("GEMINI_API_KEY is not set")

    topics = await TopicRepository(session).get_recent(settings.label_topic_count)
    if not topics:
        logger.info("label_synthesis_skipped", reason="no topics in store")
        return 0

    logger.info("label_synthesis_started", topic_count=len(topics))
    gemini = GeminiService(
        settings.gemini_api_key,
        client,
        model=settings.gemini_model,
        retry_policy=ai_retry_policy(settings),
        sleep=sleep,
    )
    result = await gemini.generate(
        build_labels_prompt([t.title for t in topics]),
        LABELS_RESPONSE_SCHEMA,
        LabelSet,
    )

    labels = list(dict.fromkeys(label.strip() for label in result.labels if label.strip()))
    oversized = [label for label in labels if len(label) > LABEL_MAX_LENGTH]
    if oversized:
        logger.warning("labels_dropped", reason="too long", count=len(oversized))
        labels = [label for label in labels if len(label) <= LABEL_MAX_LENGTH]
    if not labels:
        logger.info("label_synthesis_empty", reason="AI returned no labels")
        return 0

    inserted = await TopicLabelRepository(session).add_many(labels)
    await session.commit()

    logger.info("labels_saved", generated=labels, inserted=inserted)
    return inserted
