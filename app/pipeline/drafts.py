"""
Draft synthesis stage: newest label + recent headlines into one pending draft.

There is no "consumed" marker on labels: running this stage twice without a
new label drafts the same label twice. The email notification runs after the
draft is committed and can never fail the stage.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field, StrictStr
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.errors import ConfigurationError
from app.core.logging import get_logger
from app.core.retry import Sleep
from app.models.repositories import DraftRepository, TopicLabelRepository, TopicRepository
from app.pipeline.labels import ai_retry_policy
from app.services.email_service import EmailService
from app.services.gemini_service import GeminiService

if TYPE_CHECKING:
    from app.models.models import Draft, Topic

logger = get_logger(__name__)

DRAFT_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "summary": {"type": "STRING"},
        "body": {"type": "STRING"},
        "imagePrompt": {"type": "STRING"},
    },
    "required": ["title", "summary", "body", "imagePrompt"],
}

DRAFT_PROMPT = """You are an expert content creator and tech journalist. Your task is to generate a draft for a blog post based on a main topic and a list of related, recent headlines. The tone should be informative, engaging, and neutral.

Main Topic: "{label}"

Sample Headlines for Context:
{headlines}

Generate the content for the following fields:
- title: A compelling, SEO-friendly blog post title.
- summary: A concise, one-paragraph summary of the article (2-4 sentences).
- body: The full article content, written in clear paragraphs. It should be around 300-500 words.
- imagePrompt: A short, simple list of 2-4 keywords for searching a stock photo library like Unsplash. The keywords should be concrete and visually descriptive. For example: "data technology global network", "abstract blue gold", or "futuristic circuit board"."""


class DraftContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: StrictStr = Field(min_length=1)
    summary: StrictStr = Field(min_length=1)
    body: StrictStr = Field(min_length=1)
    image_prompt: StrictStr = Field(min_length=1, alias="imagePrompt")


class DraftNotifier(Protocol):
    def send_draft_notification(self, draft: Draft) -> bool: ...


def build_draft_prompt(label: str, topics: list[Topic]) -> str:
    headlines = "\n".join(f"- {t.title}" for t in topics)
    return DRAFT_PROMPT.format(label=label, headlines=headlines)


async def notify_draft_created(notifier: DraftNotifier, draft: Draft) -> None:
    """Best-effort: log every failure, never raise."""
    try:
        await asyncio.to_thread(notifier.send_draft_notification, draft)
    except Exception as e:
        logger.error("draft_notification_failed", draft_id=draft.id, error=str(e))


async def synthesize_draft(
    session: AsyncSession,
    settings: Settings,
    client: httpx.AsyncClient,
    *,
    notifier: DraftNotifier | None = None,
    sleep: Sleep = asyncio.sleep,
) -> Draft | None:
    """Create one pending draft from the newest label, or return None if there is nothing to draft."""
    if not settings.gemini_api_key:
        raise ConfigurationError("GEMINI_API_KEY is not set")

    label = await TopicLabelRepository(session).get_latest()
    if label is None:
        logger.info("draft_synthesis_skipped", reason="no candidate label")
        return None

    topics = await TopicRepository(session).get_recent(settings.draft_context_topics)
    if not topics:
        logger.info("draft_synthesis_skipped", reason="no context topics", label=label.label)
        return None

    logger.info("draft_synthesis_started", label=label.label, context_topics=len(topics))
    gemini = GeminiService(
        settings.gemini_api_key,
        client,
        model=settings.gemini_model,
        retry_policy=ai_retry_policy(settings),
        sleep=sleep,
    )
    content = await gemini.generate(
        build_draft_prompt(label.label, topics),
        DRAFT_RESPONSE_SCHEMA,
        DraftContent,
    )

    draft = await DraftRepository(session).create(
        title=content.title,
        summary=content.summary,
        body=content.body,
        image_prompt=content.image_prompt,
        topic_id=topics[0].id,
    )
    await session.commit()
    logger.info("draft_created", draft_id=draft.id, title=draft.title, label=label.label)

    await notify_draft_created(notifier or EmailService(settings), draft)
    return draft
