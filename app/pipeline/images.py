"""
Image enrichment stage: attach one stock photo to the newest imageless draft.

No retry counter: a draft that fails here keeps an empty image list, so the
selection query picks it again on the next run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.errors import ConfigurationError
from app.core.logging import get_logger
from app.models.repositories import DraftRepository
from app.services.image_service import ImageService

if TYPE_CHECKING:
    from app.models.models import Draft

logger = get_logger(__name__)


async def enrich_draft_image(
    session: AsyncSession,
    settings: Settings,
    client: httpx.AsyncClient,
) -> Draft | None:
    """Append an image URL to the selected draft. Returns the updated draft, or None if skipped."""
    if not settings.unsplash_access_key:
        raise ConfigurationError("UNSPLASH_ACCESS_KEY is not set")

    drafts = DraftRepository(session)
    draft = await drafts.find_pending_without_images()
    if draft is None:
        logger.info("image_enrichment_skipped", reason="no pending drafts need an image")
        return None

    prompt = (draft.image_prompt or "").strip()
    if not prompt:
        logger.info("image_enrichment_skipped", reason="draft has no image prompt", draft_id=draft.id)
        return None

    logger.info("image_search_started", draft_id=draft.id, prompt=prompt)
    image_url = await ImageService(settings.unsplash_access_key, client).search_landscape(prompt)

    draft = await drafts.append_image(draft.id, image_url)
    await session.commit()

    logger.info("draft_image_added", draft_id=draft.id, image_count=len(draft.images))
    return draft
