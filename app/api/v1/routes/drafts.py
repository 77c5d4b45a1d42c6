"""
Draft review endpoints.

GET  /admin/drafts              — all drafts, newest first
GET  /admin/drafts/{id}         — one draft
POST /admin/drafts/{id}         — replace title / summary / body / imagePrompt
POST /admin/drafts/{id}/approve — pending → approved

Malformed ids and bodies are rejected with 400 by the validation handler in
app.main before any handler runs. Store failures, including updates that
address a missing draft or an unreachable server, become 500 with a fixed
message.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from app.api.v1.deps import DraftRepo
from app.core.logging import get_logger
from app.models.database import STORE_FAILURES
from app.schemas.schemas import DraftRead, DraftUpdate

router = APIRouter(prefix="/admin/drafts", tags=["drafts"])
logger = get_logger(__name__)


@router.get("", response_model=list[DraftRead])
async def list_drafts(repo: DraftRepo) -> list:
    try:
        return await repo.list_newest_first()
    except STORE_FAILURES as e:
        logger.error("draft_list_error", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to fetch drafts from the database.") from e


@router.get("/{draft_id}", response_model=DraftRead)
async def get_draft(draft_id: int, repo: DraftRepo):
    try:
        draft = await repo.get_by_id(draft_id)
    except STORE_FAILURES as e:
        logger.error("draft_fetch_error", draft_id=draft_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to fetch draft from the database.") from e

    if draft is None:
        raise HTTPException(status_code=404, detail="Draft not found.")
    return draft


@router.post("/{draft_id}", response_model=DraftRead)
async def update_draft(draft_id: int, body: DraftUpdate, repo: DraftRepo):
    """Replace the editable fields in one store mutation."""
    try:
        draft = await repo.update_fields(draft_id, **body.to_fields())
        await repo.session.commit()
    except STORE_FAILURES as e:
        await repo.session.rollback()
        logger.error("draft_update_error", draft_id=draft_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to update draft in the database.") from e

    logger.info("draft_updated", draft_id=draft_id, fields=sorted(body.to_fields()))
    return draft


@router.post("/{draft_id}/approve", response_model=DraftRead)
async def approve_draft(draft_id: int, repo: DraftRepo):
    """Terminal transition. Approving twice returns the approved draft unchanged."""
    try:
        draft = await repo.approve(draft_id)
        await repo.session.commit()
    except STORE_FAILURES as e:
        await repo.session.rollback()
        logger.error("draft_approve_error", draft_id=draft_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to approve draft.") from e

    logger.info("draft_approved", draft_id=draft.id)
    return draft
