"""Draft review pages: server-rendered list and edit views.

Edits and approvals are sent from the browser to the JSON admin API, so these
routes only ever read.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.api.v1.deps import DraftRepo
from app.core.logging import get_logger
from app.models.database import STORE_FAILURES

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))

router = APIRouter(prefix="/review", tags=["review"], include_in_schema=False)
logger = get_logger(__name__)


@router.get("/drafts", response_class=HTMLResponse)
async def drafts_page(request: Request, repo: DraftRepo):
    try:
        drafts = await repo.list_newest_first()
    except STORE_FAILURES as e:
        logger.error("review_list_error", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to fetch drafts from the database.") from e
    return templates.TemplateResponse(request, "drafts/index.html", {"drafts": drafts})


@router.get("/drafts/{draft_id}", response_class=HTMLResponse)
async def draft_detail_page(request: Request, draft_id: int, repo: DraftRepo):
    try:
        draft = await repo.get_by_id(draft_id)
    except STORE_FAILURES as e:
        logger.error("review_fetch_error", draft_id=draft_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to fetch draft from the database.") from e

    if draft is None:
        raise HTTPException(status_code=404, detail="Draft not found.")
    return templates.TemplateResponse(request, "drafts/detail.html", {"draft": draft})
