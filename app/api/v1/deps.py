"""
Shared FastAPI dependencies for routes.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.models.database import get_db
from app.models.repositories import DraftRepository

DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]


async def get_draft_repo(session: DbSession) -> DraftRepository:
    return DraftRepository(session)


DraftRepo = Annotated[DraftRepository, Depends(get_draft_repo)]
