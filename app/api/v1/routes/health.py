"""Health check endpoint — used by the platform healthcheck and monitoring."""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import text

from app.api.v1.deps import AppSettings, DbSession
from app.core.logging import get_logger
from app.models.database import STORE_FAILURES
from app.schemas.schemas import HealthResponse

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


@router.get("/healthz/", response_model=HealthResponse)
async def health_check(session: DbSession, settings: AppSettings) -> HealthResponse:
    try:
        await session.execute(text("SELECT 1"))
    except STORE_FAILURES as e:
        logger.error("health_db_ping_failed", error=str(e))
        return HealthResponse(status="degraded", environment=settings.app_env, database="unavailable")

    return HealthResponse(status="healthy", environment=settings.app_env, database="connected")
