"""
Cron job entry point — runs exactly one pipeline stage and exits.

Usage:
    python -m cron.trigger ingest   # fetch trending topics
    python -m cron.trigger labels   # summarise recent topics into labels
    python -m cron.trigger draft    # draft a post from the newest label
    python -m cron.trigger image    # attach an image to the newest imageless draft

Suggested schedule: ingest hourly, labels and draft daily, image a few
minutes after draft.

IMPORTANT: This script must exit cleanly after completion.
Open DB connections will prevent the scheduler from marking the job as finished,
so the engine is always disposed of, even after a failure.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Settings, get_settings
from app.core.errors import ConfigurationError, PipelineError
from app.core.logging import bind_stage, get_logger, setup_logging
from app.models.database import create_engine, create_session_factory, init_models
from app.pipeline.drafts import synthesize_draft
from app.pipeline.images import enrich_draft_image
from app.pipeline.ingest import ingest_topics
from app.pipeline.labels import synthesize_labels

logger = get_logger("cron")

StageFn = Callable[..., Awaitable[Any]]

STAGES: dict[str, StageFn] = {
    "ingest": ingest_topics,
    "labels": synthesize_labels,
    "draft": synthesize_draft,
    "image": enrich_draft_image,
}


# Settings each stage cannot start without, checked before any store or network call.
REQUIRED_SETTINGS: dict[str, tuple[str, ...]] = {
    "ingest": ("database_url",),
    "labels": ("database_url", "gemini_api_key"),
    "draft": ("database_url", "gemini_api_key"),
    "image": ("database_url", "unsplash_access_key"),
}


def check_settings(stage: str, settings: Settings) -> None:
    missing = [name.upper() for name in REQUIRED_SETTINGS[stage] if not getattr(settings, name)]
    if missing:
        raise ConfigurationError(f"missing required settings: {', '.join(missing)}")


def _describe(result: Any) -> dict:
    if result is None:
        return {"outcome": "nothing_to_do"}
    if isinstance(result, int):
        return {"outcome": "ok", "inserted": result}
    return {"outcome": "ok", "draft_id": getattr(result, "id", None)}


async def run_stage(
    stage: str,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Run one stage against a fresh engine and HTTP client. Returns a process exit code."""
    stage_fn = STAGES[stage]
    bind_stage(stage)
    logger.info("cron_triggered")

    try:
        check_settings(stage, settings)
    except ConfigurationError as e:
        logger.error("cron_failed", error_type=type(e).__name__, error=str(e))
        return 1

    engine = create_engine(settings)
    try:
        await init_models(engine)
        session_factory = create_session_factory(engine)
        async with (
            httpx.AsyncClient(timeout=settings.http_timeout, transport=transport) as client,
            session_factory() as session,
        ):
            result = await stage_fn(session, settings, client)

        logger.info("cron_completed", **_describe(result))
        return 0

    except PipelineError as e:
        logger.error("cron_failed", error_type=type(e).__name__, error=str(e))
        return 1
    except (SQLAlchemyError, OSError) as e:
        logger.error("cron_failed", error_type="StoreError", error=str(e))
        return 1
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run one content pipeline stage.")
    parser.add_argument("stage", choices=sorted(STAGES))
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings)
    return asyncio.run(run_stage(args.stage, settings))


if __name__ == "__main__":
    sys.exit(main())
