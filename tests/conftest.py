"""
Shared pytest fixtures for unit tests.

Every test gets its own SQLite database file and fake HTTP transports
(httpx.MockTransport) for Reddit, Gemini and Unsplash, so no network access or
API keys are needed.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

import httpx
import pytest

from app.core.config import Settings
from app.models.database import create_engine, create_session_factory, init_models
from app.models.models import Draft, DraftStatus, Topic, TopicLabel
from tests.fakes import BASE_TIME, RecordingTransport, SleepRecorder


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        gemini_api_key="test-gemini-key",
        unsplash_access_key="test-unsplash-key",
        smtp_user="",
        smtp_password="",
        app_base_url="http://review.test",
    )


@pytest.fixture
async def engine(settings: Settings):
    engine = create_engine(settings)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


# ── Seed helpers ────────────────────────────────────────────
@pytest.fixture
def add_topics(session_factory) -> Callable:
    """Insert topics with strictly increasing created_at; returns them oldest first."""

    async def _add(titles: list[str], start: datetime = BASE_TIME) -> list[Topic]:
        topics = [
            Topic(
                title=title,
                subreddit="technology",
                score=100 + i,
                url=f"https://reddit.com/r/technology/comments/{i}/{title.replace(' ', '_').lower()}",
                source="reddit",
                created_at=start + timedelta(minutes=i),
            )
            for i, title in enumerate(titles)
        ]
        async with session_factory() as s:
            s.add_all(topics)
            await s.commit()
        return topics

    return _add


@pytest.fixture
def add_label(session_factory) -> Callable:
    async def _add(label: str, created_at: datetime = BASE_TIME) -> TopicLabel:
        row = TopicLabel(label=label, created_at=created_at)
        async with session_factory() as s:
            s.add(row)
            await s.commit()
        return row

    return _add


@pytest.fixture
def add_draft(session_factory) -> Callable:
    async def _add(
        title: str = "How Chips Got Small",
        *,
        image_prompt: str | None = "circuit board",
        images: list[str] | None = None,
        status: DraftStatus = DraftStatus.PENDING,
        created_at: datetime = BASE_TIME,
    ) -> Draft:
        draft = Draft(
            title=title,
            summary="A short history of transistor scaling.",
            body="Once upon a time, transistors were large.",
            image_prompt=image_prompt,
            images=images if images is not None else [],
            status=status,
            topic_id=1,
            created_at=created_at,
        )
        async with session_factory() as s:
            s.add(draft)
            await s.commit()
        return draft

    return _add


@pytest.fixture
def fetch_draft(session_factory) -> Callable:
    """Read a draft back through a fresh session."""

    async def _fetch(draft_id: int) -> Draft | None:
        async with session_factory() as s:
            return await s.get(Draft, draft_id)

    return _fetch


# ── HTTP fakes ──────────────────────────────────────────────
@pytest.fixture
async def mock_http():
    """Build AsyncClients whose responses come from a handler; closed after the test."""
    clients: list[httpx.AsyncClient] = []

    def _build(handler: Callable[[httpx.Request], httpx.Response]):
        transport = RecordingTransport(handler)
        client = httpx.AsyncClient(transport=transport)
        clients.append(client)
        return client, transport

    yield _build

    for client in clients:
        await client.aclose()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


# ── Admin API client ────────────────────────────────────────
@pytest.fixture
async def api_client(session_factory):
    """ASGI client for the app, wired to the per-test database."""
    from app.main import app

    app.state.session_factory = session_factory
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
