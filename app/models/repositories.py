"""
Repositories: the only code that queries or mutates the store.

Bulk inserts of topics and labels use INSERT ... ON CONFLICT DO NOTHING so a
batch can always be re-run safely; the unique constraints on the tables decide
what counts as a duplicate.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import RecordNotFoundError, StoreError
from app.models.models import Base, Draft, DraftStatus, Topic, TopicLabel

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def insert_skip_duplicates(
    session: AsyncSession, model: type[Base], rows: Sequence[dict[str, Any]]
) -> int:
    """Insert ``rows`` in one statement, silently skipping unique-key collisions.

    Returns the number of rows actually inserted.
    """
    if not rows:
        return 0

    dialect = session.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise StoreError(f"duplicate-skip insert is not supported on {dialect}")

    stmt = insert(model).values(list(rows)).on_conflict_do_nothing().returning(model.id)
    result = await session.execute(stmt)
    return len(result.scalars().all())


class TopicRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add_many(self, rows: Sequence[dict[str, Any]]) -> int:
        return await insert_skip_duplicates(self.session, Topic, rows)

    async def get_recent(self, limit: int) -> list[Topic]:
        stmt = select(Topic).order_by(Topic.created_at.desc(), Topic.id.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class TopicLabelRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add_many(self, labels: Sequence[str]) -> int:
        return await insert_skip_duplicates(
            self.session, TopicLabel, [{"label": label} for label in labels]
        )

    async def get_latest(self) -> TopicLabel | None:
        stmt = (
            select(TopicLabel)
            .order_by(TopicLabel.created_at.desc(), TopicLabel.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


class DraftRepository:
    """Draft persistence plus the pending → approved transition."""

    EDITABLE_FIELDS = frozenset({"title", "summary", "body", "image_prompt"})

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_newest_first(self) -> list[Draft]:
        stmt = select(Draft).order_by(Draft.created_at.desc(), Draft.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_id(self, draft_id: int) -> Draft | None:
        return await self.session.get(Draft, draft_id)

    async def create(self, **kwargs: Any) -> Draft:
        kwargs.setdefault("status", DraftStatus.PENDING)
        kwargs.setdefault("images", [])
        draft = Draft(**kwargs)
        self.session.add(draft)
        await self.session.flush()
        await self.session.refresh(draft)
        return draft

    async def _require(self, draft_id: int) -> Draft:
        draft = await self.get_by_id(draft_id)
        if draft is None:
            raise RecordNotFoundError("Draft", draft_id)
        return draft

    async def update_fields(self, draft_id: int, **fields: Any) -> Draft:
        """Apply a partial set of editable fields in a single flush."""
        unknown = set(fields) - self.EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")

        draft = await self._require(draft_id)
        for key, value in fields.items():
            setattr(draft, key, value)
        await self.session.flush()
        return draft

    async def approve(self, draft_id: int) -> Draft:
        """Flip status to approved. Approving an approved draft is a no-op."""
        draft = await self._require(draft_id)
        draft.status = DraftStatus.APPROVED
        await self.session.flush()
        return draft

    async def find_pending_without_images(self) -> Draft | None:
        """Newest pending draft whose image list is still empty."""
        stmt = (
            select(Draft)
            .where(
                Draft.status == DraftStatus.PENDING,
                func.json_array_length(Draft.images) == 0,
            )
            .order_by(Draft.created_at.desc(), Draft.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def append_image(self, draft_id: int, url: str) -> Draft:
        draft = await self._require(draft_id)
        draft.images = [*draft.images, url]
        await self.session.flush()
        return draft
