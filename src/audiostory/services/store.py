"""Story Store - persisted status records.

Status store the pipeline writes after every stage and clients poll. Every
call opens its own session and commits before returning, so a polling read
sees each stage as soon as it is written.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models.story import AudioStory, utcnow
from .errors import StoreUnavailable

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"status", "story_text", "audio_url", "duration_seconds", "error_message"}
)


class StatusStore(Protocol):
    """Operations the pipeline and routes need from a story store."""

    async def create(self, record: AudioStory) -> AudioStory: ...

    async def get(self, story_id: str) -> AudioStory | None: ...

    async def update(self, story_id: str, **fields: Any) -> bool: ...

    async def delete(self, story_id: str) -> bool: ...

    async def list_by_owner(self, owner_id: str, limit: int = 50) -> list[AudioStory]: ...


class StoryStore:
    """SQLAlchemy-backed store for ``AudioStory`` records.

    Usage:
        store = StoryStore(init_db(settings.async_database_url))
        await store.create(AudioStory.new(owner_id, topic, doubt))
        record = await store.get(story_id)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(self, record: AudioStory) -> AudioStory:
        """Insert a new record."""
        try:
            async with self._session_factory() as session:
                session.add(record)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailable("create", str(e)) from e
        logger.info(f"Created story record {record.id}")
        return record

    async def get(self, story_id: str) -> AudioStory | None:
        """Fetch a record by id, or None when absent."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(AudioStory).where(AudioStory.id == story_id)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreUnavailable("get", str(e)) from e

    async def update(self, story_id: str, **fields: Any) -> bool:
        """Apply a partial update and refresh ``updated_at``.

        Returns:
            False when no record has that id (e.g. it was deleted while the
            pipeline was still running); the write is then a no-op.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        values = {**fields, "updated_at": utcnow()}
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    update(AudioStory).where(AudioStory.id == story_id).values(**values)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailable("update", str(e)) from e
        return result.rowcount > 0

    async def delete(self, story_id: str) -> bool:
        """Delete a record. Returns False when it did not exist."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(AudioStory).where(AudioStory.id == story_id)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailable("delete", str(e)) from e
        return result.rowcount > 0

    async def list_by_owner(self, owner_id: str, limit: int = 50) -> list[AudioStory]:
        """List an owner's records, newest first."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(AudioStory)
                    .where(AudioStory.owner_id == owner_id)
                    .order_by(AudioStory.created_at.desc())
                    .limit(limit)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreUnavailable("list", str(e)) from e

    async def ping(self) -> None:
        """Round-trip to the database; raises StoreUnavailable on failure."""
        try:
            async with self._session_factory() as session:
                await session.execute(select(1))
        except SQLAlchemyError as e:
            raise StoreUnavailable("ping", str(e)) from e
