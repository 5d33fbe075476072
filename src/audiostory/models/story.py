"""Audio story model.

SQLAlchemy model for the per-request story record polled by clients.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base

TOPIC_MAX_LENGTH = 100
DOUBT_MAX_LENGTH = 300


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class StoryStatus(str, Enum):
    """Status of the generation pipeline for a story."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not StoryStatus.PROCESSING


class Complexity(str, Enum):
    """Difficulty level the story is pitched at."""

    EASY = "easy"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @classmethod
    def _missing_(cls, value: object) -> Complexity | None:
        # "beginner" is what older clients send for the easy level
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized == "beginner":
                return cls.EASY
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class AudioStory(Base):
    """Audio story record.

    One row per generation request. Created in ``processing`` by the entry
    point and afterwards mutated only by the generation pipeline.
    """

    __tablename__ = "audio_stories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(128), index=True)

    topic: Mapped[str] = mapped_column(String(TOPIC_MAX_LENGTH))
    doubt: Mapped[str] = mapped_column(String(DOUBT_MAX_LENGTH))
    complexity: Mapped[Complexity] = mapped_column(
        SQLEnum(Complexity, name="story_complexity"),
        default=Complexity.INTERMEDIATE,
    )
    status: Mapped[StoryStatus] = mapped_column(
        SQLEnum(StoryStatus, name="audio_story_status"),
        default=StoryStatus.PROCESSING,
        index=True,
    )

    # Pipeline output
    story_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    @classmethod
    def new(
        cls,
        owner_id: str,
        topic: str,
        doubt: str,
        complexity: Complexity = Complexity.INTERMEDIATE,
    ) -> AudioStory:
        """Build a fresh ``processing`` record with a new id."""
        now = utcnow()
        return cls(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            topic=topic.strip(),
            doubt=doubt.strip(),
            complexity=Complexity(complexity),
            status=StoryStatus.PROCESSING,
            created_at=now,
            updated_at=now,
        )

    def __repr__(self) -> str:
        return f"<AudioStory(id={self.id}, topic='{self.topic}', status={self.status})>"
