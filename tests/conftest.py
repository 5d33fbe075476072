"""Shared fixtures: in-memory store and stub stage adapters."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from audiostory.core.config import Settings
from audiostory.models.story import AudioStory, utcnow
from audiostory.services.store import UPDATABLE_FIELDS


class InMemoryStoryStore:
    """Minimal in-memory store mirroring StoryStore semantics."""

    def __init__(self) -> None:
        self.records: dict[str, AudioStory] = {}
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.fail_on: dict[str, Exception] = {}

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise self.fail_on[operation]

    async def create(self, record: AudioStory) -> AudioStory:
        self._maybe_fail("create")
        self.records[record.id] = record
        return record

    async def get(self, story_id: str) -> AudioStory | None:
        self._maybe_fail("get")
        return self.records.get(story_id)

    async def update(self, story_id: str, **fields: Any) -> bool:
        self._maybe_fail("update")
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {unknown}")
        self.updates.append((story_id, fields))
        record = self.records.get(story_id)
        if record is None:
            return False
        for key, value in fields.items():
            setattr(record, key, value)
        record.updated_at = utcnow()
        return True

    async def delete(self, story_id: str) -> bool:
        self._maybe_fail("delete")
        return self.records.pop(story_id, None) is not None

    async def list_by_owner(self, owner_id: str, limit: int = 50) -> list[AudioStory]:
        self._maybe_fail("list")
        owned = [r for r in self.records.values() if r.owner_id == owner_id]
        owned.sort(key=lambda r: r.created_at, reverse=True)
        return owned[:limit]

    async def ping(self) -> None:
        self._maybe_fail("ping")


class StubGenerator:
    """Narrative generator returning canned text, optionally gated."""

    def __init__(self, text: str = "A short story...", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: list[tuple[str, str, Any]] = []
        self.gate: asyncio.Event | None = None

    async def generate(self, topic: str, doubt: str, complexity: Any) -> str:
        self.calls.append((topic, doubt, complexity))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.text


class StubSynthesizer:
    def __init__(self, audio: bytes = b"\x01" * 48000, error: Exception | None = None):
        self.audio = audio
        self.error = error
        self.calls: list[str] = []

    async def synthesize(self, story_text: str) -> bytes:
        self.calls.append(story_text)
        if self.error is not None:
            raise self.error
        return self.audio


class StubPublisher:
    def __init__(self, url: str = "https://cdn.example/story.mp3", error: Exception | None = None):
        self.url = url
        self.error = error
        self.published: list[tuple[int, str]] = []
        self.removed: list[str] = []

    async def publish(self, audio: bytes, story_id: str) -> str:
        self.published.append((len(audio), story_id))
        if self.error is not None:
            raise self.error
        return self.url

    async def remove(self, story_id: str) -> None:
        self.removed.append(story_id)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        jwt_secret_key="test-secret",
        openrouter_api_key="or-test-key",
        elevenlabs_api_key="",
        database_url="sqlite+aiosqlite:///:memory:",
    )


@pytest.fixture
def voice_settings(settings: Settings) -> Settings:
    return settings.model_copy(update={"elevenlabs_api_key": "el-test-key"})


@pytest.fixture
def store() -> InMemoryStoryStore:
    return InMemoryStoryStore()


@pytest.fixture
def generator() -> StubGenerator:
    return StubGenerator()


@pytest.fixture
def synthesizer() -> StubSynthesizer:
    return StubSynthesizer()


@pytest.fixture
def publisher() -> StubPublisher:
    return StubPublisher()
