"""Audio story router.

Endpoints for requesting, polling, listing and deleting audio stories.
Generation runs as a detached task; clients poll the story until its
status is completed or failed.
"""

import logging
from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field, StringConstraints, field_validator

from audiostory.api.deps import CurrentOwner, Pipeline, Publisher, Store
from audiostory.api.exceptions import ForbiddenError, NotFoundError
from audiostory.models.story import (
    DOUBT_MAX_LENGTH,
    TOPIC_MAX_LENGTH,
    AudioStory,
    Complexity,
    StoryStatus,
)
from audiostory.services.store import StatusStore

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 100


# =============================================================================
# Schemas
# =============================================================================

Topic = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=TOPIC_MAX_LENGTH)
]
Doubt = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=DOUBT_MAX_LENGTH)
]


class StoryCreateRequest(BaseModel):
    """Request to create a new audio story."""

    topic: Topic = Field(..., description="What the student is learning")
    doubt: Doubt = Field(..., description="The student's question about the topic")
    complexity: Complexity = Field(default=Complexity.INTERMEDIATE)

    @field_validator("complexity", mode="before")
    @classmethod
    def normalize_complexity(cls, value: Any) -> Any:
        if value is None or value == "":
            return Complexity.INTERMEDIATE
        if isinstance(value, str):
            try:
                return Complexity(value)
            except ValueError:
                return value
        return value


class StoryAccepted(BaseModel):
    """Acknowledgment returned while generation runs in the background."""

    story_id: str
    status: StoryStatus
    message: str
    estimated_time: str


class StoryResponse(BaseModel):
    """Story record as polled by clients."""

    id: str
    owner_id: str
    topic: str
    doubt: str
    complexity: Complexity
    status: StoryStatus
    story_text: str | None
    audio_url: str | None
    duration_seconds: int | None
    error_message: str | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StoryListResponse(BaseModel):
    """An owner's stories, newest first."""

    stories: list[StoryResponse]
    count: int


class StoryDeleted(BaseModel):
    """Delete confirmation."""

    message: str
    story_id: str


# =============================================================================
# Helpers
# =============================================================================


async def get_owned_story(store: StatusStore, story_id: str, owner_id: str) -> AudioStory:
    """Load a story and check it belongs to the caller.

    Raises:
        NotFoundError: If the story doesn't exist
        ForbiddenError: If another user owns it
    """
    story = await store.get(story_id)
    if story is None:
        raise NotFoundError("Story", story_id)
    if story.owner_id != owner_id:
        raise ForbiddenError("Unauthorized")
    return story


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "/create-audio-story",
    response_model=StoryAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
async def create_audio_story(
    request: StoryCreateRequest,
    owner_id: CurrentOwner,
    store: Store,
    pipeline: Pipeline,
) -> StoryAccepted:
    """Create a story record and start generation without waiting for it.

    Returns:
        Acknowledgment with the new story id; poll the story for progress
    """
    story = AudioStory.new(
        owner_id=owner_id,
        topic=request.topic,
        doubt=request.doubt,
        complexity=request.complexity,
    )
    await store.create(story)

    pipeline.start_generation(
        story.id,
        owner_id,
        story.topic,
        story.doubt,
        story.complexity,
    )

    return StoryAccepted(
        story_id=story.id,
        status=StoryStatus.PROCESSING,
        message="Story generation started",
        estimated_time="1-2 minutes",
    )


@router.get("/story/{story_id}", response_model=StoryResponse)
async def get_story(
    story_id: str,
    owner_id: CurrentOwner,
    store: Store,
) -> AudioStory:
    """Get a story with its current status.

    Fields produced by later stages are null until those stages finish.
    """
    return await get_owned_story(store, story_id, owner_id)


@router.get("/stories", response_model=StoryListResponse)
async def list_stories(
    owner_id: CurrentOwner,
    store: Store,
    limit: Annotated[int, Query(ge=1, le=MAX_LIST_LIMIT)] = DEFAULT_LIST_LIMIT,
) -> StoryListResponse:
    """List the caller's stories, newest first."""
    stories = await store.list_by_owner(owner_id, limit=limit)
    return StoryListResponse(
        stories=[StoryResponse.model_validate(story) for story in stories],
        count=len(stories),
    )


@router.delete("/story/{story_id}", response_model=StoryDeleted)
async def delete_story(
    story_id: str,
    owner_id: CurrentOwner,
    store: Store,
    publisher: Publisher,
) -> StoryDeleted:
    """Delete a story and, best effort, its stored audio.

    A run still in progress is not stopped; its later writes become no-ops.
    Such a run removes the audio it publishes once it finds the record gone.
    """
    await get_owned_story(store, story_id, owner_id)

    if not await store.delete(story_id):
        raise NotFoundError("Story", story_id)
    logger.info(f"[AudioStory] Deleted: {story_id}")

    await publisher.remove(story_id)

    return StoryDeleted(message="Story deleted successfully", story_id=story_id)
