"""Backend Services for Audio Story.

Services:
- store: persisted story status records
- pipeline: orchestrates narrative, narration and publishing for a story
- errors: failures raised by pipeline stages

Usage:
    from audiostory.services import StoryPipeline, StoryStore

    pipeline = StoryPipeline(store, generator, synthesizer, publisher)
    pipeline.start_generation(story_id, owner_id, topic, doubt, complexity)
"""

from .errors import (
    AudioStoryError,
    EmptyAudio,
    EmptyGeneration,
    GenerationExhausted,
    PublishFailed,
    StoreUnavailable,
    SynthesisFailed,
)
from .pipeline import PipelineStage, StoryPipeline, estimate_duration_seconds
from .store import StatusStore, StoryStore

__all__ = [
    # Store
    "StatusStore",
    "StoryStore",
    # Pipeline
    "PipelineStage",
    "StoryPipeline",
    "estimate_duration_seconds",
    # Errors
    "AudioStoryError",
    "GenerationExhausted",
    "EmptyGeneration",
    "SynthesisFailed",
    "EmptyAudio",
    "PublishFailed",
    "StoreUnavailable",
]
