"""Audio Story - Turn a learning question into a short narrated story.

A student submits a topic and a doubt; the service writes a short story
explaining the concept, voices it, publishes the audio and records progress
for the client to poll.

Quick Start:
    from audiostory import StoryPipeline, StoryStore
    from audiostory.tools import ArtifactPublisher, NarrationSynthesizer, NarrativeGenerator

    pipeline = StoryPipeline(
        store=StoryStore(session_factory),
        narrative_generator=NarrativeGenerator(http_client, settings),
        synthesizer=NarrationSynthesizer(http_client, settings),
        publisher=ArtifactPublisher(settings),
    )
    pipeline.start_generation(story.id, owner_id, topic, doubt, complexity)

Pipeline stages:
    1. Narrative Generator (OpenRouter) - story text, retried with backoff
    2. Narration Synthesizer (ElevenLabs) - audio, silent fallback
    3. Artifact Publisher (S3) - public audio URL
    4. Finalize - completed status with a duration estimate
"""

__version__ = "0.1.0"

from audiostory.models import AudioStory, Complexity, StoryStatus
from audiostory.services import (
    PipelineStage,
    StoryPipeline,
    StoryStore,
    estimate_duration_seconds,
)

__all__ = [
    # Version
    "__version__",
    # Models
    "AudioStory",
    "Complexity",
    "StoryStatus",
    # Pipeline
    "PipelineStage",
    "StoryPipeline",
    "StoryStore",
    "estimate_duration_seconds",
]
