"""Pipeline Service - Audio Story Generation Orchestration.

    FastAPI Endpoint (POST /api/audio-story/create-audio-story)
           ↓
    StoryStore.create()              status = processing
           ↓
    StoryPipeline.start_generation() detached asyncio task, request returns 202
           ↓
    ┌──────────────────────────────────────┐
    │  1. NarrativeGenerator.generate()    │ → story_text persisted
    │  2. NarrationSynthesizer.synthesize()│
    │  3. ArtifactPublisher.publish()      │
    │  4. finalize                         │ → completed, audio_url, duration
    └──────────────────────────────────────┘
           ↓
    Client polls GET /api/audio-story/story/{id} until completed or failed

Any stage error ends the run with status = failed and an error message.
Nothing is rolled back: a failed record may still carry its story text.
Audio published for a story deleted mid-run is removed again.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import TYPE_CHECKING

from ..models.story import Complexity, StoryStatus
from .errors import EmptyGeneration

if TYPE_CHECKING:
    from ..tools.narrative import NarrativeGenerator
    from ..tools.storage import ArtifactPublisher
    from ..tools.voice import NarrationSynthesizer
    from .store import StatusStore

logger = logging.getLogger(__name__)

BYTES_PER_DURATION_UNIT = 24000
SECONDS_PER_DURATION_UNIT = 8


class PipelineStage(str, Enum):
    """Stages of the audio story pipeline."""

    GENERATING_NARRATIVE = "generating_narrative"
    SYNTHESIZING_AUDIO = "synthesizing_audio"
    PUBLISHING = "publishing"
    FINALIZING = "finalizing"

    @property
    def number(self) -> int:
        return list(PipelineStage).index(self) + 1


def estimate_duration_seconds(audio_length: int) -> int:
    """Rough playback estimate shown to users.

    This is ``bytes / 24000 * 8`` rounded, not a real decode of the audio.
    """
    return round(audio_length / BYTES_PER_DURATION_UNIT * SECONDS_PER_DURATION_UNIT)


class StoryPipeline:
    """Runs the generation stages for one story at a time per task.

    The pipeline holds no per-story state beyond its in-flight task set;
    every result is communicated through the status store.

    Usage:
        pipeline = StoryPipeline(store, generator, synthesizer, publisher)
        pipeline.start_generation(story.id, owner_id, topic, doubt, complexity)
        ...
        await pipeline.shutdown()
    """

    def __init__(
        self,
        store: StatusStore,
        narrative_generator: NarrativeGenerator,
        synthesizer: NarrationSynthesizer,
        publisher: ArtifactPublisher,
    ):
        self.store = store
        self.narrative_generator = narrative_generator
        self.synthesizer = synthesizer
        self.publisher = publisher
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        """Number of runs that have not finished yet."""
        return len(self._tasks)

    def start_generation(
        self,
        story_id: str,
        owner_id: str,
        topic: str,
        doubt: str,
        complexity: Complexity | str,
    ) -> asyncio.Task[None]:
        """Start a detached run and return immediately.

        Must be called from inside a running event loop. The returned task
        is for bookkeeping and tests; callers are not expected to await it.
        """
        task = asyncio.create_task(
            self.run(story_id, owner_id, topic, doubt, complexity),
            name=f"audio-story-{story_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run(
        self,
        story_id: str,
        owner_id: str,
        topic: str,
        doubt: str,
        complexity: Complexity | str,
    ) -> None:
        """Execute every stage for a story. Never raises stage errors."""
        start = time.monotonic()
        stage = PipelineStage.GENERATING_NARRATIVE
        logger.info(f"[AudioStory {story_id}] Starting generation pipeline for owner {owner_id}")

        try:
            complexity = Complexity(complexity)
            self._log_stage(story_id, stage, "Generating story content...")
            story_text = await self.narrative_generator.generate(topic, doubt, complexity)
            if not story_text or not story_text.strip():
                raise EmptyGeneration()
            logger.info(f"[AudioStory {story_id}] Story generated ({len(story_text)} chars)")
            await self._write(story_id, story_text=story_text)

            stage = PipelineStage.SYNTHESIZING_AUDIO
            self._log_stage(story_id, stage, "Generating audio narration...")
            audio = await self.synthesizer.synthesize(story_text)
            logger.info(f"[AudioStory {story_id}] Audio generated ({len(audio) / 1024:.2f} KB)")

            stage = PipelineStage.PUBLISHING
            self._log_stage(story_id, stage, "Uploading to cloud storage...")
            audio_url = await self.publisher.publish(audio, story_id)
            logger.info(f"[AudioStory {story_id}] Uploaded: {audio_url}")

            stage = PipelineStage.FINALIZING
            self._log_stage(story_id, stage, "Finalizing...")
            finalized = await self._write(
                story_id,
                status=StoryStatus.COMPLETED,
                audio_url=audio_url,
                duration_seconds=estimate_duration_seconds(len(audio)),
            )
            if not finalized:
                await self.publisher.remove(story_id)
                return
            logger.info(
                f"[AudioStory {story_id}] COMPLETED in {time.monotonic() - start:.2f}s"
            )
        except Exception as e:
            logger.error(f"[AudioStory {story_id}] Failed during {stage.value}: {e!s}")
            await self._mark_failed(story_id, str(e) or type(e).__name__)

    async def shutdown(self, grace_seconds: float = 30.0) -> None:
        """Wait for in-flight runs, cancelling whatever outlives the grace period."""
        if not self._tasks:
            return
        pending = set(self._tasks)
        logger.info(f"Waiting for {len(pending)} in-flight story runs...")
        _, still_running = await asyncio.wait(pending, timeout=grace_seconds)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"Cancelled {len(still_running)} story runs at shutdown")
            await asyncio.gather(*still_running, return_exceptions=True)

    def _log_stage(self, story_id: str, stage: PipelineStage, message: str) -> None:
        logger.info(
            f"[AudioStory {story_id}] Stage {stage.number}/{len(PipelineStage)}: {message}"
        )

    async def _write(self, story_id: str, **fields) -> bool:
        if not await self.store.update(story_id, **fields):
            logger.warning(f"[AudioStory {story_id}] Record no longer exists, write skipped")
            return False
        return True

    async def _mark_failed(self, story_id: str, error_message: str) -> None:
        try:
            await self._write(
                story_id,
                status=StoryStatus.FAILED,
                error_message=error_message,
            )
        except Exception:
            logger.exception(f"[AudioStory {story_id}] Failed to update error status")
