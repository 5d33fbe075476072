"""Audio Story stage adapters.

Each adapter wraps one remote service used by the generation pipeline:

- narrative: story text from the OpenRouter completion API
- voice: narration from ElevenLabs text-to-speech (silent-clip fallback)
- storage: audio upload to S3-compatible object storage
"""

from .narrative import NarrativeGenerator
from .storage import ArtifactPublisher, build_s3_client
from .voice import NarrationSynthesizer, is_wav, silence

__all__ = [
    "NarrativeGenerator",
    "NarrationSynthesizer",
    "ArtifactPublisher",
    "build_s3_client",
    "silence",
    "is_wav",
]
