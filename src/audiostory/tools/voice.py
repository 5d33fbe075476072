"""Narration Synthesizer.

Voices story text with ElevenLabs text-to-speech. When no credential is
configured, or ElevenLabs rejects the credential, a short silent WAV clip
is returned instead so the story can still complete.
"""

from __future__ import annotations

import logging
import struct

import httpx

from ..core.config import Settings
from ..services.errors import EmptyAudio, SynthesisFailed

logger = logging.getLogger(__name__)

FALLBACK_DURATION_MS = 2000
SILENCE_SAMPLE_RATE = 44100
SILENCE_CHANNELS = 1
SILENCE_BITS_PER_SAMPLE = 16

WAV_HEADER_SIZE = 44
PCM_FORMAT = 1
AUTH_FAILURE_CODES = frozenset({401, 403})


def silence(
    duration_ms: int,
    sample_rate: int = SILENCE_SAMPLE_RATE,
    channels: int = SILENCE_CHANNELS,
    bits_per_sample: int = SILENCE_BITS_PER_SAMPLE,
) -> bytes:
    """Build a PCM WAV clip of zero-valued samples.

    Args:
        duration_ms: Clip length in milliseconds
        sample_rate: Samples per second
        channels: Channel count
        bits_per_sample: Sample depth

    Returns:
        Complete WAV file bytes (44-byte header followed by the data chunk)
    """
    block_align = channels * bits_per_sample // 8
    frames = sample_rate * duration_ms // 1000
    data_size = frames * block_align

    header = b"".join(
        [
            b"RIFF",
            struct.pack("<I", 36 + data_size),
            b"WAVE",
            b"fmt ",
            struct.pack(
                "<IHHIIHH",
                16,
                PCM_FORMAT,
                channels,
                sample_rate,
                sample_rate * block_align,
                block_align,
                bits_per_sample,
            ),
            b"data",
            struct.pack("<I", data_size),
        ]
    )
    return header + bytes(data_size)


def is_wav(audio: bytes) -> bool:
    """Check for a RIFF/WAVE container header."""
    return len(audio) >= 12 and audio[:4] == b"RIFF" and audio[8:12] == b"WAVE"


class NarrationSynthesizer:
    """Turns story text into encoded audio bytes.

    Usage:
        synthesizer = NarrationSynthesizer(http_client, settings)
        audio = await synthesizer.synthesize(story_text)
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self.http_client = http_client
        self.settings = settings

    def fallback(self) -> bytes:
        """Silent clip used in degraded mode."""
        return silence(FALLBACK_DURATION_MS)

    async def synthesize(self, story_text: str) -> bytes:
        """Synthesize narration for the story.

        Raises:
            EmptyAudio: if the service streamed no bytes
            SynthesisFailed: for any non-credential failure
        """
        if not self.settings.has_elevenlabs_key():
            logger.warning("[TTS] API key not found, generating silence fallback")
            return self.fallback()

        try:
            audio = await self._stream_audio(story_text)
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code in AUTH_FAILURE_CODES:
                logger.warning(
                    f"[TTS] Auth failed ({status_code}), using silence fallback"
                )
                return self.fallback()
            logger.error(f"[TTS] ElevenLabs API error: {status_code}")
            raise SynthesisFailed(f"ElevenLabs API error: {status_code}") from e
        except Exception as e:
            logger.error(f"[TTS] Error: {e!s}")
            raise SynthesisFailed(str(e) or type(e).__name__) from e

        if not audio:
            raise EmptyAudio()

        logger.info(f"[TTS] Generated {len(audio)} bytes of audio")
        return audio

    async def _stream_audio(self, story_text: str) -> bytes:
        url = (
            f"{self.settings.elevenlabs_api_base.rstrip('/')}"
            f"/text-to-speech/{self.settings.elevenlabs_voice_id}/stream"
        )
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.settings.elevenlabs_api_key,
        }
        payload = {
            "text": story_text,
            "model_id": self.settings.elevenlabs_model,
        }

        buffer = bytearray()
        async with self.http_client.stream(
            "POST",
            url,
            json=payload,
            headers=headers,
            params={"output_format": self.settings.elevenlabs_output_format},
            timeout=self.settings.remote_timeout_seconds,
        ) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes():
                buffer.extend(chunk)
        return bytes(buffer)
