"""Artifact Publisher.

Uploads narrated audio to S3-compatible object storage and returns the
public URL clients play it from.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from ..core.config import Settings
from ..services.errors import PublishFailed
from .voice import is_wav

logger = logging.getLogger(__name__)

AUDIO_FORMATS = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
}


def build_s3_client(settings: Settings) -> Any:
    """Create a boto3 S3 client from settings.

    Empty credentials fall through to boto3's default credential chain.
    Uploads are attempted once; the pipeline does not retry publishing.
    """
    return boto3.client(
        "s3",
        config=Config(
            retries={"total_max_attempts": 1},
            connect_timeout=settings.remote_timeout_seconds,
            read_timeout=settings.remote_timeout_seconds,
        ),
        region_name=settings.aws_region,
        endpoint_url=settings.s3_endpoint_url or None,
        aws_access_key_id=settings.aws_access_key_id or None,
        aws_secret_access_key=settings.aws_secret_access_key or None,
    )


class ArtifactPublisher:
    """Publishes story audio under a path derived from the story id.

    Usage:
        publisher = ArtifactPublisher(settings)
        url = await publisher.publish(audio_bytes, story_id)
    """

    def __init__(self, settings: Settings, client: Any | None = None):
        self.settings = settings
        self.bucket = settings.s3_bucket
        self.prefix = settings.s3_key_prefix.strip("/")
        self._client = client if client is not None else build_s3_client(settings)

    def object_key(self, story_id: str, extension: str = "mp3") -> str:
        """Storage key for a story's audio."""
        return f"{self.prefix}/{story_id}/story-{story_id}.{extension}"

    def public_url(self, key: str) -> str:
        """URL the stored object is served from."""
        if self.settings.s3_public_base_url:
            return f"{self.settings.s3_public_base_url.rstrip('/')}/{key}"
        if self.settings.s3_endpoint_url:
            return f"{self.settings.s3_endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.settings.aws_region}.amazonaws.com/{key}"

    async def publish(self, audio: bytes, story_id: str) -> str:
        """Upload audio bytes and return the public URL.

        Raises:
            PublishFailed: if the upload is rejected or storage is unreachable
        """
        extension = "wav" if is_wav(audio) else "mp3"
        key = self.object_key(story_id, extension)

        try:
            await run_in_threadpool(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=audio,
                ContentType=AUDIO_FORMATS[extension],
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"[Upload] Storage error: {e!s}")
            raise PublishFailed(str(e)) from e

        return self.public_url(key)

    async def remove(self, story_id: str) -> None:
        """Delete a story's stored audio.

        Cleanup is non-critical: failures are logged, never raised.
        """
        objects = [{"Key": self.object_key(story_id, ext)} for ext in AUDIO_FORMATS]
        try:
            await run_in_threadpool(
                self._client.delete_objects,
                Bucket=self.bucket,
                Delete={"Objects": objects, "Quiet": True},
            )
            logger.info(f"[Storage] Deleted audio for {story_id}")
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"[Storage] Delete failed (non-critical): {e!s}")
