"""Tests for publishing audio to object storage."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from audiostory.services.errors import PublishFailed
from audiostory.tools.storage import ArtifactPublisher, build_s3_client
from audiostory.tools.voice import silence

STORY_ID = "0b6f3c3e-2d1f-4b7a-9a55-3f0c1b2a4d5e"


def client_error(code: str = "AccessDenied") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "denied"}}, "PutObject")


@pytest.fixture
def s3_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def storage_settings(settings):
    return settings.model_copy(
        update={"s3_bucket": "stories", "aws_region": "eu-west-1", "s3_key_prefix": "audio-stories"}
    )


class TestKeysAndUrls:
    def test_object_key_is_derived_from_id(self, storage_settings, s3_client) -> None:
        publisher = ArtifactPublisher(storage_settings, client=s3_client)
        assert publisher.object_key(STORY_ID) == f"audio-stories/{STORY_ID}/story-{STORY_ID}.mp3"
        assert publisher.object_key(STORY_ID, "wav").endswith(".wav")

    def test_default_url_is_virtual_hosted(self, storage_settings, s3_client) -> None:
        publisher = ArtifactPublisher(storage_settings, client=s3_client)
        assert publisher.public_url("a/b.mp3") == "https://stories.s3.eu-west-1.amazonaws.com/a/b.mp3"

    def test_public_base_url_wins(self, storage_settings, s3_client) -> None:
        settings = storage_settings.model_copy(
            update={"s3_public_base_url": "https://cdn.example/", "s3_endpoint_url": "http://minio:9000"}
        )
        publisher = ArtifactPublisher(settings, client=s3_client)
        assert publisher.public_url("a/b.mp3") == "https://cdn.example/a/b.mp3"

    def test_custom_endpoint_uses_path_style(self, storage_settings, s3_client) -> None:
        settings = storage_settings.model_copy(update={"s3_endpoint_url": "http://minio:9000/"})
        publisher = ArtifactPublisher(settings, client=s3_client)
        assert publisher.public_url("a/b.mp3") == "http://minio:9000/stories/a/b.mp3"


class TestPublish:
    @pytest.mark.asyncio
    async def test_uploads_mp3(self, storage_settings, s3_client) -> None:
        publisher = ArtifactPublisher(storage_settings, client=s3_client)
        audio = b"ID3" + b"\x00" * 100

        url = await publisher.publish(audio, STORY_ID)

        key = f"audio-stories/{STORY_ID}/story-{STORY_ID}.mp3"
        s3_client.put_object.assert_called_once_with(
            Bucket="stories", Key=key, Body=audio, ContentType="audio/mpeg"
        )
        assert url == f"https://stories.s3.eu-west-1.amazonaws.com/{key}"

    @pytest.mark.asyncio
    async def test_uploads_silent_fallback_as_wav(self, storage_settings, s3_client) -> None:
        publisher = ArtifactPublisher(storage_settings, client=s3_client)

        url = await publisher.publish(silence(2000), STORY_ID)

        kwargs = s3_client.put_object.call_args.kwargs
        assert kwargs["ContentType"] == "audio/wav"
        assert kwargs["Key"].endswith(".wav")
        assert url.endswith(".wav")

    @pytest.mark.asyncio
    async def test_client_error_raises_publish_failed(self, storage_settings, s3_client) -> None:
        s3_client.put_object.side_effect = client_error()
        publisher = ArtifactPublisher(storage_settings, client=s3_client)

        with pytest.raises(PublishFailed) as exc_info:
            await publisher.publish(b"audio", STORY_ID)

        assert "AccessDenied" in exc_info.value.message
        assert exc_info.value.message.startswith("Upload to cloud failed")

    @pytest.mark.asyncio
    async def test_connection_error_raises_publish_failed(self, storage_settings, s3_client) -> None:
        s3_client.put_object.side_effect = EndpointConnectionError(endpoint_url="http://minio:9000")
        publisher = ArtifactPublisher(storage_settings, client=s3_client)

        with pytest.raises(PublishFailed):
            await publisher.publish(b"audio", STORY_ID)


class TestRemove:
    @pytest.mark.asyncio
    async def test_deletes_both_formats(self, storage_settings, s3_client) -> None:
        publisher = ArtifactPublisher(storage_settings, client=s3_client)

        await publisher.remove(STORY_ID)

        kwargs = s3_client.delete_objects.call_args.kwargs
        keys = {obj["Key"] for obj in kwargs["Delete"]["Objects"]}
        assert keys == {
            f"audio-stories/{STORY_ID}/story-{STORY_ID}.mp3",
            f"audio-stories/{STORY_ID}/story-{STORY_ID}.wav",
        }

    @pytest.mark.asyncio
    async def test_failures_are_not_raised(self, storage_settings, s3_client) -> None:
        s3_client.delete_objects.side_effect = client_error()
        publisher = ArtifactPublisher(storage_settings, client=s3_client)

        await publisher.remove(STORY_ID)


class TestClient:
    def test_single_attempt_with_configured_timeouts(self, storage_settings) -> None:
        settings = storage_settings.model_copy(update={"remote_timeout_seconds": 12.5})

        client = build_s3_client(settings)

        config = client.meta.config
        assert config.retries["total_max_attempts"] == 1
        assert config.connect_timeout == 12.5
        assert config.read_timeout == 12.5
        assert client.meta.region_name == "eu-west-1"
