"""Tests for SQLAlchemy models."""

import pytest

from audiostory.models import AudioStory, Base, Complexity, StoryStatus


class TestModelImports:
    """Test that all models import correctly."""

    def test_base_metadata_tables(self) -> None:
        """Test that all tables are registered in Base.metadata."""
        assert set(Base.metadata.tables.keys()) == {"audio_stories"}

    def test_audio_story_model_attributes(self) -> None:
        """Test AudioStory model has expected attributes."""
        for column in (
            "id",
            "owner_id",
            "topic",
            "doubt",
            "complexity",
            "status",
            "story_text",
            "audio_url",
            "duration_seconds",
            "error_message",
            "created_at",
            "updated_at",
        ):
            assert hasattr(AudioStory, column)

    def test_owner_id_is_indexed(self) -> None:
        assert AudioStory.__table__.c.owner_id.index


class TestEnums:
    """Test enum definitions."""

    def test_story_status_values(self) -> None:
        assert StoryStatus.PROCESSING.value == "processing"
        assert StoryStatus.COMPLETED.value == "completed"
        assert StoryStatus.FAILED.value == "failed"

    def test_terminal_statuses(self) -> None:
        assert not StoryStatus.PROCESSING.is_terminal
        assert StoryStatus.COMPLETED.is_terminal
        assert StoryStatus.FAILED.is_terminal

    def test_complexity_values(self) -> None:
        assert [c.value for c in Complexity] == ["easy", "intermediate", "advanced"]

    def test_story_status_is_str_enum(self) -> None:
        """Test StoryStatus inherits from str for JSON serialization."""
        assert isinstance(StoryStatus.PROCESSING, str)

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("beginner", Complexity.EASY),
            ("Beginner", Complexity.EASY),
            ("ADVANCED", Complexity.ADVANCED),
            (" intermediate ", Complexity.INTERMEDIATE),
        ],
    )
    def test_complexity_aliases(self, raw, expected) -> None:
        assert Complexity(raw) is expected

    def test_unknown_complexity_rejected(self) -> None:
        with pytest.raises(ValueError):
            Complexity("expert")


class TestNewStory:
    def test_new_record_is_processing(self) -> None:
        story = AudioStory.new("user-1", "  Gravity ", " Why do things fall? ", "beginner")

        assert len(story.id) == 36
        assert story.owner_id == "user-1"
        assert story.topic == "Gravity"
        assert story.doubt == "Why do things fall?"
        assert story.complexity is Complexity.EASY
        assert story.status is StoryStatus.PROCESSING
        assert story.story_text is None
        assert story.audio_url is None
        assert story.duration_seconds is None
        assert story.error_message is None
        assert story.created_at == story.updated_at
        assert story.created_at.tzinfo is not None

    def test_ids_are_unique(self) -> None:
        ids = {AudioStory.new("user-1", "Gravity", "Why?").id for _ in range(50)}
        assert len(ids) == 50
