"""Errors raised by the generation pipeline and its collaborators."""


class AudioStoryError(Exception):
    """Base error for story generation."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class GenerationExhausted(AudioStoryError):
    """The completion service kept failing after every allowed attempt."""

    def __init__(self, attempts: int, last_error: str):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"LLM failed after {attempts} retries: {last_error}")


class EmptyGeneration(AudioStoryError):
    """The completion service returned blank story text."""

    def __init__(self, message: str = "Empty story generated"):
        super().__init__(message)


class SynthesisFailed(AudioStoryError):
    """The voice service failed for a reason other than credentials."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"TTS failed: {reason}")


class EmptyAudio(AudioStoryError):
    """The voice service returned no audio bytes."""

    def __init__(self, message: str = "Generated audio is empty"):
        super().__init__(message)


class PublishFailed(AudioStoryError):
    """Uploading audio to object storage failed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Upload to cloud failed: {reason}")


class StoreUnavailable(AudioStoryError):
    """The status store could not be reached or rejected the operation."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Story store {operation} failed: {reason}")
