"""Narrative Generator.

Writes the short story text for a topic and doubt using the OpenRouter
chat-completions API, retrying transient failures with backoff.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from ..core.config import Settings
from ..models.story import Complexity
from ..services.errors import GenerationExhausted

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RATE_LIMIT_BASE_DELAY_MS = 2000
RETRY_DELAY_MS = 1000


# =============================================================================
# Prompts
# =============================================================================

SYSTEM_PROMPT = """You are an expert educator creating engaging podcast stories to help students understand complex concepts.

IMPORTANT RULES:
- Create a SHORT STORY (NOT A LECTURE) - exactly 1.5-2 minutes when read aloud
- Use a conversational, engaging tone
- Include real-world analogies and examples
- Avoid technical jargon; explain simply
- Structure: Hook (10s) → Story with explanation (70s) → Real-world example (30s) → Conclusion (10s)
- Word count: 250-300 words (reads in ~1.5-2 minutes at 150 wpm)
- Add [PAUSE] markers every 30-40 words for natural pacing
- Make it memorable and engaging, NOT boring or textbook-like
- OUTPUT ONLY the story text, nothing else"""


def build_user_prompt(topic: str, doubt: str, complexity: Complexity | str) -> str:
    """Build the per-request prompt carrying the student's question."""
    level = Complexity(complexity).value
    return (
        f"Topic: {topic}\n"
        f"Student's Doubt: {doubt}\n"
        f"Difficulty Level: {level}\n\n"
        "Create an engaging 1.5-2 minute podcast story that helps them understand "
        "this concept. Use storytelling, not lectures."
    )


def backoff_delay_ms(failed_attempts: int, rate_limited: bool) -> int:
    """Delay before the next attempt.

    Rate limits back off exponentially (4000 ms, 8000 ms, ...); anything else
    waits a flat second.
    """
    if rate_limited:
        return (2**failed_attempts) * RATE_LIMIT_BASE_DELAY_MS
    return RETRY_DELAY_MS


class _EmptyCompletion(Exception):
    """Completion came back without usable text."""


# =============================================================================
# Generator
# =============================================================================


class NarrativeGenerator:
    """Generates story text via the completion service.

    Usage:
        generator = NarrativeGenerator(http_client, settings)
        story = await generator.generate("Gravity", "Why do things fall?", "easy")
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        self.http_client = http_client
        self.settings = settings
        self.max_attempts = max_attempts
        self._sleep = sleep

    def _build_payload(self, topic: str, doubt: str, complexity: Complexity | str) -> dict:
        return {
            "model": self.settings.openrouter_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(topic, doubt, complexity)},
            ],
            "temperature": self.settings.story_temperature,
            "max_tokens": self.settings.story_max_tokens,
            "top_p": 0.9,
        }

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.openrouter_api_key}",
            "HTTP-Referer": self.settings.openrouter_referer,
            "X-Title": self.settings.openrouter_title,
        }

    async def _complete(self, payload: dict) -> str:
        """Single call to the completion endpoint."""
        response = await self.http_client.post(
            f"{self.settings.openrouter_base_url.rstrip('/')}/chat/completions",
            json=payload,
            headers=self._headers(),
            timeout=self.settings.remote_timeout_seconds,
        )
        response.raise_for_status()

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise _EmptyCompletion("Malformed response from LLM") from e
        if not isinstance(content, str) or not content.strip():
            raise _EmptyCompletion("Empty response from LLM")
        return content.strip()

    async def generate(self, topic: str, doubt: str, complexity: Complexity | str) -> str:
        """Generate the story text.

        Raises:
            GenerationExhausted: after ``max_attempts`` failed calls
        """
        payload = self._build_payload(topic, doubt, complexity)
        last_error = "no attempts made"

        for attempt in range(1, self.max_attempts + 1):
            try:
                return (await self._complete(payload)).strip()
            except (httpx.HTTPError, _EmptyCompletion, ValueError) as e:
                rate_limited = (
                    isinstance(e, httpx.HTTPStatusError)
                    and e.response.status_code == 429
                )
                last_error = _describe(e)
                logger.warning(
                    f"[LLM] Attempt {attempt}/{self.max_attempts} failed: {last_error}"
                )

                if attempt >= self.max_attempts:
                    break

                delay_ms = backoff_delay_ms(attempt, rate_limited)
                if rate_limited:
                    logger.info(f"[LLM] Rate limited, waiting {delay_ms}ms...")
                await self._sleep(delay_ms / 1000)

        raise GenerationExhausted(self.max_attempts, last_error)


def _describe(error: Exception) -> str:
    if isinstance(error, httpx.HTTPStatusError):
        return f"HTTP {error.response.status_code} from completion service"
    return str(error) or type(error).__name__
