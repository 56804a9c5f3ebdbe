"""Groq provider: free, fast inference via OpenAI-compatible API."""

from __future__ import annotations

import logging
import time

from openai import OpenAI, OpenAIError

from collector_ai.config import Settings
from collector_ai.providers.base import AIProvider, EvaluationError, ToolSpec

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"

# Seconds between API calls; card decisions are small, so the free-tier
# request limit binds before the token limit does.
GROQ_RATE_LIMIT_DELAY = 2


class GroqProvider(AIProvider):
    name = "groq"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        if not settings.groq_api_key:
            raise ValueError("GROQ_API_KEY is required for the Groq provider")
        self._client = OpenAI(
            api_key=settings.groq_api_key,
            base_url=GROQ_BASE_URL,
        )
        self._model = settings.groq_model
        self._last_call: float = 0

    def _rate_limit(self) -> None:
        """Wait if needed to respect Groq's request limit."""
        elapsed = time.time() - self._last_call
        if self._last_call and elapsed < GROQ_RATE_LIMIT_DELAY:
            wait = GROQ_RATE_LIMIT_DELAY - elapsed
            logger.info("Groq rate limit: waiting %.1fs", wait)
            time.sleep(wait)

    def complete(
        self,
        system: str,
        messages: list[dict],
        tool: ToolSpec,
        *,
        timeout: float | None = None,
    ) -> dict:
        self._rate_limit()
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=self._json_messages(system, messages, tool),
                temperature=self.settings.temperature,
                response_format={"type": "json_object"},
                timeout=timeout,
            )
        except OpenAIError as exc:
            logger.error("Groq request failed: %s", exc)
            raise EvaluationError(f"Groq request failed: {exc}") from exc
        finally:
            self._last_call = time.time()
        return self._parse_response(response.choices[0].message.content or "")
