"""Google Gemini provider: generous free tier."""

from __future__ import annotations

import logging
import time

from google import genai
from google.genai import errors, types

from collector_ai.config import Settings
from collector_ai.providers.base import AIProvider, EvaluationError, ToolSpec

logger = logging.getLogger(__name__)

# Gemini free tier: 10 RPM.
GEMINI_RATE_LIMIT_DELAY = 7


class GeminiProvider(AIProvider):
    name = "gemini"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        if not settings.gemini_api_key:
            raise ValueError("GEMINI_API_KEY is required for the Gemini provider")
        self._client = genai.Client(api_key=settings.gemini_api_key)
        self._model = settings.gemini_model
        self._last_call: float = 0

    def _rate_limit(self) -> None:
        """Wait if needed to respect Gemini's RPM limit."""
        elapsed = time.time() - self._last_call
        if self._last_call and elapsed < GEMINI_RATE_LIMIT_DELAY:
            wait = GEMINI_RATE_LIMIT_DELAY - elapsed
            logger.info("Gemini rate limit: waiting %.1fs", wait)
            time.sleep(wait)

    @staticmethod
    def _contents(messages: list[dict]) -> list[types.Content]:
        return [
            types.Content(
                role="model" if m["role"] == "assistant" else "user",
                parts=[types.Part(text=m["content"])],
            )
            for m in messages
        ]

    def complete(
        self,
        system: str,
        messages: list[dict],
        tool: ToolSpec,
        *,
        timeout: float | None = None,
    ) -> dict:
        self._rate_limit()
        config = types.GenerateContentConfig(
            system_instruction=system + tool.json_instruction(),
            temperature=self.settings.temperature,
            response_mime_type="application/json",
        )
        if timeout:
            config.http_options = types.HttpOptions(timeout=int(timeout * 1000))
        try:
            response = self._client.models.generate_content(
                model=self._model,
                config=config,
                contents=self._contents(messages),
            )
        except errors.APIError as exc:
            logger.error("Gemini request failed: %s", exc)
            raise EvaluationError(f"Gemini request failed: {exc}") from exc
        finally:
            self._last_call = time.time()
        return self._parse_response(response.text or "")
