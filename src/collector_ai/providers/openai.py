"""OpenAI provider using JSON mode."""

from __future__ import annotations

import logging

from openai import OpenAI, OpenAIError

from collector_ai.config import Settings
from collector_ai.providers.base import AIProvider, EvaluationError, ToolSpec

logger = logging.getLogger(__name__)


class OpenAIProvider(AIProvider):
    name = "openai"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for the OpenAI provider")
        self._client = OpenAI(api_key=settings.openai_api_key)

    def complete(
        self,
        system: str,
        messages: list[dict],
        tool: ToolSpec,
        *,
        timeout: float | None = None,
    ) -> dict:
        try:
            response = self._client.chat.completions.create(
                model=self.settings.openai_model,
                messages=self._json_messages(system, messages, tool),
                temperature=self.settings.temperature,
                response_format={"type": "json_object"},
                timeout=timeout,
            )
        except OpenAIError as exc:
            logger.error("OpenAI request failed: %s", exc)
            raise EvaluationError(f"OpenAI request failed: {exc}") from exc
        return self._parse_response(response.choices[0].message.content or "")
