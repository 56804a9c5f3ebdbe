"""Anthropic Claude provider, using forced tool calls for decisions."""

from __future__ import annotations

import logging

import anthropic

from collector_ai.config import Settings
from collector_ai.providers.base import AIProvider, EvaluationError, ToolSpec

logger = logging.getLogger(__name__)


class AnthropicProvider(AIProvider):
    name = "anthropic"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        if not settings.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY is required for the Anthropic provider")
        self._client = anthropic.Anthropic(api_key=settings.anthropic_api_key)

    def complete(
        self,
        system: str,
        messages: list[dict],
        tool: ToolSpec,
        *,
        timeout: float | None = None,
    ) -> dict:
        try:
            response = self._client.messages.create(
                model=self.settings.claude_model,
                max_tokens=1024,
                system=system,
                messages=messages,
                tools=[{
                    "name": tool.name,
                    "description": tool.description,
                    "input_schema": tool.input_schema,
                }],
                tool_choice={"type": "tool", "name": tool.name},
                temperature=self.settings.temperature,
                timeout=timeout,
            )
        except anthropic.APIError as exc:
            logger.error("Anthropic request failed: %s", exc)
            raise EvaluationError(f"Anthropic request failed: {exc}") from exc

        for block in response.content:
            if getattr(block, "type", None) == "tool_use" and block.name == tool.name:
                return dict(block.input)
        raise EvaluationError(f"Anthropic response has no {tool.name} tool call")
