"""Ollama provider for local model inference (e.g., phi4-mini)."""

from __future__ import annotations

import logging

import httpx

from collector_ai.config import Settings
from collector_ai.providers.base import AIProvider, EvaluationError, ToolSpec

logger = logging.getLogger(__name__)

# Local models can be slow to load; used when the caller gives no timeout.
DEFAULT_TIMEOUT = 600


class OllamaProvider(AIProvider):
    name = "ollama"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._model = settings.ollama_model

    def complete(
        self,
        system: str,
        messages: list[dict],
        tool: ToolSpec,
        *,
        timeout: float | None = None,
    ) -> dict:
        payload: dict = {
            "model": self._model,
            "messages": self._json_messages(system, messages, tool),
            "stream": False,
            "format": "json",
            "options": {
                "temperature": self.settings.temperature,
                "num_ctx": 8192,
            },
        }
        try:
            with httpx.Client(timeout=timeout or DEFAULT_TIMEOUT) as client:
                response = client.post(f"{self._base_url}/api/chat", json=payload)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Ollama request failed: %s", exc)
            raise EvaluationError(f"Ollama request failed: {exc}") from exc

        return self._parse_response(response.json().get("message", {}).get("content", ""))
