"""Abstract base class for all evaluator providers."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from collector_ai.config import Settings

logger = logging.getLogger(__name__)

# Appended to the system prompt of providers without native tool calling.
JSON_INSTRUCTION = """\

Respond by calling the "{name}" tool: return ONLY a JSON object matching this \
schema, with no other text:
{schema}"""


class EvaluationError(Exception):
    """Raised when a provider call fails or its answer cannot be read."""


@dataclass(frozen=True)
class ToolSpec:
    """A structured decision the model is forced to return."""

    name: str
    description: str
    input_schema: dict

    def json_instruction(self) -> str:
        return JSON_INSTRUCTION.format(
            name=self.name,
            schema=json.dumps(self.input_schema, indent=2),
        )


class AIProvider(ABC):
    """Contract for evaluator transports.

    ``messages`` is the running page conversation: alternating ``user`` and
    ``assistant`` turns with plain-text content, the last one being the
    item to decide on.
    """

    name: str

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @abstractmethod
    def complete(
        self,
        system: str,
        messages: list[dict],
        tool: ToolSpec,
        *,
        timeout: float | None = None,
    ) -> dict:
        """
        Ask the model for one decision.

        Args:
            system: System prompt, criteria included.
            messages: Conversation so far, ending with the user turn to decide.
            tool: Decision schema the answer must follow.
            timeout: Seconds before the underlying request is abandoned.

        Returns:
            The decision object (the tool input) as a dict.
        """
        ...

    def _json_messages(self, system: str, messages: list[dict], tool: ToolSpec) -> list[dict]:
        """Chat messages for providers that answer in JSON mode instead of tool calls."""
        return [{"role": "system", "content": system + tool.json_instruction()}, *messages]

    def _parse_response(self, raw_json: str) -> dict:
        """Parse a JSON decision out of a model reply."""
        text = raw_json.strip()

        # Strip markdown code fences if present (```json ... ```)
        if text.startswith("```"):
            first_nl = text.find("\n")
            if first_nl != -1:
                text = text[first_nl + 1:]
            if text.rstrip().endswith("```"):
                text = text.rstrip()[:-3].rstrip()

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            # Models sometimes add prose or a second object after the answer;
            # the first object is the decision.
            start = text.find("{")
            if start == -1:
                raise EvaluationError(f"Failed to parse AI response: {text[:200]}") from None
            try:
                parsed, _ = json.JSONDecoder().raw_decode(text[start:])
            except json.JSONDecodeError:
                raise EvaluationError(f"Failed to parse AI response: {text[:200]}") from None

        if not isinstance(parsed, dict):
            raise EvaluationError(f"Expected a JSON object, got: {text[:200]}")
        return parsed
