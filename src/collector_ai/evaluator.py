"""Two-tier AI evaluation with fail-open semantics.

Tier one decides from the cheap card summary (reject / keep / maybe); only
a "maybe" pays for the full record and a second call. Every failure
(transport error, timeout, unreadable or unexpected answer) resolves to the
inclusive outcome: over-inclusion can be fixed by the user, a silently
dropped record cannot.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod

from collector_ai.config import Settings
from collector_ai.models import (
    BinaryEvaluation,
    FullEvaluation,
    Mode,
    TriageDecision,
    TriageResult,
)
from collector_ai.prompts import PROMPTS
from collector_ai.providers import default_provider
from collector_ai.providers.base import AIProvider, ToolSpec

logger = logging.getLogger(__name__)


class Conversation:
    """Per-page exchange log. Lives only in memory: a page transition discards it."""

    def __init__(self) -> None:
        self.messages: list[dict] = []

    def __len__(self) -> int:
        return len(self.messages)

    def reset(self) -> None:
        self.messages = []

    def with_turn(self, content: str) -> list[dict]:
        return [*self.messages, {"role": "user", "content": content}]

    def record(self, content: str, answer: dict) -> None:
        self.messages.append({"role": "user", "content": content})
        self.messages.append({"role": "assistant", "content": json.dumps(answer)})


class Evaluator:
    """Stateful-per-page wrapper around an evaluator transport."""

    def __init__(
        self,
        transport: AIProvider,
        settings: Settings,
        mode: Mode,
        *,
        two_tier: bool = True,
    ) -> None:
        self._transport = transport
        self._settings = settings
        self._prompts = PROMPTS[mode]
        self.mode = mode
        self.conversation = Conversation()
        self.strategy: EvaluationStrategy = TwoTierStrategy() if two_tier else BinaryStrategy()

    @classmethod
    def from_settings(cls, settings: Settings, mode: Mode, *, two_tier: bool = True) -> Evaluator:
        transport = default_provider(settings)
        return cls(transport, settings, mode, two_tier=two_tier)

    @property
    def two_tier(self) -> bool:
        return isinstance(self.strategy, TwoTierStrategy)

    def reset_conversation(self) -> None:
        self.conversation.reset()
        logger.debug("AI conversation reset for new page")

    async def _call(self, prompt: tuple[str, ToolSpec], content: str, timeout: float) -> dict | None:
        template, tool = prompt
        system = template.format(criteria=self._settings.criteria_for(self.mode))
        messages = self.conversation.with_turn(content)
        try:
            answer = await asyncio.wait_for(
                asyncio.to_thread(
                    self._transport.complete, system, messages, tool, timeout=timeout,
                ),
                timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("AI %s call timed out after %.0fs", tool.name, timeout)
            return None
        except Exception as exc:
            logger.warning("AI %s call failed: %s", tool.name, exc)
            return None
        if not isinstance(answer, dict):
            logger.warning("AI %s call returned %s, not an object", tool.name, type(answer).__name__)
            return None
        self.conversation.record(content, answer)
        return answer

    async def triage(self, card_markdown: str) -> TriageResult:
        answer = await self._call(self._prompts.triage, card_markdown, self._settings.triage_timeout)
        if answer is None:
            return TriageResult(decision=TriageDecision.KEEP, reason="AI error, defaulting to keep")
        try:
            decision = TriageDecision(answer.get("decision"))
        except ValueError:
            logger.warning("Invalid AI triage decision %r, defaulting to keep", answer.get("decision"))
            return TriageResult(
                decision=TriageDecision.KEEP,
                reason="Invalid AI decision, defaulting to keep",
            )
        return TriageResult(decision=decision, reason=str(answer.get("reason") or ""))

    async def evaluate_full(self, record_markdown: str) -> FullEvaluation:
        answer = await self._call(self._prompts.full, record_markdown, self._settings.full_timeout)
        if answer is None:
            return FullEvaluation(accept=True, reason="AI error, defaulting to accept")
        accept = answer.get("accept")
        if not isinstance(accept, bool):
            logger.warning("Invalid AI accept value %r, defaulting to accept", accept)
            return FullEvaluation(accept=True, reason="Invalid AI response, defaulting to accept")
        return FullEvaluation(accept=accept, reason=str(answer.get("reason") or ""))

    async def evaluate_binary(self, card_markdown: str) -> BinaryEvaluation:
        answer = await self._call(self._prompts.binary, card_markdown, self._settings.triage_timeout)
        if answer is None:
            return BinaryEvaluation(download=True, reason="AI error, defaulting to download")
        download = answer.get("download")
        if not isinstance(download, bool):
            logger.warning("Invalid AI download value %r, defaulting to download", download)
            return BinaryEvaluation(download=True, reason="Invalid AI response, defaulting to download")
        return BinaryEvaluation(download=download, reason=str(answer.get("reason") or ""))

    async def screen(self, card_markdown: str) -> TriageResult:
        """First look at an item, through whichever strategy the session chose."""
        return await self.strategy.screen(self, card_markdown)

    async def confirm(self, record_markdown: str) -> FullEvaluation:
        """Second look at an item screened as "maybe"."""
        return await self.strategy.confirm(self, record_markdown)


class EvaluationStrategy(ABC):
    name: str

    @abstractmethod
    async def screen(self, evaluator: Evaluator, card_markdown: str) -> TriageResult: ...

    @abstractmethod
    async def confirm(self, evaluator: Evaluator, record_markdown: str) -> FullEvaluation: ...


class TwoTierStrategy(EvaluationStrategy):
    """reject / keep / maybe from the card, accept / reject from the full record."""

    name = "two_tier"

    async def screen(self, evaluator: Evaluator, card_markdown: str) -> TriageResult:
        return await evaluator.triage(card_markdown)

    async def confirm(self, evaluator: Evaluator, record_markdown: str) -> FullEvaluation:
        return await evaluator.evaluate_full(record_markdown)


class BinaryStrategy(EvaluationStrategy):
    """download / skip from the card alone; never answers "maybe"."""

    name = "binary"

    async def screen(self, evaluator: Evaluator, card_markdown: str) -> TriageResult:
        result = await evaluator.evaluate_binary(card_markdown)
        decision = TriageDecision.KEEP if result.download else TriageDecision.REJECT
        return TriageResult(decision=decision, reason=result.reason)

    async def confirm(self, evaluator: Evaluator, record_markdown: str) -> FullEvaluation:
        return FullEvaluation(accept=True, reason="Binary mode has no second tier")
