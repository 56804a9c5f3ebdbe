"""Per-item processing for each collection mode.

A flow performs exactly one unit of work per call and persists its effect
together with the cursor advance in a single checkpoint write; pacing
delays come only after that write.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum

from collector_ai.config import Settings
from collector_ai.emulation import EngagementSimulator
from collector_ai.evaluator import Evaluator
from collector_ai.models import Checkpoint, Mode, TriageDecision, TriageRecord
from collector_ai.render import render_card, render_full
from collector_ai.sources import ItemSource
from collector_ai.store import CheckpointStore

logger = logging.getLogger(__name__)

# Pacing between item-level operations, seconds.
SKIP_DELAY = (0.3, 0.6)
TRIAGE_DELAY = (0.2, 0.4)
DETAIL_SKIP_DELAY = (1.5, 3.0)


class ItemOutcome(str, Enum):
    COLLECTED = "collected"  # appended without an AI decision
    ACCEPTED = "accepted"  # appended on an AI inclusion branch
    REJECTED = "rejected"
    SKIPPED = "skipped"
    FAILED = "failed"

    @property
    def appended(self) -> bool:
        return self in (ItemOutcome.COLLECTED, ItemOutcome.ACCEPTED)


class Flow(ABC):
    """Shared plumbing: the collaborators one execution context works with."""

    mode: Mode

    def __init__(
        self,
        store: CheckpointStore,
        source: ItemSource,
        simulator: EngagementSimulator,
        settings: Settings,
        evaluator: Evaluator | None = None,
    ) -> None:
        self.store = store
        self.source = source
        self.simulator = simulator
        self.settings = settings
        self.evaluator = evaluator

    def _complete_item(
        self,
        checkpoint: Checkpoint,
        outcome: ItemOutcome,
        record: dict | None = None,
    ) -> None:
        """Persist the item's effect and the cursor advance as one write."""
        if outcome.appended and record is not None:
            checkpoint.buffer.append(record)
            if outcome is ItemOutcome.ACCEPTED:
                checkpoint.stats.accepted += 1
        checkpoint.cursor.index += 1
        self.store.save(checkpoint)
        logger.debug(
            "Item %d/%d %s (buffer: %d)",
            checkpoint.cursor.index, len(checkpoint.cursor.item_ids),
            outcome.value, len(checkpoint.buffer),
        )

    async def _pace_after(self, outcome: ItemOutcome) -> None:
        s = self.settings
        if outcome.appended:
            await self.simulator.simulate(s.min_item_review_time, s.max_item_review_time, "Reviewing item")
            await self.simulator.simulate(s.min_item_pause, s.max_item_pause, "Pause between items")
        else:
            await self.simulator.simulate(*SKIP_DELAY, "Skip")

    @abstractmethod
    async def process_next(self, checkpoint: Checkpoint) -> None:
        """Handle the item under the cursor."""


class JobFlow(Flow):
    """Jobs: screen, fetch and decide each item in turn."""

    mode = Mode.JOBS

    async def process_next(self, checkpoint: Checkpoint) -> None:
        item_id = checkpoint.cursor.current
        try:
            outcome, record = await self._process(checkpoint, item_id)
        except Exception as exc:
            logger.warning("Failed to process job %s, skipping: %s", item_id, exc)
            outcome, record = ItemOutcome.FAILED, None
        self._complete_item(checkpoint, outcome, record)
        await self._pace_after(outcome)

    async def _process(self, checkpoint: Checkpoint, item_id: str) -> tuple[ItemOutcome, dict | None]:
        if not checkpoint.include_seen and await self.source.is_seen(item_id):
            logger.info("Skipping already seen job %s", item_id)
            return ItemOutcome.SKIPPED, None

        if self.evaluator is None:
            return self._collected(await self.source.get_full_record(item_id), item_id)

        triage = checkpoint.triage_for(item_id)
        if triage is None:
            card = await self.source.get_card_summary(item_id)
            if card is None:
                logger.info("No card data for job %s, fetching it without AI review", item_id)
                return self._collected(await self.source.get_full_record(item_id), item_id)

            result = await self.evaluator.screen(render_card(card, self.mode))
            triage = TriageRecord(
                item_id=item_id, decision=result.decision, reason=result.reason, card=card,
            )
            checkpoint.triage.append(triage)
            checkpoint.stats.evaluated += 1
            if triage.decision is TriageDecision.REJECT:
                logger.info(
                    "AI triage reject: %s (%s): %s",
                    card.get("job_title", ""), item_id, triage.reason,
                )
                return ItemOutcome.REJECTED, None
            # Persist the decision before fetching the full record.
            self.store.save(checkpoint)
        elif triage.decision is TriageDecision.REJECT:
            return ItemOutcome.REJECTED, None

        job = await self.source.get_full_record(item_id)
        if job is None:
            logger.warning("Could not extract job %s", item_id)
            return ItemOutcome.SKIPPED, None

        if triage.decision is TriageDecision.MAYBE:
            evaluation = await self.evaluator.confirm(render_full(job, self.mode))
            if not evaluation.accept:
                logger.info(
                    "AI full reject: %s (%s): %s",
                    job.get("job_title", ""), item_id, evaluation.reason,
                )
                return ItemOutcome.REJECTED, None
            logger.info("AI accepted job after full review: %s: %s", item_id, evaluation.reason)
        else:
            logger.info("AI kept job %s: %s", item_id, triage.reason)
        return ItemOutcome.ACCEPTED, job

    @staticmethod
    def _collected(job: dict | None, item_id: str) -> tuple[ItemOutcome, dict | None]:
        if job is None:
            logger.warning("Could not extract job %s", item_id)
            return ItemOutcome.SKIPPED, None
        return ItemOutcome.COLLECTED, job


class ProfileFlow(Flow):
    """People: card collection, or a triage pass followed by profile visits.

    With AI filtering the listing page is handled in two passes. The first
    triages every card (one Triage Record per item). The second walks the
    cursor and hands each kept/maybe profile to the pipeline as a pending
    detail URL; the visit itself runs in the execution context of the
    profile page (``visit_detail``).
    """

    mode = Mode.PROFILES

    async def process_next(self, checkpoint: Checkpoint) -> None:
        if self.evaluator is None:
            await self._collect_card(checkpoint)
        else:
            await self._schedule_visit(checkpoint)

    async def _collect_card(self, checkpoint: Checkpoint) -> None:
        item_id = checkpoint.cursor.current
        try:
            card = await self.source.get_card_summary(item_id)
        except Exception as exc:
            logger.warning("Failed to read profile card %s, skipping: %s", item_id, exc)
            card = None
        if card is None:
            self._complete_item(checkpoint, ItemOutcome.SKIPPED)
        else:
            self._complete_item(checkpoint, ItemOutcome.COLLECTED, card)

    async def triage_next(self, checkpoint: Checkpoint) -> None:
        """Triage the first item of the page that has no Triage Record yet."""
        item_id = checkpoint.next_untriaged()
        try:
            card = await self.source.get_card_summary(item_id)
        except Exception as exc:
            logger.warning("Failed to read profile card %s: %s", item_id, exc)
            card = None

        if card is None or not card.get("profile_url"):
            record = TriageRecord(
                item_id=item_id, decision=TriageDecision.REJECT,
                reason="No profile URL", card=card or {},
            )
            checkpoint.triage.append(record)
            self.store.save(checkpoint)
            return

        result = await self.evaluator.screen(render_card(card, self.mode))
        record = TriageRecord(item_id=item_id, decision=result.decision, reason=result.reason, card=card)
        checkpoint.triage.append(record)
        checkpoint.stats.evaluated += 1
        self.store.save(checkpoint)
        if record.decision is TriageDecision.REJECT:
            logger.info("AI triage reject: %s: %s", card.get("full_name", item_id), record.reason)
        else:
            logger.info("AI triage %s: %s: %s", record.decision.value, card.get("full_name", item_id), record.reason)
        await self.simulator.simulate(*TRIAGE_DELAY, "Between triage calls")

    async def _schedule_visit(self, checkpoint: Checkpoint) -> None:
        item_id = checkpoint.cursor.current
        record = checkpoint.triage_for(item_id)
        if record is None or not record.passed:
            self._complete_item(checkpoint, ItemOutcome.REJECTED)
            await self.simulator.simulate(*SKIP_DELAY, "Skip")
            return
        checkpoint.detail_url = record.card["profile_url"]
        self.store.save(checkpoint)
        logger.info("Visiting profile %s (%s)", checkpoint.detail_url, record.decision.value)

    async def visit_detail(self, checkpoint: Checkpoint) -> None:
        """Runs on the profile page: extract, decide, append, advance."""
        item_id = checkpoint.cursor.current
        try:
            outcome, record = await self._evaluate_profile(checkpoint, item_id)
        except Exception as exc:
            logger.warning("Failed to process profile %s, skipping: %s", checkpoint.detail_url, exc)
            outcome, record = ItemOutcome.FAILED, None
        checkpoint.detail_url = ""
        self._complete_item(checkpoint, outcome, record)

        s = self.settings
        if outcome.appended:
            await self.simulator.simulate(s.min_item_review_time, s.max_item_review_time, "Reading profile")
        else:
            await self.simulator.simulate(*DETAIL_SKIP_DELAY, "Leaving skipped profile")

    async def _evaluate_profile(self, checkpoint: Checkpoint, item_id: str) -> tuple[ItemOutcome, dict | None]:
        triage = checkpoint.triage_for(item_id)
        full = await self.source.get_full_record(item_id)
        if full is None:
            logger.warning("Profile %s is restricted or could not be extracted", checkpoint.detail_url)
            return ItemOutcome.SKIPPED, None

        profile = {**triage.card, **full}
        reason = triage.reason
        if triage.decision is TriageDecision.MAYBE:
            evaluation = await self.evaluator.confirm(render_full(profile, self.mode))
            if not evaluation.accept:
                logger.info(
                    "AI full reject: %s: %s",
                    profile.get("full_name", checkpoint.detail_url), evaluation.reason,
                )
                return ItemOutcome.REJECTED, None
            reason = evaluation.reason or reason
        profile["ai_decision"] = triage.decision.value
        profile["ai_reason"] = reason
        return ItemOutcome.ACCEPTED, profile
