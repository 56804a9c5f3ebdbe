"""Session state machine.

Every page transition destroys the execution context, so a ``Pipeline``
lives for exactly one page: it is built at boot, reads the checkpoint,
derives what to do next purely from it (``derive_next_step``) and runs
until it either asks for a navigation or the session finishes. Resuming
after a crash is the same code path as continuing after a navigation.
"""

from __future__ import annotations

import logging
from enum import Enum

from collector_ai.config import Settings
from collector_ai.emulation import EngagementSimulator, PacedSimulator
from collector_ai.evaluator import Evaluator
from collector_ai.exporter import JsonExporter
from collector_ai.flows import Flow, JobFlow, ProfileFlow
from collector_ai.models import (
    BootResult,
    Checkpoint,
    ItemCursor,
    Mode,
    Outcome,
    SessionOptions,
    SessionReport,
)
from collector_ai.pages import (
    LISTING_KIND,
    PageKind,
    base_url,
    current_page,
    detect_page_kind,
    mode_for,
    page_url,
    resolve_target,
)
from collector_ai.pagination import decide
from collector_ai.providers.base import AIProvider
from collector_ai.sources import Exporter, ItemSource, PageContext
from collector_ai.store import CheckpointStore

logger = logging.getLogger(__name__)

# Pause before navigating to the next listing page, seconds.
NAVIGATION_DELAY = {Mode.PROFILES: (1.0, 2.5), Mode.JOBS: (1.5, 3.0)}


class UnsupportedPageError(Exception):
    """Raised when a session is started anywhere but a supported listing page."""


class SessionActiveError(Exception):
    """Raised when a session is started while another one is active."""


class Step(str, Enum):
    IDLE = "idle"
    FINALIZE = "finalize"
    ABORT_MISMATCH = "abort_mismatch"
    LOAD_PAGE = "load_page"
    TRIAGE = "triage"
    ITERATE = "iterate"
    OPEN_DETAIL = "open_detail"
    VISIT_DETAIL = "visit_detail"
    RETURN_TO_LISTING = "return_to_listing"
    PAGE_TRANSITION = "page_transition"


def derive_next_step(checkpoint: Checkpoint | None, page_kind: PageKind) -> Step:
    """What a context booted on ``page_kind`` must do next, from the checkpoint alone."""
    if checkpoint is None:
        return Step.IDLE
    if not checkpoint.active:
        return Step.FINALIZE

    deep_dive = checkpoint.mode is Mode.PROFILES and checkpoint.ai_enabled
    if page_kind is PageKind.PROFILE and deep_dive:
        return Step.VISIT_DETAIL if checkpoint.detail_url else Step.RETURN_TO_LISTING
    if page_kind is not LISTING_KIND[checkpoint.mode]:
        return Step.ABORT_MISMATCH

    if checkpoint.detail_url:
        return Step.OPEN_DETAIL
    if not checkpoint.cursor.snapshotted:
        return Step.LOAD_PAGE
    if deep_dive and checkpoint.next_untriaged() is not None:
        return Step.TRIAGE
    if checkpoint.cursor.exhausted:
        return Step.PAGE_TRANSITION
    return Step.ITERATE


class Pipeline:
    """One execution context's worth of the collection pipeline."""

    def __init__(
        self,
        store: CheckpointStore,
        context: PageContext,
        source: ItemSource,
        *,
        settings: Settings | None = None,
        transport: AIProvider | None = None,
        simulator: EngagementSimulator | None = None,
        exporter: Exporter | None = None,
    ) -> None:
        self.store = store
        self.context = context
        self.source = source
        self.settings = settings or Settings.from_env()
        self._transport = transport
        self.simulator = simulator or PacedSimulator(store.is_active)
        self.exporter = exporter or JsonExporter()
        self.page_kind = detect_page_kind(context.url)
        self.evaluator: Evaluator | None = None
        self._flow: Flow | None = None

    async def start(self, options: SessionOptions | None = None) -> BootResult:
        """Create a session on the current listing page and start collecting."""
        options = options or SessionOptions()
        mode = mode_for(self.page_kind)
        if mode is None:
            raise UnsupportedPageError(
                f"Not a supported listing page: {self.context.url}"
            )
        if self.store.is_active():
            raise SessionActiveError("A collection session is already running")
        leftover = self.store.load()
        if leftover is not None:
            # Stopped while no context was running: flush it before it is replaced.
            logger.info("Finalizing stopped %s session before starting a new one", leftover.mode.value)
            self._finalize(leftover)

        ai_enabled = options.ai
        if ai_enabled and not self.settings.ai_configured(mode):
            logger.warning("AI filtering requested but not configured for %s; collecting without it", mode.value)
            ai_enabled = False

        url = self.context.url
        page = current_page(url, mode)
        checkpoint = Checkpoint(
            mode=mode,
            start_page=page,
            current_page=page,
            target_page_count=resolve_target(options.page_count, mode),
            base_url=base_url(url, mode),
            formats=list(options.formats),
            include_seen=options.include_seen,
            ai_enabled=ai_enabled,
            two_tier=options.two_tier,
        )
        self.store.start(checkpoint)
        logger.info(
            "Session started: %s from page %d, target %d pages, AI %s",
            mode.value, page, checkpoint.target_page_count,
            ("two-tier" if options.two_tier else "binary") if ai_enabled else "off",
        )
        return await self.boot()

    def stop(self) -> None:
        self.store.request_stop()

    async def boot(self) -> BootResult:
        """Resume whatever the checkpoint says is next, until navigation or the end."""
        checkpoint = self.store.load()
        if checkpoint is None:
            return BootResult.idle()
        self._prepare(checkpoint)

        while True:
            checkpoint.active = self.store.is_active()
            step = derive_next_step(checkpoint, self.page_kind)
            logger.debug("Page %d: %s", checkpoint.current_page, step.value)

            if step is Step.FINALIZE:
                logger.info("Session stopped")
                return self._finalize(checkpoint)
            if step is Step.ABORT_MISMATCH:
                logger.warning(
                    "Resumed on a %s page during a %s session; saving what was collected",
                    self.page_kind.value, checkpoint.mode.value,
                )
                return self._finalize(checkpoint, aborted="Session resumed on an unexpected page")
            if step is Step.LOAD_PAGE:
                try:
                    await self._load_page(checkpoint)
                except Exception as exc:
                    logger.error("Failed to load page %d: %s", checkpoint.current_page, exc)
                    return self._finalize(checkpoint, aborted=f"Page {checkpoint.current_page} failed: {exc}")
            elif step is Step.TRIAGE:
                await self._flow.triage_next(checkpoint)
            elif step is Step.ITERATE:
                await self._flow.process_next(checkpoint)
            elif step is Step.OPEN_DETAIL:
                return BootResult.navigate(checkpoint.detail_url)
            elif step is Step.VISIT_DETAIL:
                await self._flow.visit_detail(checkpoint)
            elif step is Step.RETURN_TO_LISTING:
                return BootResult.navigate(self._listing_url(checkpoint))
            elif step is Step.PAGE_TRANSITION:
                try:
                    result = await self._page_transition(checkpoint)
                except Exception as exc:
                    logger.error("Failed to move past page %d: %s", checkpoint.current_page, exc)
                    return self._finalize(checkpoint, aborted=f"Page {checkpoint.current_page} failed: {exc}")
                if result is not None:
                    return result
            else:
                return BootResult.idle()

    def _prepare(self, checkpoint: Checkpoint) -> None:
        if checkpoint.ai_enabled:
            if self._transport is None:
                self.evaluator = Evaluator.from_settings(
                    self.settings, checkpoint.mode, two_tier=checkpoint.two_tier,
                )
            else:
                self.evaluator = Evaluator(
                    self._transport, self.settings, checkpoint.mode, two_tier=checkpoint.two_tier,
                )
        flow_class = JobFlow if checkpoint.mode is Mode.JOBS else ProfileFlow
        self._flow = flow_class(
            self.store, self.source, self.simulator, self.settings, self.evaluator,
        )

    def _listing_url(self, checkpoint: Checkpoint) -> str:
        return page_url(checkpoint.base_url, checkpoint.mode, checkpoint.current_page)

    async def _load_page(self, checkpoint: Checkpoint) -> None:
        if self.evaluator is not None:
            self.evaluator.reset_conversation()

        item_ids = list(dict.fromkeys(await self.source.discover_all_item_ids()))
        checkpoint.cursor = ItemCursor(item_ids=item_ids, index=0, snapshotted=True)
        checkpoint.triage = []
        self.store.save(checkpoint)
        logger.info(
            "Page %d (%d of %s): %d items",
            checkpoint.current_page, checkpoint.pages_scanned,
            "all" if checkpoint.unbounded else checkpoint.target_page_count,
            len(item_ids),
        )
        if item_ids:
            s = self.settings
            await self.simulator.simulate(s.min_page_time, s.max_page_time, "Scanning page")

    async def _page_transition(self, checkpoint: Checkpoint) -> BootResult | None:
        decision = decide(
            checkpoint,
            has_pagination=self.context.has_pagination(),
            has_next_page=self.context.has_next_page(),
            items_on_page=len(checkpoint.cursor.item_ids),
        )
        if decision.finalizes:
            logger.info("Finishing after page %d: %s", checkpoint.current_page, decision.value)
            return self._finalize(checkpoint)

        if not await self.simulator.simulate(*NAVIGATION_DELAY[checkpoint.mode], "Before next page"):
            # Stopped during the pause; the loop finalizes on its next pass.
            return None

        checkpoint.current_page += 1
        checkpoint.reset_page()
        self.store.save(checkpoint)
        if self.evaluator is not None:
            self.evaluator.reset_conversation()
        url = self._listing_url(checkpoint)
        logger.info("Moving to page %d: %s", checkpoint.current_page, url)
        return BootResult.navigate(url)

    def _finalize(self, checkpoint: Checkpoint, aborted: str | None = None) -> BootResult:
        """Export whatever was collected, explain an empty result, clear the session."""
        buffer = checkpoint.buffer
        stats = checkpoint.stats
        pages = checkpoint.pages_scanned

        if buffer:
            outcome = Outcome.EXPORTED
            message = f"Collected {len(buffer)} {checkpoint.mode.value} from {pages} pages"
            try:
                self.exporter.export(buffer, checkpoint.formats)
            except Exception as exc:
                logger.error("Export failed: %s", exc)
        elif checkpoint.ai_enabled and stats.evaluated > 0:
            outcome = Outcome.NO_MATCHES
            message = (
                f"No results matched: {stats.evaluated} evaluated, "
                f"0 accepted, {pages} pages scanned"
            )
        else:
            outcome = Outcome.NO_RESULTS
            message = f"No {checkpoint.mode.value} found"

        if aborted:
            outcome = Outcome.ABORTED
            message = f"{aborted}. {message}"

        report = SessionReport(
            outcome=outcome,
            mode=checkpoint.mode,
            items=len(buffer),
            evaluated=stats.evaluated,
            accepted=stats.accepted,
            pages_scanned=pages,
            message=message,
        )
        self.store.clear()
        logger.info("Session finished: %s", message)
        return BootResult.finished(report)
