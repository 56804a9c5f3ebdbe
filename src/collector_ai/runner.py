"""Boot loop: one fresh pipeline per execution context."""

from __future__ import annotations

import logging
import sys

from collector_ai.config import Settings
from collector_ai.emulation import EngagementSimulator
from collector_ai.models import BootAction, SessionOptions, SessionReport
from collector_ai.pipeline import Pipeline
from collector_ai.providers.base import AIProvider
from collector_ai.sources import Browser, Exporter
from collector_ai.store import CheckpointStore

logger = logging.getLogger(__name__)


def _out(msg: str = "") -> None:
    """Print a status message to stderr so it doesn't mix with JSON output."""
    print(msg, file=sys.stderr, flush=True)


async def run_session(
    browser: Browser,
    store: CheckpointStore | None = None,
    settings: Settings | None = None,
    *,
    start: SessionOptions | None = None,
    transport: AIProvider | None = None,
    simulator: EngagementSimulator | None = None,
    exporter: Exporter | None = None,
    max_contexts: int | None = None,
) -> SessionReport | None:
    """
    Drive a session across page transitions.

    Each loop iteration stands for a brand-new execution context: nothing
    from the previous pipeline survives except what is in the store.

    Args:
        start: Start a new session on the current page first; None resumes.
        max_contexts: Safety limit on execution contexts (None = unlimited).

    Returns:
        The final report, or None when there was nothing to run.
    """
    settings = settings or Settings.from_env()
    store = store or CheckpointStore.at(settings.state_dir)
    contexts = 0

    while True:
        contexts += 1
        context, source = browser.open_context()
        pipeline = Pipeline(
            store, context, source,
            settings=settings,
            transport=transport,
            simulator=simulator,
            exporter=exporter,
        )
        if start is not None:
            result = await pipeline.start(start)
            start = None
        else:
            result = await pipeline.boot()

        if result.action is BootAction.FINISHED:
            _out(f"  {result.report.message}")
            return result.report
        if result.action is BootAction.IDLE:
            logger.info("No active session")
            return None

        logger.debug("Navigating to %s", result.url)
        await browser.navigate(result.url)
        if max_contexts is not None and contexts >= max_contexts:
            logger.warning("Stopping after %d execution contexts; the session can be resumed", contexts)
            return None
