"""Polling-with-quiescence for virtualized listings.

A virtualized listing keeps inserting placeholder shells for a while after
the page loads, so one poll sees only part of the page. The shell count is
sampled until it has been identical for several consecutive samples.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    wait_random,
)

logger = logging.getLogger(__name__)

Sampler = Callable[[], Awaitable[list[str]]]


class QuiescenceTracker:
    """Counts consecutive samples whose (non-zero) size did not change."""

    def __init__(self, required_stable: int) -> None:
        self.required_stable = required_stable
        self.previous_count = 0
        self.stable_checks = 0
        self.attempts = 0

    def observe(self, ids: list[str]) -> bool:
        self.attempts += 1
        count = len(ids)
        if count == self.previous_count and count > 0:
            self.stable_checks += 1
        else:
            self.stable_checks = 0
            self.previous_count = count
        return self.stable_checks >= self.required_stable


def _last_result(retry_state: RetryCallState) -> list[str]:
    return retry_state.outcome.result()


async def wait_for_stable_ids(
    sample: Sampler,
    fallback: Sampler,
    *,
    required_stable: int = 3,
    max_attempts: int = 20,
    min_interval: float = 0.25,
    max_interval: float = 0.35,
    cancelled: Callable[[], bool] | None = None,
) -> list[str]:
    """Sample shell ids until their count settles, then return them de-duplicated.

    Gives up after ``max_attempts`` samples and uses whatever the last one
    saw. When no shells were found at all, ``fallback`` (the already
    realized cards) is used instead.
    """
    tracker = QuiescenceTracker(required_stable)

    async def poll() -> list[str]:
        ids = await sample()
        tracker.observe(ids)
        return ids

    def should_stop(retry_state: RetryCallState) -> bool:
        if cancelled is not None and cancelled():
            return True
        return retry_state.attempt_number >= max_attempts

    retrying = AsyncRetrying(
        retry=retry_if_result(lambda _: tracker.stable_checks < tracker.required_stable),
        stop=should_stop,
        wait=wait_random(min_interval, max_interval),
        retry_error_callback=_last_result,
    )
    ids = list(dict.fromkeys(await retrying(poll)))
    logger.info(
        "Discovered %d item ids from listing shells (after %d checks)",
        len(ids), tracker.attempts,
    )

    if not ids:
        ids = list(dict.fromkeys(await fallback()))
        logger.info("Fallback: found %d item ids from rendered cards", len(ids))
    return ids
