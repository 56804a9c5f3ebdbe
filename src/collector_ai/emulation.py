"""Engagement simulation: cancellable, randomized time budgets."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)

# Granularity at which a running budget notices a stop request.
_SLICE_SECONDS = 0.5


class EngagementSimulator(Protocol):
    async def simulate(self, min_seconds: float, max_seconds: float, label: str = "") -> bool:
        """Spend a random budget between the bounds. False if it was cut short by a stop."""
        ...


class PacedSimulator:
    """Default simulator: sleeps out the budget, polling ``is_active`` between slices.

    Scrolling or pointer movement belongs to the browser driver; this only
    owns the timing.
    """

    def __init__(
        self,
        is_active: Callable[[], bool] = lambda: True,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self._is_active = is_active
        self._rng = rng or random.Random()

    async def simulate(self, min_seconds: float, max_seconds: float, label: str = "") -> bool:
        budget = self._rng.uniform(min_seconds, max(min_seconds, max_seconds))
        if label:
            logger.debug("%s: %.1fs", label, budget)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + budget
        while True:
            if not self._is_active():
                return False
            remaining = deadline - loop.time()
            if remaining <= 0:
                return True
            await asyncio.sleep(min(remaining, _SLICE_SECONDS))
