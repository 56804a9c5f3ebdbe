"""Tests for collector_ai.emulation module."""

from __future__ import annotations

import asyncio
import random

from collector_ai.emulation import PacedSimulator


class TestPacedSimulator:
    def test_completes_budget(self):
        simulator = PacedSimulator(rng=random.Random(1))
        assert asyncio.run(simulator.simulate(0, 0.01, "Reviewing item")) is True

    def test_stopped_before_start(self):
        simulator = PacedSimulator(lambda: False)
        assert asyncio.run(simulator.simulate(5, 10)) is False

    def test_stop_cuts_budget_short(self):
        checks = []

        def is_active():
            checks.append(1)
            return len(checks) < 2

        simulator = PacedSimulator(is_active)

        async def run():
            loop = asyncio.get_running_loop()
            started = loop.time()
            result = await simulator.simulate(30, 30)
            return result, loop.time() - started

        result, elapsed = asyncio.run(run())
        assert result is False
        assert elapsed < 5
