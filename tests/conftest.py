"""Shared fixtures for CollectorAI tests."""

from __future__ import annotations

import pytest

from collector_ai.config import Settings
from collector_ai.store import CheckpointStore


@pytest.fixture()
def settings() -> Settings:
    """Settings with dummy keys, criteria for both modes and no real waiting."""
    return Settings(
        openai_api_key="test-openai-key",
        anthropic_api_key="test-anthropic-key",
        groq_api_key="test-groq-key",
        gemini_api_key="test-gemini-key",
        job_criteria="Python backend roles, remote",
        people_criteria="Startup founders in Europe",
        min_page_time=0,
        max_page_time=0,
        min_item_review_time=0,
        max_item_review_time=0,
        min_item_pause=0,
        max_item_pause=0,
        min_sample_interval=0,
        max_sample_interval=0,
    )


@pytest.fixture()
def store(tmp_path) -> CheckpointStore:
    return CheckpointStore.at(tmp_path / "state")


SAMPLE_TRIAGE_RESPONSE = """\
```json
{"decision": "maybe", "reason": "Title fits, seniority unclear"}
```"""
