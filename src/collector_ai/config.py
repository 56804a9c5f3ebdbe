"""Centralized configuration loaded from .env."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from collector_ai.models import Mode

# Providers that run locally and need no API key.
_KEYLESS_PROVIDERS = {"ollama"}


def _load_env() -> None:
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)
    else:
        load_dotenv()


def _float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    return float(raw) if raw else default


def _int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    return int(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    # Evaluator provider keys
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-5-20250929"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"

    # Ollama config
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "phi4-mini"

    # Groq config (OpenAI-compatible, free tier)
    groq_api_key: str = ""
    groq_model: str = "llama-3.1-8b-instant"

    # Gemini config
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"

    default_provider: str = "anthropic"
    temperature: float = 0.0

    # What the evaluator should look for, per mode
    job_criteria: str = ""
    people_criteria: str = ""

    # Evaluator timeouts (seconds): short for card triage, longer for full records
    triage_timeout: float = 30.0
    full_timeout: float = 60.0

    # Engagement timing (seconds)
    min_page_time: float = 10.0
    max_page_time: float = 40.0
    min_item_review_time: float = 3.0
    max_item_review_time: float = 8.0
    min_item_pause: float = 1.0
    max_item_pause: float = 3.0

    # Listing stabilization
    stable_samples: int = 3
    max_stabilize_attempts: int = 20
    min_sample_interval: float = 0.25
    max_sample_interval: float = 0.35

    state_dir: str = ".collector_state"

    def criteria_for(self, mode: Mode) -> str:
        return self.job_criteria if mode is Mode.JOBS else self.people_criteria

    def provider_key(self, provider: str) -> str:
        return {
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
            "groq": self.groq_api_key,
            "gemini": self.gemini_api_key,
        }.get(provider, "")

    def has_credentials(self, provider: str) -> bool:
        return provider in _KEYLESS_PROVIDERS or bool(self.provider_key(provider))

    def ai_configured(self, mode: Mode) -> bool:
        """True when AI filtering can run for ``mode``: criteria and credentials are set."""
        if not self.criteria_for(mode).strip():
            return False
        return self.has_credentials(self.default_provider)

    @classmethod
    def from_env(cls) -> Settings:
        _load_env()
        return cls(
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
            claude_model=os.getenv("CLAUDE_MODEL", "claude-sonnet-4-5-20250929"),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o"),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
            ollama_model=os.getenv("OLLAMA_MODEL", "phi4-mini"),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            groq_model=os.getenv("GROQ_MODEL", "llama-3.1-8b-instant"),
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            default_provider=os.getenv("DEFAULT_PROVIDER", "anthropic"),
            job_criteria=os.getenv("JOB_CRITERIA", ""),
            people_criteria=os.getenv("PEOPLE_CRITERIA", ""),
            triage_timeout=_float("TRIAGE_TIMEOUT", 30.0),
            full_timeout=_float("FULL_TIMEOUT", 60.0),
            min_page_time=_float("MIN_PAGE_TIME", 10.0),
            max_page_time=_float("MAX_PAGE_TIME", 40.0),
            min_item_review_time=_float("MIN_ITEM_REVIEW_TIME", 3.0),
            max_item_review_time=_float("MAX_ITEM_REVIEW_TIME", 8.0),
            min_item_pause=_float("MIN_ITEM_PAUSE", 1.0),
            max_item_pause=_float("MAX_ITEM_PAUSE", 3.0),
            stable_samples=_int("STABLE_SAMPLES", 3),
            max_stabilize_attempts=_int("MAX_STABILIZE_ATTEMPTS", 20),
            state_dir=os.getenv("COLLECTOR_STATE_DIR", ".collector_state"),
        )
