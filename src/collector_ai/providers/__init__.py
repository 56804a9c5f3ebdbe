"""Evaluator transports, imported on first use."""

from __future__ import annotations

import importlib
import logging

from collector_ai.config import Settings
from collector_ai.providers.base import AIProvider

logger = logging.getLogger(__name__)

# name -> (module under collector_ai.providers, class)
_TRANSPORTS: dict[str, tuple[str, str]] = {
    "anthropic": ("anthropic", "AnthropicProvider"),
    "gemini": ("gemini", "GeminiProvider"),
    "groq": ("groq", "GroqProvider"),
    "ollama": ("ollama", "OllamaProvider"),
    "openai": ("openai", "OpenAIProvider"),
}


def _transport_class(name: str) -> type[AIProvider]:
    try:
        module_name, class_name = _TRANSPORTS[name]
    except KeyError:
        available = ", ".join(list_providers())
        raise ValueError(f"Unknown provider '{name}'. Available: {available}") from None
    module = importlib.import_module(f"{__name__}.{module_name}")
    return getattr(module, class_name)


def get_provider(name: str, settings: Settings) -> AIProvider:
    """Instantiate the transport registered as ``name``."""
    return _transport_class(name)(settings)


def default_provider(settings: Settings) -> AIProvider:
    """The transport selected by ``settings.default_provider``.

    Raises:
        ValueError: Unknown provider, or one that needs an API key that is not set.
    """
    name = settings.default_provider
    provider_class = _transport_class(name)
    if not settings.has_credentials(name):
        raise ValueError(f"Provider '{name}' is selected but has no API key configured")
    logger.debug("Using %s evaluator transport", name)
    return provider_class(settings)


def list_providers(settings: Settings | None = None) -> list[str]:
    """Registered transport names; only those with credentials when ``settings`` is given."""
    names = sorted(_TRANSPORTS)
    if settings is None:
        return names
    return [name for name in names if settings.has_credentials(name)]
