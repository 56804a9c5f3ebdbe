"""Tests for provider registry and base class."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from collector_ai.config import Settings
from collector_ai.models import Mode
from collector_ai.prompts import CARD_TRIAGE_TOOL, FULL_EVALUATION_TOOL, PROMPTS
from collector_ai.providers import default_provider, get_provider, list_providers
from collector_ai.providers.base import AIProvider, EvaluationError

from .conftest import SAMPLE_TRIAGE_RESPONSE

MESSAGES = [{"role": "user", "content": "## Engineer j1\n**Company:** Acme"}]


class TestProviderRegistry:
    def test_list_providers(self):
        providers = list_providers()
        assert "anthropic" in providers
        assert "openai" in providers
        assert "ollama" in providers
        assert "groq" in providers
        assert "gemini" in providers

    def test_list_providers_returns_sorted(self):
        providers = list_providers()
        assert providers == sorted(providers)

    def test_get_provider_unknown_raises(self, settings):
        with pytest.raises(ValueError, match="Unknown provider 'nonexistent'"):
            get_provider("nonexistent", settings)

    def test_get_provider_unknown_shows_available(self, settings):
        with pytest.raises(ValueError, match="Available:"):
            get_provider("bad", settings)

    def test_get_provider_ollama(self, settings):
        provider = get_provider("ollama", settings)
        assert provider.name == "ollama"
        assert isinstance(provider, AIProvider)

    def test_list_providers_with_credentials(self):
        assert list_providers(Settings(groq_api_key="gsk-test")) == ["groq", "ollama"]

    def test_default_provider_keyless(self):
        provider = default_provider(Settings(default_provider="ollama"))
        assert provider.name == "ollama"

    def test_default_provider_without_key_raises(self):
        with pytest.raises(ValueError, match="no API key configured"):
            default_provider(Settings(default_provider="openai", openai_api_key=""))

    def test_default_provider_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown provider 'bogus'"):
            default_provider(Settings(default_provider="bogus"))


class TestParseResponse:
    def test_valid_json(self, settings):
        provider = get_provider("ollama", settings)
        assert provider._parse_response('{"decision": "keep", "reason": "fits"}') == {
            "decision": "keep",
            "reason": "fits",
        }

    def test_code_fences(self, settings):
        provider = get_provider("ollama", settings)
        result = provider._parse_response(SAMPLE_TRIAGE_RESPONSE)
        assert result["decision"] == "maybe"

    def test_prose_around_object(self, settings):
        provider = get_provider("ollama", settings)
        raw = 'Here is my answer: {"accept": false, "reason": "onsite"} Hope that helps {"x": 1}'
        assert provider._parse_response(raw) == {"accept": False, "reason": "onsite"}

    def test_invalid_json_raises(self, settings):
        provider = get_provider("ollama", settings)
        with pytest.raises(EvaluationError, match="Failed to parse"):
            provider._parse_response("not json at all")

    def test_broken_object_raises(self, settings):
        provider = get_provider("ollama", settings)
        with pytest.raises(EvaluationError, match="Failed to parse"):
            provider._parse_response('{"decision": ')

    def test_non_object_raises(self, settings):
        provider = get_provider("ollama", settings)
        with pytest.raises(EvaluationError, match="Expected a JSON object"):
            provider._parse_response('["keep"]')

    def test_json_messages_append_schema(self, settings):
        provider = get_provider("ollama", settings)
        messages = provider._json_messages("SYSTEM", MESSAGES, CARD_TRIAGE_TOOL)
        assert messages[0]["role"] == "system"
        assert messages[0]["content"].startswith("SYSTEM")
        assert '"enum"' in messages[0]["content"]
        assert messages[1:] == MESSAGES


class TestProviderInit:
    """Test provider-specific initialization requirements."""

    def test_anthropic_requires_api_key(self):
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            get_provider("anthropic", Settings(anthropic_api_key=""))

    def test_openai_requires_api_key(self):
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            get_provider("openai", Settings(openai_api_key=""))

    def test_groq_requires_api_key(self):
        with pytest.raises(ValueError, match="GROQ_API_KEY"):
            get_provider("groq", Settings(groq_api_key=""))

    def test_gemini_requires_api_key(self):
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            get_provider("gemini", Settings(gemini_api_key=""))

    def test_ollama_no_key_required(self):
        provider = get_provider("ollama", Settings())
        assert provider.name == "ollama"


class TestAnthropicProvider:
    def _provider(self, settings, content):
        client = MagicMock()
        client.messages.create.return_value = SimpleNamespace(content=content)
        with patch("collector_ai.providers.anthropic.anthropic.Anthropic", return_value=client):
            provider = get_provider("anthropic", settings)
        return provider, client

    def test_returns_tool_input(self, settings):
        block = SimpleNamespace(type="tool_use", name="card_triage", input={"decision": "reject", "reason": "sales"})
        provider, client = self._provider(settings, [block])
        result = provider.complete("SYSTEM", MESSAGES, CARD_TRIAGE_TOOL, timeout=30)
        assert result == {"decision": "reject", "reason": "sales"}

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["tool_choice"] == {"type": "tool", "name": "card_triage"}
        assert kwargs["tools"][0]["name"] == "card_triage"
        assert kwargs["model"] == settings.claude_model
        assert kwargs["timeout"] == 30

    def test_skips_text_blocks(self, settings):
        text = SimpleNamespace(type="text", text="Thinking...")
        block = SimpleNamespace(type="tool_use", name="full_evaluation", input={"accept": True})
        provider, _ = self._provider(settings, [text, block])
        assert provider.complete("S", MESSAGES, FULL_EVALUATION_TOOL) == {"accept": True}

    def test_missing_tool_call_raises(self, settings):
        provider, _ = self._provider(settings, [SimpleNamespace(type="text", text="keep")])
        with pytest.raises(EvaluationError, match="no card_triage tool call"):
            provider.complete("S", MESSAGES, CARD_TRIAGE_TOOL)

    def test_wrong_tool_raises(self, settings):
        block = SimpleNamespace(type="tool_use", name="job_evaluation", input={"download": True})
        provider, _ = self._provider(settings, [block])
        with pytest.raises(EvaluationError):
            provider.complete("S", MESSAGES, CARD_TRIAGE_TOOL)


class TestOpenAIProvider:
    def test_json_mode_and_parse(self, settings):
        client = MagicMock()
        message = SimpleNamespace(content=json.dumps({"decision": "maybe", "reason": "unclear"}))
        client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=message)],
        )
        with patch("collector_ai.providers.openai.OpenAI", return_value=client):
            provider = get_provider("openai", settings)
        result = provider.complete("SYSTEM", MESSAGES, CARD_TRIAGE_TOOL, timeout=30)

        assert result["decision"] == "maybe"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["model"] == settings.openai_model
        assert kwargs["messages"][0]["role"] == "system"


class TestOllamaProvider:
    def test_posts_chat_and_parses(self, settings):
        response = MagicMock()
        response.json.return_value = {"message": {"content": '{"download": false, "reason": "no"}'}}
        client = MagicMock()
        client.__enter__.return_value = client
        client.post.return_value = response

        provider = get_provider("ollama", settings)
        with patch("collector_ai.providers.ollama.httpx.Client", return_value=client) as client_cls:
            result = provider.complete("SYSTEM", MESSAGES, PROMPTS[Mode.JOBS].binary[1], timeout=30)

        assert result == {"download": False, "reason": "no"}
        client_cls.assert_called_once_with(timeout=30)
        url, = client.post.call_args.args
        assert url.endswith("/api/chat")
        assert client.post.call_args.kwargs["json"]["format"] == "json"
