"""Test the provider layer: JSON extraction, retries, the mock and the factory.

Run with: pytest tests/test_providers.py -v
"""

import asyncio
import json

import httpx
import pytest

from papergraph.exceptions import ConfigError, ProviderError, ResponseParseError
from papergraph.prompts import CLASSIFICATION_SYSTEM_PROMPT, THESIS_INTEGRATION_SYSTEM_PROMPT
from papergraph.providers import (
    detect_provider,
    extract_json,
    get_provider,
    get_provider_class,
    list_providers,
    register_provider,
    retry_with_backoff,
)
from papergraph.providers.base import is_transient
from papergraph.providers.factory import _providers
from papergraph.providers.mock import MockProvider, stage_for


# =============================================================================
# JSON extraction
# =============================================================================

def test_extract_json_from_fenced_block():
    text = 'Here you go:\n```json\n{"paperType": "review", "confidence": 0.9}\n```\nDone.'
    assert extract_json(text) == {"paperType": "review", "confidence": 0.9}


def test_extract_json_spans_first_to_last_brace():
    text = 'prefix {"a": {"b": [1, 2]}} suffix'
    assert extract_json(text) == {"a": {"b": [1, 2]}}


def test_extract_json_array():
    assert extract_json("[1, 2, 3]") == [1, 2, 3]


def test_extract_json_failures():
    with pytest.raises(ResponseParseError, match="No JSON found"):
        extract_json("no structured output")
    with pytest.raises(ResponseParseError, match="Failed to parse"):
        extract_json("{not: valid}")
    with pytest.raises(ResponseParseError):
        extract_json(None)


def test_response_parse_error_is_a_provider_error():
    assert issubclass(ResponseParseError, ProviderError)


# =============================================================================
# Retry
# =============================================================================

def test_is_transient():
    assert is_transient(ProviderError("Rate limit exceeded"))
    assert is_transient(ProviderError("Request timeout: read timed out"))
    assert is_transient(ProviderError("Anthropic API error: 529 overloaded"))
    assert not is_transient(ProviderError("Invalid API key"))


def test_retry_recovers_from_transient_errors():
    attempts = []

    @retry_with_backoff(max_attempts=3, initial_delay=0)
    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ProviderError("503 service unavailable")
        return "ok"

    assert asyncio.run(flaky()) == "ok"
    assert len(attempts) == 3


def test_retry_gives_up_after_max_attempts():
    attempts = []

    @retry_with_backoff(max_attempts=2, initial_delay=0)
    async def always_limited():
        attempts.append(1)
        raise ProviderError("Rate limit exceeded")

    with pytest.raises(ProviderError, match="Rate limit"):
        asyncio.run(always_limited())
    assert len(attempts) == 2


def test_retry_does_not_retry_permanent_errors():
    attempts = []

    @retry_with_backoff(max_attempts=5, initial_delay=0)
    async def bad_key():
        attempts.append(1)
        raise ProviderError("Invalid API key")

    with pytest.raises(ProviderError):
        asyncio.run(bad_key())
    assert len(attempts) == 1


def test_retry_ignores_other_exception_types():
    attempts = []

    @retry_with_backoff(max_attempts=5, initial_delay=0)
    async def crash():
        attempts.append(1)
        raise ValueError("timeout in parsing")

    with pytest.raises(ValueError):
        asyncio.run(crash())
    assert len(attempts) == 1


# =============================================================================
# Mock provider
# =============================================================================

def test_mock_recognizes_stages():
    assert stage_for(CLASSIFICATION_SYSTEM_PROMPT) == "classification"
    assert stage_for(THESIS_INTEGRATION_SYSTEM_PROMPT) == "thesis"
    assert stage_for("anything else") == "extraction"


def test_mock_complete_returns_parsed_json():
    provider = MockProvider(responses={"classification": {"paperType": "methods"}})
    completion = asyncio.run(provider.complete("prompt", CLASSIFICATION_SYSTEM_PROMPT, 1024, 0.2))

    assert completion.json == {"paperType": "methods"}
    assert completion.model == "mock-model"
    assert completion.tokens_used.input > 0
    assert completion.tokens_used.output > 0
    assert completion.latency_ms >= 0
    assert provider.calls_for("classification")[0].prompt == "prompt"


def test_mock_returns_strings_verbatim():
    provider = MockProvider(responses={"extraction": 'Sure!\n```json\n{"findings": []}\n```'})
    completion = asyncio.run(provider.complete("p", "system", 4096, 0.3))

    assert completion.json == {"findings": []}
    assert completion.text.startswith("Sure!")


def test_mock_raises_scripted_exceptions():
    provider = MockProvider(responses={"extraction": ProviderError("Invalid API key")})

    with pytest.raises(ProviderError, match="Invalid API key"):
        asyncio.run(provider.complete("p", "system", 4096, 0.3))


def test_mock_callable_response_with_retry():
    """A transient failure on the first call is retried inside the provider."""
    answers = [ProviderError("Rate limit exceeded"), {"ok": True}]
    provider = MockProvider(
        responses={"extraction": lambda prompt: answers.pop(0)},
        max_attempts=3,
        retry_delay=0,
    )
    completion = asyncio.run(provider.complete("p", "system", 4096, 0.3))

    assert completion.json == {"ok": True}
    assert len(provider.calls) == 2


def test_mock_fail_flag():
    provider = MockProvider(fail=True)
    with pytest.raises(ProviderError, match="configured to fail"):
        asyncio.run(provider.complete("p", "system", 10, 0.0))


# =============================================================================
# Factory
# =============================================================================

def test_list_providers():
    names = list_providers()
    for name in ("openai", "openrouter", "anthropic", "mock"):
        assert name in names


def test_get_provider_by_name():
    provider = get_provider("mock", model="scripted")

    assert isinstance(provider, MockProvider)
    assert provider.name == "mock"
    assert provider.model == "scripted"


def test_unknown_provider():
    with pytest.raises(ConfigError, match="Unknown provider: nope"):
        get_provider_class("nope")


def test_register_custom_provider():
    class EchoProvider(MockProvider):
        @property
        def name(self):
            return "echo"

    register_provider("Echo", EchoProvider)
    try:
        assert get_provider_class("echo") is EchoProvider
        assert get_provider("echo").name == "echo"
    finally:
        _providers.pop("echo", None)


def test_detect_provider(monkeypatch):
    for var in ("PAPERGRAPH_PROVIDER", "OPENAI_API_KEY", "OPENROUTER_API_KEY", "ANTHROPIC_API_KEY"):
        monkeypatch.delenv(var, raising=False)

    assert detect_provider() == "openai"

    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    assert detect_provider() == "anthropic"

    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-test")
    assert detect_provider() == "openrouter"

    monkeypatch.setenv("PAPERGRAPH_PROVIDER", "Mock")
    assert detect_provider() == "mock"


def test_missing_api_key_is_a_config_error(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    with pytest.raises(ConfigError, match="OPENAI_API_KEY"):
        get_provider("openai")
    with pytest.raises(ConfigError, match="ANTHROPIC_API_KEY"):
        get_provider("anthropic")


def test_real_providers_construct_without_network():
    openai = get_provider("openai", api_key="sk-test", base_url="http://localhost:8000/v1")
    openrouter = get_provider("openrouter", api_key="sk-or-test")
    anthropic = get_provider("anthropic", api_key="sk-ant-test")

    assert openai.base_url == "http://localhost:8000/v1"
    assert openrouter.name == "openrouter"
    assert openrouter.model == "anthropic/claude-sonnet-4.5"
    assert anthropic.model == "claude-sonnet-4-20250514"


def test_map_error():
    provider = get_provider("mock")

    assert str(provider.map_error(Exception("Error code: 429"), "OpenAI")).startswith("Rate limit exceeded")
    assert str(provider.map_error(Exception("Request timed out"), "OpenAI")).startswith("Request timeout")
    assert str(provider.map_error(Exception("401 unauthorized"), "OpenAI")).startswith("Invalid API key")
    assert str(provider.map_error(Exception("boom"), "OpenAI")) == "OpenAI API error: boom"


# =============================================================================
# Request building (SDK clients over a stubbed transport)
# =============================================================================

def stub_http_client(requests, payload):
    """An httpx client that records requests and answers with ``payload``."""

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=payload)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_openai_request_parameters():
    from openai import AsyncOpenAI

    requests = []
    provider = get_provider("openai", api_key="sk-test", model="gpt-4.1-mini")
    provider._client = AsyncOpenAI(api_key="sk-test", http_client=stub_http_client(requests, {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "gpt-4.1-mini",
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": '{"ok": true}'},
            "finish_reason": "stop",
        }],
        "usage": {"prompt_tokens": 12, "completion_tokens": 4, "total_tokens": 16},
    }))

    generation = asyncio.run(provider.generate("the prompt", "the system", 1024, 0.2))

    body = json.loads(requests[0].content)
    assert requests[0].url.path.endswith("/chat/completions")
    assert body["model"] == "gpt-4.1-mini"
    assert body["max_tokens"] == 1024
    assert body["temperature"] == 0.2
    assert body["messages"] == [
        {"role": "system", "content": "the system"},
        {"role": "user", "content": "the prompt"},
    ]
    assert generation.text == '{"ok": true}'
    assert (generation.input_tokens, generation.output_tokens) == (12, 4)


def test_anthropic_request_parameters():
    from anthropic import AsyncAnthropic

    requests = []
    provider = get_provider("anthropic", api_key="sk-ant-test")
    provider._client = AsyncAnthropic(api_key="sk-ant-test", http_client=stub_http_client(requests, {
        "id": "msg_1",
        "type": "message",
        "role": "assistant",
        "model": "claude-sonnet-4-20250514",
        "content": [{"type": "text", "text": '{"ok": true}'}],
        "stop_reason": "end_turn",
        "stop_sequence": None,
        "usage": {"input_tokens": 20, "output_tokens": 6},
    }))

    generation = asyncio.run(provider.generate("the prompt", "the system", 4096, 0.3))

    body = json.loads(requests[0].content)
    assert requests[0].url.path.endswith("/v1/messages")
    assert body["model"] == "claude-sonnet-4-20250514"
    assert body["max_tokens"] == 4096
    assert body["temperature"] == 0.3
    assert body["system"] == "the system"
    assert body["messages"] == [{"role": "user", "content": "the prompt"}]
    assert generation.text == '{"ok": true}'
    assert (generation.input_tokens, generation.output_tokens) == (20, 6)
