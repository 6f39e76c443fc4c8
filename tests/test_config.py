"""Test ExtractorConfig loading and provider creation.

Run with: pytest tests/test_config.py -v
"""

import pytest

from papergraph.config import ExtractorConfig
from papergraph.exceptions import ConfigError
from papergraph.providers.mock import MockProvider


ENV_VARS = (
    "PAPERGRAPH_PROVIDER",
    "PAPERGRAPH_MODEL",
    "PAPERGRAPH_BASE_URL",
    "PAPERGRAPH_TIMEOUT",
    "PAPERGRAPH_RETRY_ATTEMPTS",
    "OPENAI_API_KEY",
    "OPENROUTER_API_KEY",
    "ANTHROPIC_API_KEY",
)


@pytest.fixture
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    config = ExtractorConfig.from_env()

    assert config.provider is None
    assert config.model is None
    assert config.request_timeout == 120.0
    assert config.retry_attempts == 3


def test_environment_variables(clean_env):
    clean_env.setenv("PAPERGRAPH_PROVIDER", "anthropic")
    clean_env.setenv("PAPERGRAPH_MODEL", "claude-3-5-haiku-20241022")
    clean_env.setenv("PAPERGRAPH_TIMEOUT", "30")
    clean_env.setenv("PAPERGRAPH_RETRY_ATTEMPTS", "5")
    clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant-test")

    config = ExtractorConfig.from_env()

    assert config.provider == "anthropic"
    assert config.model == "claude-3-5-haiku-20241022"
    assert config.request_timeout == 30.0
    assert config.retry_attempts == 5
    assert config.get_api_key() == "sk-ant-test"


def test_overrides_win_and_none_is_ignored(clean_env):
    clean_env.setenv("PAPERGRAPH_PROVIDER", "openai")

    config = ExtractorConfig.from_env(provider="mock", model=None, retry_attempts=1)

    assert config.provider == "mock"
    assert config.model is None
    assert config.retry_attempts == 1


def test_unknown_override(clean_env):
    with pytest.raises(ConfigError, match="Unknown config option: temperature"):
        ExtractorConfig.from_env(temperature=0.9)


def test_invalid_number(clean_env):
    clean_env.setenv("PAPERGRAPH_TIMEOUT", "soon")
    with pytest.raises(ConfigError, match="Invalid numeric"):
        ExtractorConfig.from_env()


def test_api_key_per_provider():
    config = ExtractorConfig(openai_api_key="sk-o", openrouter_api_key="sk-r", anthropic_api_key="sk-a")

    assert config.get_api_key("openai") == "sk-o"
    assert config.get_api_key("openrouter") == "sk-r"
    assert config.get_api_key("anthropic") == "sk-a"
    assert config.get_api_key("mock") is None
    assert ExtractorConfig(api_key="explicit", openai_api_key="sk-o").get_api_key("openai") == "explicit"


def test_stage_params():
    config = ExtractorConfig(extraction_max_tokens=8192)

    assert (config.stage_params(1).max_output_tokens, config.stage_params(1).temperature) == (1024, 0.2)
    assert config.stage_params(2).max_output_tokens == 8192
    assert (config.stage_params(3).max_output_tokens, config.stage_params(3).temperature) == (2048, 0.3)
    with pytest.raises(ValueError):
        config.stage_params(4)


def test_create_mock_provider():
    config = ExtractorConfig(provider="mock", model="scripted", retry_attempts=4, retry_delay=0.5)
    provider = config.create_provider()

    assert isinstance(provider, MockProvider)
    assert provider.model == "scripted"
    assert provider.max_attempts == 4
    assert provider.retry_delay == 0.5


def test_create_provider_passes_key_and_base_url():
    config = ExtractorConfig(provider="openai", openai_api_key="sk-o", base_url="http://localhost:1234/v1")
    provider = config.create_provider()

    assert provider.name == "openai"
    assert provider.api_key == "sk-o"
    assert provider.base_url == "http://localhost:1234/v1"


def test_create_provider_without_key(clean_env):
    with pytest.raises(ConfigError):
        ExtractorConfig(provider="openrouter").create_provider()


def test_create_unknown_provider():
    with pytest.raises(ConfigError, match="Unknown provider"):
        ExtractorConfig(provider="gemini").create_provider()
