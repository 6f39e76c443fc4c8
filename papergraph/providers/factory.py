"""
PaperGraph Provider Factory - Create and manage model provider instances.

This module provides a unified way to get provider instances by name,
with support for custom provider registration.

Example:
    from papergraph.providers import get_provider, register_provider

    # Auto-detect from PAPERGRAPH_PROVIDER or available API keys
    provider = get_provider()

    # Get specific provider
    provider = get_provider("openai", model="gpt-4.1-mini")
    provider = get_provider("mock")

    # Register custom provider
    register_provider("custom", MyCustomProvider)
"""

import os
from typing import Dict, List, Type

from papergraph.exceptions import ConfigError
from papergraph.providers.base import BaseProvider


# Registry of available providers
_providers: Dict[str, Type[BaseProvider]] = {}

# Used when neither PAPERGRAPH_PROVIDER nor any API key is set
_default_provider: str = "openai"


def _ensure_providers_registered():
    """Lazy register built-in providers to avoid circular imports."""
    if not _providers:
        from papergraph.providers.openai import OpenAIProvider
        from papergraph.providers.openrouter import OpenRouterProvider
        from papergraph.providers.anthropic import AnthropicProvider
        from papergraph.providers.mock import MockProvider

        _providers["openai"] = OpenAIProvider
        _providers["openrouter"] = OpenRouterProvider
        _providers["anthropic"] = AnthropicProvider
        _providers["mock"] = MockProvider


def register_provider(name: str, provider_class: Type[BaseProvider]) -> None:
    """
    Register a custom provider.

    Args:
        name: Provider name (e.g., "ollama", "azure")
        provider_class: Provider class implementing BaseProvider
    """
    _ensure_providers_registered()
    _providers[name.lower()] = provider_class


def get_provider(name: str = None, **kwargs) -> BaseProvider:
    """
    Get a provider instance by name.

    Args:
        name: Provider name. If None, auto-detects from PAPERGRAPH_PROVIDER
              or the available API keys.
        **kwargs: Arguments passed to provider constructor

    Returns:
        Provider instance

    Raises:
        ConfigError: If provider not found or no API key available
    """
    provider_class = get_provider_class(name if name is not None else detect_provider())
    return provider_class(**kwargs)


def detect_provider() -> str:
    """
    Auto-detect provider based on environment.

    PAPERGRAPH_PROVIDER wins; otherwise the first provider whose API key
    is set, in order of preference.
    """
    explicit = os.getenv("PAPERGRAPH_PROVIDER")
    if explicit:
        return explicit.lower()

    if os.getenv("OPENAI_API_KEY"):
        return "openai"
    if os.getenv("OPENROUTER_API_KEY"):
        return "openrouter"
    if os.getenv("ANTHROPIC_API_KEY"):
        return "anthropic"

    # Fall back to default (will error if no key)
    return _default_provider


def list_providers() -> List[str]:
    """
    List all registered provider names.

    Returns:
        List of provider names
    """
    _ensure_providers_registered()
    return list(_providers.keys())


def get_provider_class(name: str) -> Type[BaseProvider]:
    """
    Get provider class by name (without instantiating).

    Raises:
        ConfigError: If no provider is registered under that name
    """
    _ensure_providers_registered()
    name = name.lower()
    if name not in _providers:
        available = ", ".join(_providers.keys())
        raise ConfigError(f"Unknown provider: {name}. Available providers: {available}")
    return _providers[name]
