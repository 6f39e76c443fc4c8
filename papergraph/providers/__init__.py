"""
PaperGraph Providers - Model provider abstraction layer.

Supported providers:
- OpenAI: Direct OpenAI API access, or any compatible endpoint via base_url
- OpenRouter: Access multiple models via unified API
- Anthropic: Direct Anthropic Claude API access
- Mock: Scripted responses for tests and offline runs

Main functions:
- get_provider(): Get a provider instance by name
- register_provider(): Register a custom provider
- list_providers(): List available providers

Example:
    from papergraph.providers import get_provider

    provider = get_provider("openai", model="gpt-4.1-mini")
    completion = await provider.complete(prompt, system_prompt, 1024, 0.2)
    print(completion.json, completion.tokens_used.total)
"""

from papergraph.providers.base import (
    BaseProvider,
    Completion,
    Generation,
    extract_json,
    retry_with_backoff,
)
from papergraph.providers.factory import (
    detect_provider,
    get_provider,
    get_provider_class,
    list_providers,
    register_provider,
)

# Lazy imports for specific providers (avoid circular imports)
def __getattr__(name):
    if name == "OpenAIProvider":
        from papergraph.providers.openai import OpenAIProvider
        return OpenAIProvider
    elif name == "OpenRouterProvider":
        from papergraph.providers.openrouter import OpenRouterProvider
        return OpenRouterProvider
    elif name == "AnthropicProvider":
        from papergraph.providers.anthropic import AnthropicProvider
        return AnthropicProvider
    elif name == "MockProvider":
        from papergraph.providers.mock import MockProvider
        return MockProvider
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Base classes
    "BaseProvider",
    "Completion",
    "Generation",
    "extract_json",
    "retry_with_backoff",
    # Factory functions
    "get_provider",
    "register_provider",
    "detect_provider",
    "list_providers",
    "get_provider_class",
    # Provider classes (lazy loaded)
    "OpenAIProvider",
    "OpenRouterProvider",
    "AnthropicProvider",
    "MockProvider",
]
