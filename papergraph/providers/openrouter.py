"""
PaperGraph OpenRouter Provider - Access multiple models via the OpenRouter API.

OpenRouter exposes models from OpenAI, Anthropic, Google, Meta and others
behind one OpenAI-compatible API, so this provider reuses the OpenAI
client with OpenRouter's base URL.

Example:
    from papergraph.providers.openrouter import OpenRouterProvider

    provider = OpenRouterProvider(model="anthropic/claude-sonnet-4.5")
"""

from papergraph.providers.openai import OpenAIProvider


class OpenRouterProvider(OpenAIProvider):
    """
    OpenRouter API provider.

    Models available include:
    - openai/gpt-4o, openai/gpt-4o-mini
    - anthropic/claude-sonnet-4.5
    - google/gemini-2.0-flash-001
    - And many more: https://openrouter.ai/models
    """

    BASE_URL = "https://openrouter.ai/api/v1"
    ENV_VAR = "OPENROUTER_API_KEY"
    DEFAULT_MODEL = "anthropic/claude-sonnet-4.5"

    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        base_url: str = None,
        timeout: float = 120.0,
        max_attempts: int = 3,
        retry_delay: float = 2.0,
    ):
        """
        Initialize OpenRouter provider.

        Args:
            api_key: OpenRouter API key. If not provided, reads from
                    OPENROUTER_API_KEY environment variable.
            model: Model identifier (e.g., 'openai/gpt-4o-mini')
            base_url: Override of the OpenRouter endpoint
        """
        super().__init__(
            api_key=api_key,
            model=model,
            base_url=base_url or self.BASE_URL,
            timeout=timeout,
            max_attempts=max_attempts,
            retry_delay=retry_delay,
        )

    @property
    def name(self) -> str:
        return "openrouter"
