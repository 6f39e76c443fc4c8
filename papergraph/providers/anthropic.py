"""
PaperGraph Anthropic Provider - Direct access to the Anthropic Claude API.

Example:
    from papergraph.providers.anthropic import AnthropicProvider

    provider = AnthropicProvider()  # Uses ANTHROPIC_API_KEY env var
"""

from papergraph.exceptions import ProviderError
from papergraph.providers.base import BaseProvider, Generation


class AnthropicProvider(BaseProvider):
    """
    Direct Anthropic API provider using the async client.

    Available models include:
    - claude-sonnet-4-20250514 (Claude Sonnet 4)
    - claude-opus-4-20250514 (Claude Opus 4)
    - claude-3-5-haiku-20241022
    """

    ENV_VAR = "ANTHROPIC_API_KEY"
    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        timeout: float = 120.0,
        max_attempts: int = 3,
        retry_delay: float = 2.0,
    ):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key. If not provided, reads from
                    ANTHROPIC_API_KEY environment variable.
            model: Model identifier (defaults to DEFAULT_MODEL)
        """
        super().__init__(model=model, timeout=timeout, max_attempts=max_attempts, retry_delay=retry_delay)
        self.api_key = self.validate_api_key(api_key, self.ENV_VAR)
        self._client = None

    @property
    def name(self) -> str:
        return "anthropic"

    def _get_client(self):
        """Lazy load the async Anthropic client."""
        if self._client is None:
            try:
                import anthropic
            except ImportError:
                raise ProviderError(
                    "anthropic package not installed. Install with: pip install anthropic"
                )
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        max_output_tokens: int,
        temperature: float,
    ) -> Generation:
        """
        Send a messages request.

        Returns:
            Generation with the concatenated text blocks and token usage

        Raises:
            ProviderError: If the request fails
        """
        client = self._get_client()

        params = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_output_tokens,
            "extra_body": {"temperature": temperature},
            "timeout": self.timeout,
        }
        if system_instruction:
            params["system"] = system_instruction

        try:
            response = await client.messages.create(**params)
        except Exception as e:
            raise self.map_error(e, "Anthropic") from e

        text = "\n".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        return Generation(
            text=text,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=response.model or self.model,
        )
