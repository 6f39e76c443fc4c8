"""
PaperGraph OpenAI Provider - Direct access to the OpenAI API.

Also works with any OpenAI-compatible endpoint (Azure, vLLM, local
gateways) through ``base_url``.

Example:
    from papergraph.providers.openai import OpenAIProvider

    provider = OpenAIProvider()  # Uses OPENAI_API_KEY env var

    completion = await provider.complete(
        "Return {\"ok\": true}", "You answer in JSON.", 64, 0.0
    )
"""

from typing import Any, Dict, List

from papergraph.exceptions import ProviderError
from papergraph.providers.base import BaseProvider, Generation


class OpenAIProvider(BaseProvider):
    """
    Direct OpenAI API provider using the async client.

    Available models include:
    - gpt-4.1, gpt-4.1-mini
    - gpt-4o, gpt-4o-mini
    """

    ENV_VAR = "OPENAI_API_KEY"
    DEFAULT_MODEL = "gpt-4.1-mini"

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
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key. If not provided, reads from
                    OPENAI_API_KEY environment variable.
            model: Model identifier (defaults to DEFAULT_MODEL)
            base_url: Optional custom base URL (for Azure or proxies)
            timeout: Request timeout in seconds
            max_attempts: Attempts per call for transient errors
            retry_delay: Initial backoff delay in seconds
        """
        super().__init__(model=model, timeout=timeout, max_attempts=max_attempts, retry_delay=retry_delay)
        self.api_key = self.validate_api_key(api_key, self.ENV_VAR)
        self.base_url = base_url
        self._client = None

    @property
    def name(self) -> str:
        return "openai"

    def _get_client(self):
        """Lazy load the async OpenAI client."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError:
                raise ProviderError(
                    "openai package not installed. Install with: pip install openai"
                )
            kwargs = {"api_key": self.api_key}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    def _build_messages(self, prompt: str, system_instruction: str) -> List[Dict[str, Any]]:
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        max_output_tokens: int,
        temperature: float,
    ) -> Generation:
        """
        Send chat completion request.

        Returns:
            Generation with the message text and token usage

        Raises:
            ProviderError: If the request fails
        """
        client = self._get_client()

        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=self._build_messages(prompt, system_instruction),
                max_tokens=max_output_tokens,
                temperature=temperature,
                timeout=self.timeout,
            )
        except Exception as e:
            raise self.map_error(e, "OpenAI") from e

        if not response.choices:
            raise ProviderError(f"{self.name} returned no choices")

        usage = response.usage
        return Generation(
            text=response.choices[0].message.content or "",
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=response.model or self.model,
        )
