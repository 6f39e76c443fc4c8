"""
PaperGraph Base Provider - Abstract interface for model providers.

This module defines the contract that all model providers must implement.
Includes async retry logic with exponential backoff for transient errors
and the JSON extraction applied to every completion.

Example:
    class MyProvider(BaseProvider):
        @property
        def name(self):
            return "mine"

        async def generate(self, prompt, system_instruction, max_output_tokens, temperature):
            text = await call_my_api(...)
            return Generation(text=text, input_tokens=..., output_tokens=..., model=self.model)
"""

import asyncio
import json
import logging
import os
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Optional

from papergraph.core.cancellation import CancellationToken
from papergraph.core.types import TokenCount
from papergraph.exceptions import ConfigError, ProviderError, ResponseParseError


logger = logging.getLogger(__name__)

# First "{" to last "}" (or "[" to "]"); models often wrap JSON in prose or fences
JSON_PATTERN = re.compile(r"\{[\s\S]*\}|\[[\s\S]*\]")

TRANSIENT_MARKERS = (
    "rate limit", "timeout", "timed out", "connection",
    "429", "500", "502", "503", "504", "overloaded",
)


def is_transient(error: Exception) -> bool:
    """Check whether an error message looks like a rate limit or transient failure."""
    error_str = str(error).lower()
    return any(marker in error_str for marker in TRANSIENT_MARKERS)


def retry_with_backoff(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    retryable_exceptions: tuple = None
):
    """
    Decorator for async retry with exponential backoff.

    Only errors whose message marks them as transient are retried;
    anything else is raised immediately.

    Args:
        max_attempts: Maximum attempts (including the first)
        initial_delay: Initial delay in seconds
        max_delay: Maximum delay between retries
        backoff_factor: Multiplier for each retry
        retryable_exceptions: Tuple of exceptions to retry on
    """
    if retryable_exceptions is None:
        retryable_exceptions = (ProviderError,)

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            delay = initial_delay

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except retryable_exceptions as e:
                    if attempt >= max_attempts - 1 or not is_transient(e):
                        raise
                    logger.warning(
                        f"Attempt {attempt + 1}/{max_attempts} failed: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )
                    await asyncio.sleep(delay)
                    delay = min(delay * backoff_factor, max_delay)

        return wrapper
    return decorator


def extract_json(text: str) -> Any:
    """
    Pull the JSON payload out of a completion.

    Raises:
        ResponseParseError: If no JSON is found or it does not parse
    """
    match = JSON_PATTERN.search(text or "")
    if not match:
        raise ResponseParseError("No JSON found in response")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Failed to parse JSON response: {e}") from e


@dataclass
class Generation:
    """Raw text output of one provider call."""
    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""


@dataclass
class Completion:
    """Parsed output of ``BaseProvider.complete``."""
    json: Any
    tokens_used: TokenCount
    model: str
    latency_ms: int
    text: str = ""


class BaseProvider(ABC):
    """
    Abstract base class for model providers.

    Subclasses implement ``generate()`` for their API. ``complete()`` wraps
    it with retries, cancellation and JSON extraction; the pipeline only
    ever calls ``complete()``.

    Providers handle:
    - API authentication
    - Request formatting for their specific API
    - Error mapping to ProviderError and retries
    """

    ENV_VAR: Optional[str] = None
    DEFAULT_MODEL: str = ""

    def __init__(
        self,
        model: str = None,
        timeout: float = 120.0,
        max_attempts: int = 3,
        retry_delay: float = 2.0,
    ):
        self.model = model or self.DEFAULT_MODEL
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name (e.g., 'openrouter', 'openai')."""
        pass

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        max_output_tokens: int,
        temperature: float,
    ) -> Generation:
        """
        Send one completion request.

        Raises:
            ProviderError: If the request fails
        """
        pass

    async def complete(
        self,
        prompt: str,
        system_instruction: str,
        max_output_tokens: int,
        temperature: float,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Completion:
        """
        Run a completion and parse its JSON payload.

        Args:
            prompt: User prompt
            system_instruction: System prompt
            max_output_tokens: Output token limit
            temperature: Sampling temperature
            cancellation_token: Aborts the call (including retry waits) when fired

        Returns:
            Completion with the parsed JSON and token usage

        Raises:
            ProviderError: Request failed after retries
            ResponseParseError: Completion contained no parseable JSON
            ExtractionCancelledError: Token fired before the call finished
        """
        start = time.monotonic()
        call = retry_with_backoff(
            max_attempts=self.max_attempts,
            initial_delay=self.retry_delay,
        )(self.generate)(prompt, system_instruction, max_output_tokens, temperature)

        if cancellation_token is not None:
            generation = await cancellation_token.run(call)
        else:
            generation = await call

        latency_ms = int((time.monotonic() - start) * 1000)
        logger.debug(
            f"{self.name} completion: {generation.input_tokens} in / "
            f"{generation.output_tokens} out in {latency_ms}ms"
        )

        return Completion(
            json=extract_json(generation.text),
            tokens_used=TokenCount(input=generation.input_tokens, output=generation.output_tokens),
            model=generation.model or self.model,
            latency_ms=latency_ms,
            text=generation.text,
        )

    def validate_api_key(self, api_key: Optional[str], env_var: str) -> str:
        """
        Validate that an API key is available.

        Args:
            api_key: Explicitly provided API key
            env_var: Environment variable name to check

        Returns:
            The API key

        Raises:
            ConfigError: If no API key available
        """
        key = api_key or os.getenv(env_var)
        if not key:
            raise ConfigError(
                f"No API key provided. Set {env_var} environment variable "
                f"or pass api_key parameter."
            )
        return key

    def map_error(self, error: Exception, label: str) -> ProviderError:
        """Translate an SDK exception into a ProviderError by message inspection."""
        error_msg = str(error)
        lowered = error_msg.lower()
        if "rate limit" in lowered or "429" in error_msg:
            return ProviderError(f"Rate limit exceeded: {error}")
        elif "timeout" in lowered or "timed out" in lowered:
            return ProviderError(f"Request timeout: {error}")
        elif "api key" in lowered or "401" in error_msg:
            return ProviderError(f"Invalid API key: {error}")
        else:
            return ProviderError(f"{label} API error: {error}")
