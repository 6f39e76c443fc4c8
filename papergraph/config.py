"""
PaperGraph Configuration - Extractor settings with environment variable overrides.

Configuration precedence (highest to lowest):
1. Explicit arguments to ExtractorConfig / from_env(**overrides)
2. Environment variables (PAPERGRAPH_PROVIDER, etc.)
3. Default values defined here

A field left as None means "use the default": the provider is
auto-detected, the model is the provider's own default.
"""

import os
from dataclasses import dataclass, fields
from typing import Optional

from papergraph.exceptions import ConfigError
from papergraph.providers.base import BaseProvider


@dataclass
class StageParams:
    """Generation parameters for one pipeline stage."""
    max_output_tokens: int
    temperature: float


@dataclass
class ExtractorConfig:
    """
    Configuration for PaperGraphExtractor.

    Example:
        # Load from environment
        config = ExtractorConfig.from_env()

        # Or create with explicit values
        config = ExtractorConfig(provider="anthropic", model="claude-sonnet-4-20250514")
    """

    # Provider
    provider: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None

    # API Keys (loaded from environment)
    api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # Requests
    request_timeout: float = 120.0
    retry_attempts: int = 3
    retry_delay: float = 2.0

    # Stage parameters
    classification_max_tokens: int = 1024
    classification_temperature: float = 0.2
    extraction_max_tokens: int = 4096
    extraction_temperature: float = 0.3
    thesis_max_tokens: int = 2048
    thesis_temperature: float = 0.3

    @classmethod
    def from_env(cls, **overrides) -> "ExtractorConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - PAPERGRAPH_PROVIDER: Provider name (openai, openrouter, anthropic, mock)
        - PAPERGRAPH_MODEL: Model identifier
        - PAPERGRAPH_BASE_URL: OpenAI-compatible endpoint
        - PAPERGRAPH_TIMEOUT: Request timeout in seconds
        - PAPERGRAPH_RETRY_ATTEMPTS: Attempts per call for transient errors
        - OPENAI_API_KEY / OPENROUTER_API_KEY / ANTHROPIC_API_KEY

        Args:
            **overrides: Explicit values; None values are ignored

        Raises:
            ConfigError: If a numeric variable does not parse
        """
        try:
            config = cls(
                provider=os.getenv("PAPERGRAPH_PROVIDER") or None,
                model=os.getenv("PAPERGRAPH_MODEL") or None,
                base_url=os.getenv("PAPERGRAPH_BASE_URL") or None,
                openai_api_key=os.getenv("OPENAI_API_KEY"),
                openrouter_api_key=os.getenv("OPENROUTER_API_KEY"),
                anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
                request_timeout=float(os.getenv("PAPERGRAPH_TIMEOUT", cls.request_timeout)),
                retry_attempts=int(os.getenv("PAPERGRAPH_RETRY_ATTEMPTS", cls.retry_attempts)),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid numeric environment variable: {e}") from e

        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise ConfigError(f"Unknown config option: {key}")
            if value is not None:
                setattr(config, key, value)
        return config

    def get_api_key(self, provider: Optional[str] = None) -> Optional[str]:
        """Get API key for the specified or configured provider."""
        if self.api_key:
            return self.api_key
        provider = provider or self.provider
        if provider == "openai":
            return self.openai_api_key
        elif provider == "openrouter":
            return self.openrouter_api_key
        elif provider == "anthropic":
            return self.anthropic_api_key
        return None

    def stage_params(self, stage: int) -> StageParams:
        """Max output tokens and temperature for stage 1, 2 or 3."""
        if stage == 1:
            return StageParams(self.classification_max_tokens, self.classification_temperature)
        elif stage == 2:
            return StageParams(self.extraction_max_tokens, self.extraction_temperature)
        elif stage == 3:
            return StageParams(self.thesis_max_tokens, self.thesis_temperature)
        raise ValueError(f"Unknown stage: {stage}")

    def create_provider(self) -> BaseProvider:
        """
        Build the provider this config describes.

        Raises:
            ConfigError: Unknown provider or missing API key
        """
        from papergraph.providers.factory import detect_provider, get_provider

        name = (self.provider or detect_provider()).lower()
        kwargs = {
            "model": self.model,
            "timeout": self.request_timeout,
            "max_attempts": self.retry_attempts,
            "retry_delay": self.retry_delay,
        }
        if name != "mock":
            kwargs["api_key"] = self.get_api_key(name)
        if self.base_url and name in ("openai", "openrouter"):
            kwargs["base_url"] = self.base_url
        return get_provider(name, **kwargs)
