"""Token counter utility for tracking model usage across extractions.

Uses litellm's pricing table to estimate costs; unknown models fall back
to a flat per-token rate.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from papergraph.core.types import StageTokenUsage


logger = logging.getLogger(__name__)

# Fallback pricing (USD per token) when litellm has no entry for the model
FALLBACK_INPUT_COST = 0.000003
FALLBACK_OUTPUT_COST = 0.000015


def estimate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """
    Estimate the USD cost of a call.

    Args:
        model: Model name as sent to the provider (e.g., "gpt-4.1-mini")
        input_tokens: Prompt tokens
        output_tokens: Completion tokens

    Returns:
        Estimated cost in USD
    """
    # litellm loads its pricing map on import
    import litellm

    try:
        prompt_cost, completion_cost = litellm.cost_per_token(
            model=model,
            prompt_tokens=input_tokens,
            completion_tokens=output_tokens,
        )
        return prompt_cost + completion_cost
    except Exception as e:
        logger.debug(f"No litellm pricing for {model}: {e}")
        return input_tokens * FALLBACK_INPUT_COST + output_tokens * FALLBACK_OUTPUT_COST


@dataclass
class UsageStats:
    """Statistics for a single extraction stage."""
    paper_id: str
    stage: int
    model: str
    input_tokens: int
    output_tokens: int
    cost: float  # USD

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class TokenCounter:
    """Track token usage and costs across multiple extractions."""

    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_cost: float = 0.0
    call_count: int = 0
    calls: list[UsageStats] = field(default_factory=list)

    def record(
        self,
        paper_id: str,
        stage: int,
        model: str,
        input_tokens: int,
        output_tokens: int,
        cost: Optional[float] = None,
    ) -> UsageStats:
        """
        Record usage for one stage of one extraction.

        Args:
            paper_id: Document the stage ran for
            stage: Stage number (1-3)
            model: Model name
            input_tokens: Number of input tokens
            output_tokens: Number of output tokens
            cost: Cost in USD (if None, estimated from litellm)

        Returns:
            UsageStats for this stage
        """
        if cost is None:
            cost = estimate_cost(model, input_tokens, output_tokens)

        stats = UsageStats(
            paper_id=paper_id,
            stage=stage,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=cost,
        )

        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
        self.total_cost += cost
        self.call_count += 1
        self.calls.append(stats)

        return stats

    def record_extraction(self, paper_id: str, model: str, usage: StageTokenUsage) -> list[UsageStats]:
        """
        Record the per-stage usage of an ExtractionResult.

        Stages that made no model call (zero tokens) are skipped.
        """
        recorded = []
        for stage in (1, 2, 3):
            tokens = getattr(usage, f"stage{stage}")
            if tokens.total == 0:
                continue
            recorded.append(self.record(paper_id, stage, model, tokens.input, tokens.output))
        return recorded

    @property
    def total_tokens(self) -> int:
        """Total tokens used (input + output)."""
        return self.total_input_tokens + self.total_output_tokens

    def summary(self) -> str:
        """Return a summary string of usage."""
        return (
            f"Calls: {self.call_count} | "
            f"Tokens: {self.total_tokens:,} "
            f"(in: {self.total_input_tokens:,}, out: {self.total_output_tokens:,}) | "
            f"Cost: ${self.total_cost:.4f}"
        )

    def reset(self) -> None:
        """Reset all counters."""
        self.total_input_tokens = 0
        self.total_output_tokens = 0
        self.total_cost = 0.0
        self.call_count = 0
        self.calls = []
