"""PaperGraph utilities - text statistics and token accounting."""

from papergraph.utils.text_stats import (
    estimate_page_count,
    estimate_word_count,
    detect_ocr_issues,
)
from papergraph.utils.token_counter import TokenCounter, UsageStats, estimate_cost

__all__ = [
    "estimate_page_count",
    "estimate_word_count",
    "detect_ocr_issues",
    "TokenCounter",
    "UsageStats",
    "estimate_cost",
]
