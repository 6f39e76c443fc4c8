"""
PaperGraph Core - Domain types, constants, and the extraction pipeline.

The pipeline itself lives in papergraph.core.extractor; it is not imported
here so that the type modules stay importable on their own.
"""

from papergraph.core.cancellation import CancellationToken
from papergraph.core.types import (
    Classification,
    DocumentContext,
    ExistingPaperInput,
    ExtractionGraph,
    ExtractionProgress,
    ExtractionResult,
    Finding,
    PaperInput,
    StageTokenUsage,
    ThesisInput,
    TokenCount,
)

__all__ = [
    "CancellationToken",
    "Classification",
    "DocumentContext",
    "ExistingPaperInput",
    "ExtractionGraph",
    "ExtractionProgress",
    "ExtractionResult",
    "Finding",
    "PaperInput",
    "StageTokenUsage",
    "ThesisInput",
    "TokenCount",
]
