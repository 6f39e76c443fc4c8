"""
PaperGraph - Knowledge graph extraction from academic documents.

A three-stage model pipeline (classification, deep extraction, thesis
integration) that turns the text of a paper into findings, data tables and
the connections between them, optionally scored against a research thesis.

Basic Usage:
    import asyncio
    from papergraph import PaperGraphExtractor, PaperInput

    paper = PaperInput(id="p1", title="...", authors=["A. Author"], text=full_text)
    extractor = PaperGraphExtractor()
    result = asyncio.run(extractor.extract(paper))
    if result.success:
        for finding in result.graph.findings:
            print(finding.finding_type, finding.title)

With a thesis and cancellation:
    from papergraph import CancellationToken, ExtractionOptions, ThesisInput

    token = CancellationToken()
    options = ExtractionOptions(cancellation_token=token, on_progress=print)
    result = await extractor.extract(paper, thesis, existing_papers, options)
"""

__version__ = "0.1.0"

from papergraph.config import ExtractorConfig
from papergraph.core.cancellation import CancellationToken
from papergraph.core.extractor import ExtractionOptions, PaperGraphExtractor, create_extractor
from papergraph.core.types import (
    Classification,
    DataTable,
    ExistingPaperInput,
    ExtractionGraph,
    ExtractionProgress,
    ExtractionResult,
    Finding,
    IntraDocumentConnection,
    PaperInput,
    PotentialConnection,
    StageTokenUsage,
    ThesisInput,
    ThesisRelevance,
)
from papergraph.exceptions import (
    ConfigError,
    ExtractionCancelledError,
    GraphFinalizedError,
    PaperGraphError,
    ProviderError,
    ResponseParseError,
    StageError,
)

__all__ = [
    "__version__",
    # Pipeline
    "PaperGraphExtractor",
    "ExtractionOptions",
    "ExtractorConfig",
    "CancellationToken",
    "create_extractor",
    # Inputs
    "PaperInput",
    "ThesisInput",
    "ExistingPaperInput",
    # Outputs
    "ExtractionResult",
    "ExtractionProgress",
    "ExtractionGraph",
    "Classification",
    "Finding",
    "DataTable",
    "IntraDocumentConnection",
    "PotentialConnection",
    "ThesisRelevance",
    "StageTokenUsage",
    # Exceptions
    "PaperGraphError",
    "ConfigError",
    "ProviderError",
    "ResponseParseError",
    "StageError",
    "ExtractionCancelledError",
    "GraphFinalizedError",
]
