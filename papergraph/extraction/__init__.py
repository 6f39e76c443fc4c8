"""
PaperGraph Extraction - Validation of untyped stage responses.

Main functions:
- parse_classification_response: Stage 1 output -> Classification
- parse_extraction_response: Stage 2 output -> ExtractionResponse
- parse_review_extraction_response: Stage 2 output for reviews
- parse_thesis_integration_response: Stage 3 output -> ThesisIntegrationResponse
"""

from papergraph.extraction.sanitizer import Sanitizer, Substitution
from papergraph.extraction.classification import parse_classification_response
from papergraph.extraction.findings import (
    parse_extraction_response,
    parse_review_extraction_response,
)
from papergraph.extraction.thesis import parse_thesis_integration_response
from papergraph.extraction.schemas import (
    ExtractionResponse,
    RawFinding,
    ReviewSpecific,
    ThesisIntegrationContext,
    ThesisIntegrationResponse,
)

__all__ = [
    # Parsers
    "parse_classification_response",
    "parse_extraction_response",
    "parse_review_extraction_response",
    "parse_thesis_integration_response",
    # Substitution log
    "Sanitizer",
    "Substitution",
    # Response shapes
    "ExtractionResponse",
    "RawFinding",
    "ReviewSpecific",
    "ThesisIntegrationContext",
    "ThesisIntegrationResponse",
]
