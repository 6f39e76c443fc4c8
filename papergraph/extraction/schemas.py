"""
PaperGraph Response Schemas - Typed shapes of the three stage responses.

These models mirror the JSON contracts the prompts ask the model for, in
the same camelCase field names, before index references are resolved into
graph entities. Instances are only ever produced by the parsers in this
package, so every field already satisfies its caps and enumerations.
"""

from typing import Dict, List, Optional

from pydantic import Field

from papergraph.core.constants import (
    ApproximatePosition,
    CrossConnectionType,
    FindingType,
    GapOrigin,
    GapType,
    IntraConnectionType,
    ThesisRole,
)
from papergraph.core.types import CamelModel, ExistingPaperInput, ThesisInput


# =============================================================================
# Stage 2: Deep extraction
# =============================================================================

class RawQuote(CamelModel):
    text: str = Field(..., description="Exact quote from the document")
    page_number: Optional[int] = Field(default=None, description="Page where the quote appears")
    approximate_position: Optional[ApproximatePosition] = None


class RawFinding(CamelModel):
    """A finding as listed by the model; its position is its index."""
    title: str = Field(..., description="Short label (3-10 words)")
    description: str = ""
    finding_type: FindingType = "supporting-finding"
    page_numbers: List[int] = Field(default_factory=list)
    section_name: Optional[str] = None
    direct_quotes: List[RawQuote] = Field(default_factory=list)
    confidence: float = 0.5


class RawColumn(CamelModel):
    name: str
    unit: Optional[str] = None


class RawRow(CamelModel):
    label: str
    values: Dict[str, str] = Field(default_factory=dict, description="Column name to cell text")


class RawDataTable(CamelModel):
    name: str
    description: str = ""
    page_reference: Optional[str] = None
    columns: List[RawColumn] = Field(default_factory=list)
    rows: List[RawRow] = Field(default_factory=list)
    linked_finding_indices: List[int] = Field(default_factory=list)
    confidence: float = 0.5


class RawIntraConnection(CamelModel):
    from_finding_index: int = Field(..., ge=0)
    to_finding_index: int = Field(..., ge=0)
    connection_type: IntraConnectionType = "supports"
    explanation: str = ""
    is_explicit: bool = False


class RawPotentialConnection(CamelModel):
    finding_index: int = Field(..., ge=0)
    suggested_connection_type: CrossConnectionType = "same-topic"
    target_description: str = ""
    keywords: List[str] = Field(default_factory=list)
    reasoning: str = ""


class RawSynthesisTheme(CamelModel):
    theme: str = ""
    papers_cited: List[str] = Field(default_factory=list)
    consensus: Optional[str] = None
    disagreement: Optional[str] = None


class RawGap(CamelModel):
    gap: str = ""
    gap_type: GapType = "knowledge"
    page_reference: Optional[str] = None
    explicit_or_inferred: GapOrigin = "explicit"


class RawTrend(CamelModel):
    period: str
    characterization: str


class ReviewSpecific(CamelModel):
    synthesis_themes: List[RawSynthesisTheme] = Field(default_factory=list)
    identified_gaps: List[RawGap] = Field(default_factory=list)
    future_directions: List[str] = Field(default_factory=list)
    chronological_trends: Optional[List[RawTrend]] = None


class ExtractionResponse(CamelModel):
    """
    Sanitized Stage 2 output.

    ``review_specific`` is only populated by
    ``parse_review_extraction_response``.
    """
    findings: List[RawFinding] = Field(default_factory=list)
    data_tables: List[RawDataTable] = Field(default_factory=list)
    intra_connections: List[RawIntraConnection] = Field(
        default_factory=list, alias="intraPaperConnections"
    )
    experimental_system: Optional[str] = None
    key_contributions: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)
    open_questions: List[str] = Field(default_factory=list)
    potential_connections: List[RawPotentialConnection] = Field(default_factory=list)
    review_specific: Optional[ReviewSpecific] = None


# =============================================================================
# Stage 3: Thesis integration
# =============================================================================

class OverallRelevance(CamelModel):
    score: int = Field(default=3, ge=1, le=5)
    reasoning: str = ""


class SuggestedRole(CamelModel):
    role: ThesisRole = "background"
    confidence: float = 0.5
    reasoning: str = ""


class RawFindingRelevance(CamelModel):
    finding_index: int = Field(..., ge=0)
    relevance_score: int = Field(default=3, ge=1, le=5)
    thesis_dimension: str = ""
    reasoning: str = ""


class RawCrossDocumentConnection(CamelModel):
    """Suggested link from the new document to one already in the collection."""
    existing_paper_id: str
    connection_type: CrossConnectionType = "same-topic"
    reasoning: str = ""
    confidence: float = 0.5


class ThesisIntegrationResponse(CamelModel):
    overall_relevance: OverallRelevance = Field(default_factory=OverallRelevance)
    suggested_role: SuggestedRole = Field(default_factory=SuggestedRole)
    thesis_framed_takeaway: str = ""
    alternative_takeaways: List[str] = Field(default_factory=list)
    finding_relevance: List[RawFindingRelevance] = Field(default_factory=list)
    cross_document_connections: List[RawCrossDocumentConnection] = Field(
        default_factory=list, alias="crossPaperConnections"
    )
    gaps_addressed: List[str] = Field(default_factory=list)
    new_gaps_revealed: List[str] = Field(default_factory=list)


class ThesisIntegrationContext(CamelModel):
    """Everything the thesis integration prompt needs."""
    thesis: ThesisInput
    existing_papers: List[ExistingPaperInput] = Field(default_factory=list)
    findings: List[RawFinding] = Field(default_factory=list)
