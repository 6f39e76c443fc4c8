"""
PaperGraph Core Types - Pydantic models for the extraction graph and its inputs.

Attribute names are snake_case; every model serializes to the camelCase
field names used by stored graphs via ``model_dump(by_alias=True)``.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from papergraph.core.constants import (
    ApproximatePosition,
    CrossConnectionType,
    DataRichness,
    ExtractionDepth,
    ExtractionStatus,
    FindingType,
    GapOrigin,
    GapType,
    IntraConnectionType,
    PaperType,
    ReviewStatus,
    StructureQuality,
    TERMINAL_STATUSES,
    ThesisRole,
)
from papergraph.exceptions import ExtractionCancelledError, GraphFinalizedError


def new_id() -> str:
    """Stable identifier for a materialized entity."""
    return str(uuid.uuid4())


class CamelModel(BaseModel):
    """Base model serializing to camelCase, accepting either spelling on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Pipeline inputs
# =============================================================================

class PaperInput(CamelModel):
    """A document as handed to the pipeline: metadata plus pre-extracted text."""
    id: str
    title: str
    authors: List[str] = Field(default_factory=list)
    year: Optional[int] = None
    venue: Optional[str] = Field(default=None, description="Journal or conference")
    abstract: Optional[str] = None
    text: str = Field(..., description="Full text, already extracted from the PDF")


class ThesisInput(CamelModel):
    """The user's research thesis used by thesis integration."""
    id: str
    title: str
    description: str = ""


class ExistingPaperInput(CamelModel):
    """Summary of a document already in the user's collection."""
    id: str
    title: str
    takeaway: str = ""
    thesis_role: str = "other"
    year: Optional[int] = None


class DocumentContext(CamelModel):
    """
    Immutable per-invocation view of the document used by the prompt builders.

    Built once with ``DocumentContext.from_paper()``; the page and word
    counts are estimates derived from the text.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    title: str
    authors: str
    year: Optional[int] = None
    venue: Optional[str] = None
    abstract: Optional[str] = None
    text: str
    page_count: Optional[int] = None
    word_count: Optional[int] = None
    possible_ocr_issues: bool = False

    @classmethod
    def from_paper(cls, paper: PaperInput) -> "DocumentContext":
        from papergraph.utils.text_stats import (
            detect_ocr_issues,
            estimate_page_count,
            estimate_word_count,
        )

        return cls(
            title=paper.title,
            authors=", ".join(paper.authors),
            year=paper.year,
            venue=paper.venue,
            abstract=paper.abstract,
            text=paper.text,
            page_count=estimate_page_count(paper.text),
            word_count=estimate_word_count(paper.text),
            possible_ocr_issues=detect_ocr_issues(paper.text),
        )


# =============================================================================
# Stage 1: Classification
# =============================================================================

class ClassificationFlags(CamelModel):
    poor_ocr: bool = Field(default=False, alias="poorOCR")
    missing_sections: bool = False
    very_short: bool = False
    very_long: bool = False


class ExtractionHints(CamelModel):
    priority_sections: List[str] = Field(default_factory=list)
    expected_finding_count: int = 5
    suggested_depth: ExtractionDepth = "standard"


class Classification(CamelModel):
    """
    Structural assessment of a document, used to steer deep extraction.

    Every field has a deterministic default so that an unusable
    classification response never blocks the pipeline.
    """
    paper_type: PaperType = "research-article"
    structure_quality: StructureQuality = "semi-structured"
    data_richness: DataRichness = "balanced"
    confidence: float = 0.5
    flags: ClassificationFlags = Field(default_factory=ClassificationFlags)
    extraction_hints: ExtractionHints = Field(default_factory=ExtractionHints)


# =============================================================================
# Stage 2: Graph entities
# =============================================================================

class QuoteReference(CamelModel):
    """An exact span of source text backing a finding."""
    id: str = Field(default_factory=new_id)
    text: str
    page_number: Optional[int] = None
    page_label: Optional[str] = None
    approximate_position: Optional[ApproximatePosition] = None
    section_name: Optional[str] = None

    @classmethod
    def create(
        cls,
        text: str,
        page_number: Optional[int] = None,
        section_name: Optional[str] = None,
        approximate_position: Optional[str] = None,
    ) -> "QuoteReference":
        return cls(
            text=text,
            page_number=page_number,
            page_label=f"p. {page_number}" if page_number else None,
            approximate_position=approximate_position,
            section_name=section_name,
        )


class FindingRelevance(CamelModel):
    score: int = Field(default=3, ge=1, le=5)
    dimension: str = ""
    reasoning: str = ""


class Finding(CamelModel):
    """The atomic unit of extracted knowledge."""
    id: str = Field(default_factory=new_id)
    paper_id: str
    title: str
    description: str = ""
    finding_type: FindingType = "supporting-finding"
    page_numbers: List[int] = Field(default_factory=list)
    section_name: Optional[str] = None
    direct_quotes: List[QuoteReference] = Field(default_factory=list)
    thesis_relevance: Optional[FindingRelevance] = None
    confidence: float = 0.5
    user_verified: bool = False
    user_edited: bool = False
    order: int = 0


class TableColumn(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    unit: Optional[str] = None


class TableRow(CamelModel):
    id: str = Field(default_factory=new_id)
    label: str
    values: Dict[str, str] = Field(default_factory=dict)


class DataTable(CamelModel):
    """A table reconstructed from the narrative description of tabular content."""
    id: str = Field(default_factory=new_id)
    paper_id: str
    name: str
    description: str = ""
    page_reference: Optional[str] = None
    columns: List[TableColumn] = Field(default_factory=list)
    rows: List[TableRow] = Field(default_factory=list)
    extraction_confidence: float = 0.5
    user_verified: bool = False
    user_edited: bool = False
    linked_finding_ids: List[str] = Field(default_factory=list)


class IntraDocumentConnection(CamelModel):
    """Directed, typed edge between two findings of the same document."""
    id: str = Field(default_factory=new_id)
    from_finding_id: str
    to_finding_id: str
    connection_type: IntraConnectionType = "supports"
    explanation: str = ""
    is_explicit: bool = False


class PotentialConnection(CamelModel):
    """One-sided hint that a finding may relate to material in other documents."""
    id: str = Field(default_factory=new_id)
    finding_id: str
    suggested_connection_type: CrossConnectionType = "same-topic"
    target_description: str = ""
    keywords: List[str] = Field(default_factory=list)
    reasoning: str = ""


class SynthesisTheme(CamelModel):
    id: str = Field(default_factory=new_id)
    theme: str
    papers_cited: List[str] = Field(default_factory=list)
    consensus: Optional[str] = None
    disagreement: Optional[str] = None


class IdentifiedGap(CamelModel):
    id: str = Field(default_factory=new_id)
    gap: str
    gap_type: GapType = "knowledge"
    page_reference: Optional[str] = None
    explicit_or_inferred: GapOrigin = "explicit"


class ChronologicalTrend(CamelModel):
    period: str
    characterization: str


class ReviewExtraction(CamelModel):
    """Extension populated only for review-type documents."""
    synthesis_themes: List[SynthesisTheme] = Field(default_factory=list)
    identified_gaps: List[IdentifiedGap] = Field(default_factory=list)
    future_directions: List[str] = Field(default_factory=list)
    chronological_trends: Optional[List[ChronologicalTrend]] = None


# =============================================================================
# Stage 3: Thesis relevance
# =============================================================================

class ThesisRelevance(CamelModel):
    overall_score: int = Field(default=3, ge=1, le=5)
    suggested_role: ThesisRole = "background"
    role_confidence: float = 0.5
    reasoning: str = ""
    thesis_framed_takeaway: str = ""
    alternative_takeaways: List[str] = Field(default_factory=list)


# =============================================================================
# Token accounting
# =============================================================================

class TokenCount(CamelModel):
    input: int = 0
    output: int = 0

    @property
    def total(self) -> int:
        return self.input + self.output


class StageTokenUsage(CamelModel):
    """Token usage per pipeline stage."""
    stage1: TokenCount = Field(default_factory=TokenCount)
    stage2: TokenCount = Field(default_factory=TokenCount)
    stage3: TokenCount = Field(default_factory=TokenCount)

    def record(self, stage: int, tokens: TokenCount) -> None:
        setattr(self, f"stage{stage}", TokenCount(input=tokens.input, output=tokens.output))

    @property
    def input(self) -> int:
        return self.stage1.input + self.stage2.input + self.stage3.input

    @property
    def output(self) -> int:
        return self.stage1.output + self.stage2.output + self.stage3.output

    @property
    def total(self) -> int:
        return self.input + self.output


# =============================================================================
# Aggregate root
# =============================================================================

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ExtractionGraph(CamelModel):
    """
    Knowledge graph for one document.

    Created in the "pending" state and filled in place by the orchestrator
    as each stage completes. Once ``extraction_status`` is terminal
    ("completed" or "failed") any further attribute assignment raises
    GraphFinalizedError.

    Example:
        graph = ExtractionGraph.empty("paper-1")
        graph.extraction_status = "extracting"
        ...
        graph.finalize("completed")
    """
    id: str
    paper_id: str
    extracted_at: str = Field(default_factory=_now_iso)
    extraction_depth: ExtractionDepth = "standard"
    extraction_status: ExtractionStatus = "pending"
    extraction_error: Optional[str] = None

    classification: Optional[Classification] = None

    findings: List[Finding] = Field(default_factory=list)
    intra_document_connections: List[IntraDocumentConnection] = Field(default_factory=list)
    data_tables: List[DataTable] = Field(default_factory=list)

    paper_type: PaperType = "research-article"
    experimental_system: Optional[str] = None
    key_contributions: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)
    open_questions: List[str] = Field(default_factory=list)

    review_extraction: Optional[ReviewExtraction] = None
    potential_connections: List[PotentialConnection] = Field(default_factory=list)
    thesis_relevance: Optional[ThesisRelevance] = None

    review_status: ReviewStatus = "unreviewed"
    tokens_used: StageTokenUsage = Field(default_factory=StageTokenUsage)

    @classmethod
    def empty(cls, paper_id: str) -> "ExtractionGraph":
        return cls(id=f"graph-{paper_id}-{int(time.time() * 1000)}", paper_id=paper_id)

    @property
    def is_terminal(self) -> bool:
        return self.extraction_status in TERMINAL_STATUSES

    def __setattr__(self, name: str, value: Any) -> None:
        if self.extraction_status in TERMINAL_STATUSES:
            raise GraphFinalizedError(
                f"Graph {self.id} is {self.extraction_status}; cannot set {name}"
            )
        super().__setattr__(name, value)

    def finalize(self, status: ExtractionStatus, error: Optional[str] = None) -> None:
        """Move the graph into a terminal status."""
        if status not in TERMINAL_STATUSES:
            raise ValueError(f"Not a terminal status: {status}")
        if error is not None:
            self.extraction_error = error
        self.extraction_status = status

    def finding_by_id(self, finding_id: str) -> Optional[Finding]:
        for finding in self.findings:
            if finding.id == finding_id:
                return finding
        return None


# =============================================================================
# Pipeline outputs
# =============================================================================

class ExtractionProgress(CamelModel):
    """Progress snapshot reported after each stage transition."""
    paper_id: str
    current_stage: int = Field(..., ge=1, le=3)
    stage_description: str
    overall_progress: int = Field(..., ge=0, le=100)
    can_cancel: bool = True


class ExtractionResult(CamelModel):
    """
    Discriminated result of one pipeline invocation.

    ``success`` is True with a completed ``graph``, or False with an
    ``error`` message. ``tokens_used`` always carries whatever usage was
    accumulated, including stages that ran before a failure.

    Example:
        result = await extractor.extract(paper, thesis=None, existing_papers=[])
        if result.success:
            print(len(result.graph.findings))
        else:
            print(result.error)
    """
    success: bool
    graph: Optional[ExtractionGraph] = None
    error: Optional[str] = None
    tokens_used: StageTokenUsage = Field(default_factory=StageTokenUsage)

    @property
    def cancelled(self) -> bool:
        return not self.success and self.error == str(ExtractionCancelledError())

