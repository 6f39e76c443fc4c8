"""
PaperGraph Assembler - Turns sanitized stage responses into graph entities.

Assembly is two-pass: findings are materialized first (each gets a UUID
and its position as ``order``), then every index reference in tables,
connections and relevance entries is resolved against that list. A
reference that does not resolve is dropped, never clamped.
"""

import logging
from typing import List, Optional

from papergraph.core.types import (
    ChronologicalTrend,
    DataTable,
    ExtractionGraph,
    Finding,
    FindingRelevance,
    IdentifiedGap,
    IntraDocumentConnection,
    PotentialConnection,
    QuoteReference,
    ReviewExtraction,
    SynthesisTheme,
    TableColumn,
    TableRow,
    ThesisRelevance,
)
from papergraph.extraction.schemas import (
    ExtractionResponse,
    RawDataTable,
    RawFinding,
    RawIntraConnection,
    RawPotentialConnection,
    ReviewSpecific,
    ThesisIntegrationResponse,
)


logger = logging.getLogger(__name__)


def _resolve(findings: List[Finding], index: int) -> Optional[Finding]:
    if 0 <= index < len(findings):
        return findings[index]
    return None


# =============================================================================
# Pass 1: materialize findings
# =============================================================================

def build_findings(raw_findings: List[RawFinding], paper_id: str) -> List[Finding]:
    """Give each finding an id; quotes inherit the finding's section."""
    return [
        Finding(
            paper_id=paper_id,
            title=raw.title,
            description=raw.description,
            finding_type=raw.finding_type,
            page_numbers=list(raw.page_numbers),
            section_name=raw.section_name,
            direct_quotes=[
                QuoteReference.create(
                    text=q.text,
                    page_number=q.page_number,
                    section_name=raw.section_name,
                    approximate_position=q.approximate_position,
                )
                for q in raw.direct_quotes
            ],
            confidence=raw.confidence,
            order=index,
        )
        for index, raw in enumerate(raw_findings)
    ]


# =============================================================================
# Pass 2: resolve references
# =============================================================================

def build_data_tables(
    raw_tables: List[RawDataTable],
    paper_id: str,
    findings: List[Finding],
) -> List[DataTable]:
    tables = []
    for raw in raw_tables:
        linked = [_resolve(findings, i) for i in raw.linked_finding_indices]
        dropped = sum(1 for f in linked if f is None)
        if dropped:
            logger.info(f"Table {raw.name!r}: dropped {dropped} unresolved finding links")

        tables.append(DataTable(
            paper_id=paper_id,
            name=raw.name,
            description=raw.description,
            page_reference=raw.page_reference,
            columns=[TableColumn(name=c.name, unit=c.unit) for c in raw.columns],
            rows=[TableRow(label=r.label, values=dict(r.values)) for r in raw.rows],
            extraction_confidence=raw.confidence,
            linked_finding_ids=[f.id for f in linked if f is not None],
        ))
    return tables


def build_intra_connections(
    raw_connections: List[RawIntraConnection],
    findings: List[Finding],
) -> List[IntraDocumentConnection]:
    connections = []
    for raw in raw_connections:
        source = _resolve(findings, raw.from_finding_index)
        target = _resolve(findings, raw.to_finding_index)
        if source is None or target is None:
            logger.info(
                f"Dropped connection {raw.from_finding_index} -> {raw.to_finding_index}: "
                f"only {len(findings)} findings"
            )
            continue
        connections.append(IntraDocumentConnection(
            from_finding_id=source.id,
            to_finding_id=target.id,
            connection_type=raw.connection_type,
            explanation=raw.explanation,
            is_explicit=raw.is_explicit,
        ))
    return connections


def build_potential_connections(
    raw_connections: List[RawPotentialConnection],
    findings: List[Finding],
) -> List[PotentialConnection]:
    connections = []
    for raw in raw_connections:
        finding = _resolve(findings, raw.finding_index)
        if finding is None:
            logger.info(f"Dropped potential connection for missing finding {raw.finding_index}")
            continue
        connections.append(PotentialConnection(
            finding_id=finding.id,
            suggested_connection_type=raw.suggested_connection_type,
            target_description=raw.target_description,
            keywords=list(raw.keywords),
            reasoning=raw.reasoning,
        ))
    return connections


def build_review_extraction(review: ReviewSpecific) -> ReviewExtraction:
    trends = None
    if review.chronological_trends is not None:
        trends = [
            ChronologicalTrend(period=t.period, characterization=t.characterization)
            for t in review.chronological_trends
        ]
    return ReviewExtraction(
        synthesis_themes=[
            SynthesisTheme(
                theme=t.theme,
                papers_cited=list(t.papers_cited),
                consensus=t.consensus,
                disagreement=t.disagreement,
            )
            for t in review.synthesis_themes
        ],
        identified_gaps=[
            IdentifiedGap(
                gap=g.gap,
                gap_type=g.gap_type,
                page_reference=g.page_reference,
                explicit_or_inferred=g.explicit_or_inferred,
            )
            for g in review.identified_gaps
        ],
        future_directions=list(review.future_directions),
        chronological_trends=trends,
    )


# =============================================================================
# Graph updates
# =============================================================================

def apply_extraction(graph: ExtractionGraph, response: ExtractionResponse) -> None:
    """
    Fill the graph from a Stage 2 response.

    The review extension is attached only when the graph's paper type is
    "review".
    """
    findings = build_findings(response.findings, graph.paper_id)

    graph.findings = findings
    graph.data_tables = build_data_tables(response.data_tables, graph.paper_id, findings)
    graph.intra_document_connections = build_intra_connections(response.intra_connections, findings)
    graph.experimental_system = response.experimental_system
    graph.key_contributions = list(response.key_contributions)
    graph.limitations = list(response.limitations)
    graph.open_questions = list(response.open_questions)
    graph.potential_connections = build_potential_connections(response.potential_connections, findings)

    if graph.paper_type == "review" and response.review_specific is not None:
        graph.review_extraction = build_review_extraction(response.review_specific)

    logger.info(
        f"Assembled {len(graph.findings)} findings, {len(graph.data_tables)} tables, "
        f"{len(graph.intra_document_connections)} connections for {graph.paper_id}"
    )


def apply_thesis_integration(graph: ExtractionGraph, response: ThesisIntegrationResponse) -> None:
    """Attach document-level relevance and merge finding-level relevance by position."""
    graph.thesis_relevance = ThesisRelevance(
        overall_score=response.overall_relevance.score,
        suggested_role=response.suggested_role.role,
        role_confidence=response.suggested_role.confidence,
        reasoning=response.overall_relevance.reasoning,
        thesis_framed_takeaway=response.thesis_framed_takeaway,
        alternative_takeaways=list(response.alternative_takeaways),
    )

    for entry in response.finding_relevance:
        finding = _resolve(graph.findings, entry.finding_index)
        if finding is None:
            logger.info(f"Dropped relevance for missing finding {entry.finding_index}")
            continue
        finding.thesis_relevance = FindingRelevance(
            score=entry.relevance_score,
            dimension=entry.thesis_dimension,
            reasoning=entry.reasoning,
        )
