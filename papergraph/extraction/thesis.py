"""
Sanitization of the Stage 3 (thesis integration) response.
"""

from typing import Any, Iterable, List, Optional

from papergraph.core.constants import (
    CROSS_CONNECTION_TYPES,
    MAX_ALTERNATIVE_TAKEAWAYS,
    MAX_CROSS_DOCUMENT_CONNECTIONS,
    MAX_DIMENSION_LENGTH,
    MAX_FINDING_RELEVANCE,
    MAX_LONG_REASONING_LENGTH,
    MAX_REASONING_LENGTH,
    MAX_TAKEAWAY_LENGTH,
    MAX_THESIS_GAPS,
    THESIS_ROLES,
)
from papergraph.extraction.sanitizer import Sanitizer
from papergraph.extraction.schemas import (
    OverallRelevance,
    RawCrossDocumentConnection,
    RawFindingRelevance,
    SuggestedRole,
    ThesisIntegrationResponse,
)


def parse_thesis_integration_response(
    data: Any,
    existing_paper_ids: Iterable[str],
    sanitizer: Optional[Sanitizer] = None,
) -> ThesisIntegrationResponse:
    """
    Turn an untyped thesis integration response into a ThesisIntegrationResponse.

    Cross-document connections are kept only when their ``existingPaperId``
    is one of ``existing_paper_ids``; with no ids, none survive.

    Args:
        data: Parsed JSON from the provider (any shape)
        existing_paper_ids: Ids of the documents shown to the model
        sanitizer: Optional Sanitizer collecting substitutions

    Returns:
        A fully populated ThesisIntegrationResponse
    """
    s = sanitizer if sanitizer is not None else Sanitizer()
    raw = s.mapping(data, "$")
    known_ids = set(existing_paper_ids)

    raw_relevance = s.mapping(raw.get("overallRelevance"), "overallRelevance")
    overall_relevance = OverallRelevance(
        score=s.relevance(raw_relevance.get("score"), "overallRelevance.score"),
        reasoning=s.text(
            raw_relevance.get("reasoning"),
            "overallRelevance.reasoning",
            max_length=MAX_LONG_REASONING_LENGTH,
        ),
    )

    raw_role = s.mapping(raw.get("suggestedRole"), "suggestedRole")
    suggested_role = SuggestedRole(
        role=s.choice(raw_role.get("role"), THESIS_ROLES, "background", "suggestedRole.role"),
        confidence=s.confidence(raw_role.get("confidence"), "suggestedRole.confidence"),
        reasoning=s.text(
            raw_role.get("reasoning"), "suggestedRole.reasoning", max_length=MAX_LONG_REASONING_LENGTH
        ),
    )

    finding_relevance = []
    for path, item in s.records(raw.get("findingRelevance"), "findingRelevance", MAX_FINDING_RELEVANCE):
        finding_index = s.index(item.get("findingIndex"), f"{path}.findingIndex")
        if finding_index is None:
            s.note(path, "entry without a valid finding index dropped")
            continue
        finding_relevance.append(RawFindingRelevance(
            finding_index=finding_index,
            relevance_score=s.relevance(item.get("relevanceScore"), f"{path}.relevanceScore"),
            thesis_dimension=s.text(
                item.get("thesisDimension"), f"{path}.thesisDimension", max_length=MAX_DIMENSION_LENGTH
            ),
            reasoning=s.text(item.get("reasoning"), f"{path}.reasoning", max_length=MAX_REASONING_LENGTH),
        ))

    return ThesisIntegrationResponse(
        overall_relevance=overall_relevance,
        suggested_role=suggested_role,
        thesis_framed_takeaway=s.text(
            raw.get("thesisFramedTakeaway"), "thesisFramedTakeaway", max_length=MAX_TAKEAWAY_LENGTH
        ),
        alternative_takeaways=s.strings(
            raw.get("alternativeTakeaways"), "alternativeTakeaways", MAX_ALTERNATIVE_TAKEAWAYS
        ),
        finding_relevance=finding_relevance,
        cross_document_connections=_parse_cross_connections(
            s, raw.get("crossPaperConnections"), known_ids
        ),
        gaps_addressed=s.strings(raw.get("gapsAddressed"), "gapsAddressed", MAX_THESIS_GAPS),
        new_gaps_revealed=s.strings(raw.get("newGapsRevealed"), "newGapsRevealed", MAX_THESIS_GAPS),
    )


def _parse_cross_connections(
    s: Sanitizer,
    value: Any,
    known_ids: set,
) -> List[RawCrossDocumentConnection]:
    connections = []
    for path, raw in s.records(value, "crossPaperConnections"):
        paper_id = raw.get("existingPaperId")
        if not isinstance(paper_id, str) or paper_id not in known_ids:
            s.note(path, f"unknown document id {paper_id!r} dropped")
            continue
        connections.append(RawCrossDocumentConnection(
            existing_paper_id=paper_id,
            connection_type=s.choice(
                raw.get("connectionType"), CROSS_CONNECTION_TYPES, "same-topic", f"{path}.connectionType"
            ),
            reasoning=s.text(raw.get("reasoning"), f"{path}.reasoning", max_length=MAX_REASONING_LENGTH),
            confidence=s.confidence(raw.get("confidence"), f"{path}.confidence"),
        ))

    if len(connections) > MAX_CROSS_DOCUMENT_CONNECTIONS:
        s.note(
            "crossPaperConnections",
            f"truncated from {len(connections)} to {MAX_CROSS_DOCUMENT_CONNECTIONS} entries",
        )
        connections = connections[:MAX_CROSS_DOCUMENT_CONNECTIONS]
    return connections
