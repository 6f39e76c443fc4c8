"""
Sanitization of the Stage 2 (deep extraction) response.

Index references (connection endpoints, linked findings, potential
connection sources) are kept as positions here. Only their shape is
checked; whether they point at an existing finding is decided when the
graph is assembled.
"""

from typing import Any, Dict, List, Optional

from papergraph.core.constants import (
    APPROXIMATE_POSITIONS,
    CROSS_CONNECTION_TYPES,
    FINDING_TYPES,
    GAP_TYPES,
    INTRA_CONNECTION_TYPES,
    MAX_DESCRIPTION_LENGTH,
    MAX_EXPLANATION_LENGTH,
    MAX_FINDINGS,
    MAX_FUTURE_DIRECTIONS,
    MAX_GAP_LENGTH,
    MAX_GAPS,
    MAX_INTRA_CONNECTIONS,
    MAX_KEY_CONTRIBUTIONS,
    MAX_KEYWORDS,
    MAX_LIMITATIONS,
    MAX_LINKED_FINDINGS,
    MAX_OPEN_QUESTIONS,
    MAX_PAGE_NUMBERS,
    MAX_PAPERS_CITED,
    MAX_POTENTIAL_CONNECTIONS,
    MAX_QUOTE_LENGTH,
    MAX_QUOTES_PER_FINDING,
    MAX_REASONING_LENGTH,
    MAX_SECTION_NAME_LENGTH,
    MAX_TABLE_COLUMNS,
    MAX_TABLE_DESCRIPTION_LENGTH,
    MAX_TABLE_ROWS,
    MAX_TABLES,
    MAX_TARGET_DESCRIPTION_LENGTH,
    MAX_THEME_LENGTH,
    MAX_THEMES,
    MAX_TITLE_LENGTH,
    MAX_TREND_CHARACTERIZATION_LENGTH,
    MAX_TREND_PERIOD_LENGTH,
    MAX_TRENDS,
)
from papergraph.extraction.sanitizer import Sanitizer
from papergraph.extraction.schemas import (
    ExtractionResponse,
    RawColumn,
    RawDataTable,
    RawFinding,
    RawGap,
    RawIntraConnection,
    RawPotentialConnection,
    RawQuote,
    RawRow,
    RawSynthesisTheme,
    RawTrend,
    ReviewSpecific,
)


GAP_ORIGINS = ("explicit", "inferred")


# =============================================================================
# Entry points
# =============================================================================

def parse_extraction_response(
    data: Any,
    sanitizer: Optional[Sanitizer] = None,
) -> ExtractionResponse:
    """
    Turn an untyped deep extraction response into an ExtractionResponse.

    Never raises. Non-object entries are dropped, lists are cut to their
    caps, strings truncated, enumerations defaulted, and entries whose
    index reference is missing or negative are dropped.

    Args:
        data: Parsed JSON from the provider (any shape)
        sanitizer: Optional Sanitizer collecting substitutions

    Returns:
        ExtractionResponse with ``review_specific`` left as None
    """
    s = sanitizer if sanitizer is not None else Sanitizer()
    raw = s.mapping(data, "$")

    findings = [
        _parse_finding(s, item, path)
        for path, item in s.records(raw.get("findings"), "findings", MAX_FINDINGS)
    ]
    data_tables = [
        _parse_table(s, item, path)
        for path, item in s.records(raw.get("dataTables"), "dataTables", MAX_TABLES)
    ]

    return ExtractionResponse(
        findings=findings,
        data_tables=data_tables,
        intra_connections=_parse_intra_connections(s, raw.get("intraPaperConnections")),
        experimental_system=s.optional_text(raw.get("experimentalSystem"), "experimentalSystem"),
        key_contributions=s.strings(
            raw.get("keyContributions"), "keyContributions", MAX_KEY_CONTRIBUTIONS
        ),
        limitations=s.strings(raw.get("limitations"), "limitations", MAX_LIMITATIONS),
        open_questions=s.strings(raw.get("openQuestions"), "openQuestions", MAX_OPEN_QUESTIONS),
        potential_connections=_parse_potential_connections(s, raw.get("potentialConnections")),
    )


def parse_review_extraction_response(
    data: Any,
    sanitizer: Optional[Sanitizer] = None,
) -> ExtractionResponse:
    """
    Like parse_extraction_response, plus the ``reviewSpecific`` block.

    The review block is always present on the result, empty when the
    model returned nothing usable.
    """
    s = sanitizer if sanitizer is not None else Sanitizer()
    response = parse_extraction_response(data, s)

    raw = data if isinstance(data, dict) else {}
    review = s.mapping(raw.get("reviewSpecific"), "reviewSpecific")

    response.review_specific = ReviewSpecific(
        synthesis_themes=[
            _parse_theme(s, item, path)
            for path, item in s.records(
                review.get("synthesisThemes"), "reviewSpecific.synthesisThemes", MAX_THEMES
            )
        ],
        identified_gaps=[
            _parse_gap(s, item, path)
            for path, item in s.records(
                review.get("identifiedGaps"), "reviewSpecific.identifiedGaps", MAX_GAPS
            )
        ],
        future_directions=s.strings(
            review.get("futureDirections"), "reviewSpecific.futureDirections", MAX_FUTURE_DIRECTIONS
        ),
        chronological_trends=_parse_trends(s, review.get("chronologicalTrends")),
    )
    return response


# =============================================================================
# Findings
# =============================================================================

def _parse_quote(s: Sanitizer, raw: Dict[str, Any], path: str) -> Optional[RawQuote]:
    text = s.text(raw.get("text"), f"{path}.text", max_length=MAX_QUOTE_LENGTH)
    if not text:
        s.note(path, "quote without text dropped")
        return None
    return RawQuote(
        text=text,
        page_number=s.page_number(raw.get("pageNumber"), f"{path}.pageNumber"),
        approximate_position=s.optional_choice(
            raw.get("approximatePosition"), APPROXIMATE_POSITIONS, f"{path}.approximatePosition"
        ),
    )


def _parse_finding(s: Sanitizer, raw: Dict[str, Any], path: str) -> RawFinding:
    quotes = [
        _parse_quote(s, item, item_path)
        for item_path, item in s.records(
            raw.get("directQuotes"), f"{path}.directQuotes", MAX_QUOTES_PER_FINDING
        )
    ]
    return RawFinding(
        title=s.text(raw.get("title"), f"{path}.title", "Untitled Finding", MAX_TITLE_LENGTH),
        description=s.text(
            raw.get("description"), f"{path}.description", max_length=MAX_DESCRIPTION_LENGTH
        ),
        finding_type=s.choice(
            raw.get("findingType"), FINDING_TYPES, "supporting-finding", f"{path}.findingType"
        ),
        page_numbers=s.page_numbers(raw.get("pageNumbers"), f"{path}.pageNumbers", MAX_PAGE_NUMBERS),
        section_name=s.optional_text(
            raw.get("sectionName"), f"{path}.sectionName", MAX_SECTION_NAME_LENGTH
        ),
        direct_quotes=[q for q in quotes if q is not None],
        confidence=s.confidence(raw.get("confidence"), f"{path}.confidence"),
    )


# =============================================================================
# Data tables
# =============================================================================

def _parse_table(s: Sanitizer, raw: Dict[str, Any], path: str) -> RawDataTable:
    columns = [
        RawColumn(
            name=s.text(item.get("name"), f"{col_path}.name", "Column"),
            unit=s.optional_text(item.get("unit"), f"{col_path}.unit"),
        )
        for col_path, item in s.records(raw.get("columns"), f"{path}.columns", MAX_TABLE_COLUMNS)
    ]
    rows = [
        RawRow(
            label=s.text(item.get("label"), f"{row_path}.label", "Row"),
            values=s.cell_values(item.get("values"), f"{row_path}.values"),
        )
        for row_path, item in s.records(raw.get("rows"), f"{path}.rows", MAX_TABLE_ROWS)
    ]
    return RawDataTable(
        name=s.text(raw.get("name"), f"{path}.name", "Untitled Table", MAX_TITLE_LENGTH),
        description=s.text(
            raw.get("description"), f"{path}.description", max_length=MAX_TABLE_DESCRIPTION_LENGTH
        ),
        page_reference=s.optional_text(raw.get("pageReference"), f"{path}.pageReference"),
        columns=columns,
        rows=rows,
        linked_finding_indices=s.indices(
            raw.get("linkedFindingIndices"), f"{path}.linkedFindingIndices", MAX_LINKED_FINDINGS
        ),
        confidence=s.confidence(raw.get("confidence"), f"{path}.confidence"),
    )


# =============================================================================
# Connections
# =============================================================================

def _parse_intra_connections(s: Sanitizer, value: Any) -> List[RawIntraConnection]:
    connections = []
    for path, raw in s.records(value, "intraPaperConnections"):
        from_index = s.index(raw.get("fromFindingIndex"), f"{path}.fromFindingIndex")
        to_index = s.index(raw.get("toFindingIndex"), f"{path}.toFindingIndex")
        if from_index is None or to_index is None:
            s.note(path, "connection without valid endpoints dropped")
            continue
        connections.append(RawIntraConnection(
            from_finding_index=from_index,
            to_finding_index=to_index,
            connection_type=s.choice(
                raw.get("connectionType"), INTRA_CONNECTION_TYPES, "supports", f"{path}.connectionType"
            ),
            explanation=s.text(
                raw.get("explanation"), f"{path}.explanation", max_length=MAX_EXPLANATION_LENGTH
            ),
            is_explicit=s.flag(raw.get("isExplicit"), f"{path}.isExplicit"),
        ))

    if len(connections) > MAX_INTRA_CONNECTIONS:
        s.note(
            "intraPaperConnections",
            f"truncated from {len(connections)} to {MAX_INTRA_CONNECTIONS} entries",
        )
        connections = connections[:MAX_INTRA_CONNECTIONS]
    return connections


def _parse_potential_connections(s: Sanitizer, value: Any) -> List[RawPotentialConnection]:
    connections = []
    for path, raw in s.records(value, "potentialConnections", MAX_POTENTIAL_CONNECTIONS):
        finding_index = s.index(raw.get("findingIndex"), f"{path}.findingIndex")
        if finding_index is None:
            s.note(path, "hint without a valid finding index dropped")
            continue
        connections.append(RawPotentialConnection(
            finding_index=finding_index,
            suggested_connection_type=s.choice(
                raw.get("suggestedConnectionType"),
                CROSS_CONNECTION_TYPES,
                "same-topic",
                f"{path}.suggestedConnectionType",
            ),
            target_description=s.text(
                raw.get("targetDescription"),
                f"{path}.targetDescription",
                max_length=MAX_TARGET_DESCRIPTION_LENGTH,
            ),
            keywords=s.strings(raw.get("keywords"), f"{path}.keywords", MAX_KEYWORDS),
            reasoning=s.text(raw.get("reasoning"), f"{path}.reasoning", max_length=MAX_REASONING_LENGTH),
        ))
    return connections


# =============================================================================
# Review extension
# =============================================================================

def _parse_theme(s: Sanitizer, raw: Dict[str, Any], path: str) -> RawSynthesisTheme:
    return RawSynthesisTheme(
        theme=s.text(raw.get("theme"), f"{path}.theme", max_length=MAX_THEME_LENGTH),
        papers_cited=s.strings(raw.get("papersCited"), f"{path}.papersCited", MAX_PAPERS_CITED),
        consensus=s.optional_text(raw.get("consensus"), f"{path}.consensus", MAX_EXPLANATION_LENGTH),
        disagreement=s.optional_text(
            raw.get("disagreement"), f"{path}.disagreement", MAX_EXPLANATION_LENGTH
        ),
    )


def _parse_gap(s: Sanitizer, raw: Dict[str, Any], path: str) -> RawGap:
    return RawGap(
        gap=s.text(raw.get("gap"), f"{path}.gap", max_length=MAX_GAP_LENGTH),
        gap_type=s.choice(raw.get("gapType"), GAP_TYPES, "knowledge", f"{path}.gapType"),
        page_reference=s.optional_text(raw.get("pageReference"), f"{path}.pageReference"),
        explicit_or_inferred=s.choice(
            raw.get("explicitOrInferred"), GAP_ORIGINS, "explicit", f"{path}.explicitOrInferred"
        ),
    )


def _parse_trends(s: Sanitizer, value: Any) -> Optional[List[RawTrend]]:
    """Trends missing a period or characterization are dropped; no trends gives None."""
    trends = []
    for path, raw in s.records(value, "reviewSpecific.chronologicalTrends", MAX_TRENDS):
        period = s.text(raw.get("period"), f"{path}.period", max_length=MAX_TREND_PERIOD_LENGTH)
        characterization = s.text(
            raw.get("characterization"),
            f"{path}.characterization",
            max_length=MAX_TREND_CHARACTERIZATION_LENGTH,
        )
        if not period or not characterization:
            s.note(path, "incomplete trend dropped")
            continue
        trends.append(RawTrend(period=period, characterization=characterization))
    return trends or None
