"""
Sanitization of the Stage 1 (classification) response.
"""

from typing import Any, Optional

from papergraph.core.constants import (
    DATA_RICHNESS_LEVELS,
    EXTRACTION_DEPTHS,
    MAX_EXPECTED_FINDINGS,
    MAX_PRIORITY_SECTIONS,
    MIN_EXPECTED_FINDINGS,
    PAPER_TYPES,
    STRUCTURE_QUALITIES,
)
from papergraph.core.types import Classification, ClassificationFlags, ExtractionHints
from papergraph.extraction.sanitizer import Sanitizer, is_number


DEFAULT_PRIORITY_SECTIONS = {
    "research-article": ["Abstract", "Results", "Discussion", "Conclusion"],
    "review": ["Abstract", "Introduction", "Discussion", "Conclusion"],
    "methods": ["Abstract", "Methods", "Protocol", "Validation"],
    "short-communication": ["Abstract", "Results", "Discussion"],
    "meta-analysis": ["Abstract", "Results", "Forest Plot", "Discussion"],
    "case-study": ["Abstract", "Case Description", "Analysis", "Discussion"],
    "theoretical": ["Abstract", "Framework", "Model", "Discussion"],
}

DEFAULT_FINDING_COUNTS = {
    "short-communication": 2,
    "review": 8,
    "meta-analysis": 6,
    "research-article": 5,
    "methods": 4,
    "case-study": 4,
    "theoretical": 5,
}


def suggested_depth_for(flags: ClassificationFlags) -> str:
    """Depth implied by the length flags when the model gives none."""
    if flags.very_short:
        return "quick"
    if flags.very_long:
        return "deep"
    return "standard"


def parse_classification_response(
    data: Any,
    sanitizer: Optional[Sanitizer] = None,
) -> Classification:
    """
    Turn an untyped classification response into a Classification.

    Never raises: every field falls back to a deterministic default, and
    the priority sections and finding count defaults depend on the
    (sanitized) paper type.

    Args:
        data: Parsed JSON from the provider (any shape)
        sanitizer: Optional Sanitizer collecting substitutions

    Returns:
        A fully populated Classification
    """
    s = sanitizer if sanitizer is not None else Sanitizer()
    raw = s.mapping(data, "$")

    paper_type = s.choice(raw.get("paperType"), PAPER_TYPES, "research-article", "paperType")
    structure_quality = s.choice(
        raw.get("structureQuality"), STRUCTURE_QUALITIES, "semi-structured", "structureQuality"
    )
    data_richness = s.choice(raw.get("dataRichness"), DATA_RICHNESS_LEVELS, "balanced", "dataRichness")

    raw_flags = s.mapping(raw.get("flags"), "flags")
    flags = ClassificationFlags(
        poor_ocr=s.flag(raw_flags.get("poorOCR"), "flags.poorOCR"),
        missing_sections=s.flag(raw_flags.get("missingSections"), "flags.missingSections"),
        very_short=s.flag(raw_flags.get("veryShort"), "flags.veryShort"),
        very_long=s.flag(raw_flags.get("veryLong"), "flags.veryLong"),
    )

    raw_hints = s.mapping(raw.get("extractionHints"), "extractionHints")

    sections = raw_hints.get("prioritySections")
    if isinstance(sections, list):
        priority_sections = s.strings(
            sections, "extractionHints.prioritySections", MAX_PRIORITY_SECTIONS
        )
    else:
        s.note("extractionHints.prioritySections", f"missing, using defaults for {paper_type}")
        priority_sections = list(DEFAULT_PRIORITY_SECTIONS[paper_type])

    count = raw_hints.get("expectedFindingCount")
    if is_number(count):
        expected_finding_count = s.bounded_int(
            count,
            "extractionHints.expectedFindingCount",
            MIN_EXPECTED_FINDINGS,
            MAX_EXPECTED_FINDINGS,
            DEFAULT_FINDING_COUNTS[paper_type],
        )
    else:
        expected_finding_count = DEFAULT_FINDING_COUNTS[paper_type]
        s.note(
            "extractionHints.expectedFindingCount",
            f"not a number, using {expected_finding_count}",
        )

    depth = raw_hints.get("suggestedDepth")
    if isinstance(depth, str) and depth in EXTRACTION_DEPTHS:
        suggested_depth = depth
    else:
        suggested_depth = suggested_depth_for(flags)
        s.note("extractionHints.suggestedDepth", f"invalid value {depth!r}, using {suggested_depth!r}")

    return Classification(
        paper_type=paper_type,
        structure_quality=structure_quality,
        data_richness=data_richness,
        confidence=s.confidence(raw.get("confidence"), "confidence"),
        flags=flags,
        extraction_hints=ExtractionHints(
            priority_sections=priority_sections,
            expected_finding_count=expected_finding_count,
            suggested_depth=suggested_depth,
        ),
    )
