"""
PaperGraph Constants - Enumerations, item caps, and text budgets.

The numeric caps match the values used by existing extraction results;
changing them changes what a re-extraction produces.
"""

from typing import Literal, get_args


# =============================================================================
# Enumerations
# =============================================================================

PaperType = Literal[
    "research-article",
    "review",
    "methods",
    "short-communication",
    "meta-analysis",
    "case-study",
    "theoretical",
]
StructureQuality = Literal["well-structured", "semi-structured", "unstructured"]
DataRichness = Literal["data-heavy", "narrative-heavy", "balanced"]
ExtractionDepth = Literal["quick", "standard", "deep"]
ExtractionStatus = Literal["pending", "extracting", "completed", "failed"]
ReviewStatus = Literal["unreviewed", "partial", "reviewed"]

FindingType = Literal[
    "central-finding",
    "supporting-finding",
    "methodological",
    "limitation",
    "implication",
    "open-question",
    "background",
]
IntraConnectionType = Literal[
    "supports", "contradicts", "extends", "requires", "explains", "qualifies"
]
CrossConnectionType = Literal[
    "supports", "contradicts", "extends", "uses-method", "same-topic"
]
GapType = Literal[
    "knowledge",
    "methodological",
    "population",
    "theoretical",
    "temporal",
    "geographic",
    "contradictory",
]
ThesisRole = Literal["supports", "contradicts", "method", "background", "other"]
ApproximatePosition = Literal["early", "middle", "late"]
GapOrigin = Literal["explicit", "inferred"]

PAPER_TYPES = get_args(PaperType)
STRUCTURE_QUALITIES = get_args(StructureQuality)
DATA_RICHNESS_LEVELS = get_args(DataRichness)
EXTRACTION_DEPTHS = get_args(ExtractionDepth)
FINDING_TYPES = get_args(FindingType)
INTRA_CONNECTION_TYPES = get_args(IntraConnectionType)
CROSS_CONNECTION_TYPES = get_args(CrossConnectionType)
GAP_TYPES = get_args(GapType)
THESIS_ROLES = get_args(ThesisRole)
APPROXIMATE_POSITIONS = get_args(ApproximatePosition)

TERMINAL_STATUSES = ("completed", "failed")


# =============================================================================
# Collection caps
# =============================================================================

MAX_FINDINGS = 15
MAX_TABLES = 10
MAX_INTRA_CONNECTIONS = 20
MAX_QUOTES_PER_FINDING = 5
MAX_POTENTIAL_CONNECTIONS = 10
MAX_TABLE_COLUMNS = 20
MAX_TABLE_ROWS = 50
MAX_LINKED_FINDINGS = 5
MAX_PAGE_NUMBERS = 10
MAX_PRIORITY_SECTIONS = 6
MAX_KEY_CONTRIBUTIONS = 5
MAX_LIMITATIONS = 10
MAX_OPEN_QUESTIONS = 10
MAX_KEYWORDS = 10
MAX_THEMES = 10
MAX_GAPS = 10
MAX_FUTURE_DIRECTIONS = 10
MAX_TRENDS = 10
MAX_PAPERS_CITED = 20
MAX_ALTERNATIVE_TAKEAWAYS = 3
MAX_CROSS_DOCUMENT_CONNECTIONS = 10
MAX_FINDING_RELEVANCE = 15
MAX_THESIS_GAPS = 5
MAX_EXISTING_PAPERS = 15

MIN_EXPECTED_FINDINGS = 1
MAX_EXPECTED_FINDINGS = 20


# =============================================================================
# String length caps
# =============================================================================

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_QUOTE_LENGTH = 500
MAX_TABLE_DESCRIPTION_LENGTH = 500
MAX_SECTION_NAME_LENGTH = 200
MAX_EXPLANATION_LENGTH = 500
MAX_REASONING_LENGTH = 500
MAX_LONG_REASONING_LENGTH = 1000
MAX_TARGET_DESCRIPTION_LENGTH = 300
MAX_THEME_LENGTH = 300
MAX_GAP_LENGTH = 500
MAX_TREND_PERIOD_LENGTH = 50
MAX_TREND_CHARACTERIZATION_LENGTH = 300
MAX_DIMENSION_LENGTH = 200
MAX_TAKEAWAY_LENGTH = 500


# =============================================================================
# Prompt text budgets (characters)
# =============================================================================

CLASSIFICATION_SAMPLE_CHARS = 8000

DEPTH_TEXT_BUDGETS = {
    "quick": 15000,     # ~3000 words
    "standard": 40000,  # ~8000 words
    "deep": 80000,      # ~16000 words
}

# Thresholds behind the very_short / very_long flags
VERY_SHORT_WORDS = 1500
VERY_LONG_PAGES = 30


# =============================================================================
# Stage names
# =============================================================================

STAGE_NAMES = {
    1: "Classification",
    2: "Extraction",
    3: "Thesis Integration",
}
