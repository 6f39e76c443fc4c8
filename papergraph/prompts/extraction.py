"""
Stage 2 prompts: type-specific deep extraction of findings, tables and
connections.
"""

from papergraph.core.constants import DEPTH_TEXT_BUDGETS
from papergraph.core.types import Classification, DocumentContext


# =============================================================================
# System prompts
# =============================================================================

EXTRACTION_SYSTEM_PROMPT_BASE = """You are an expert research analyst extracting structured knowledge from academic papers. Your task is to identify and organize the key findings, data, and connections within the paper.

Key principles:
1. GROUND EVERYTHING IN QUOTES - Every finding must have at least one direct quote with page reference
2. BE SPECIFIC - Use precise language from the paper, not vague summaries
3. DISTINGUISH FINDING TYPES - Central findings are rare (usually 1-2), most are supporting
4. IDENTIFY CONNECTIONS - Note how findings relate to each other within the paper
5. EXTRACT DATA TABLES - When tables are described, structure the data

Finding Types:
- central-finding: The main result or contribution (rare, 1-2 per paper)
- supporting-finding: Results that support or elaborate the central finding
- methodological: Key methodological insights or innovations
- limitation: Acknowledged limitations or caveats
- implication: Stated implications or significance
- open-question: Questions raised but not answered
- background: Important context or prior knowledge

For quotes, always include page numbers when visible (e.g., "Quote text" on p. 5).
If page numbers aren't visible, indicate approximate position: early (first 20%), middle (20-80%), late (last 20%)."""

RESEARCH_ARTICLE_SYSTEM_PROMPT = f"""{EXTRACTION_SYSTEM_PROMPT_BASE}

This is a RESEARCH ARTICLE with empirical findings. Focus on:
- Results: What did they actually find? Quantitative data is key
- Methods: What approach makes their results valid?
- Implications: What do the results mean for the field?

Pay special attention to:
- Numerical results, statistics, p-values
- Figures and tables mentioned
- Comparisons to prior work
- Limitations acknowledged by authors"""

REVIEW_PAPER_SYSTEM_PROMPT = f"""{EXTRACTION_SYSTEM_PROMPT_BASE}

This is a REVIEW PAPER synthesizing existing literature. Focus on:
- Synthesis themes: How do they group or organize the literature?
- Consensus points: What do papers agree on?
- Disagreements: Where do papers conflict?
- Gaps: What's missing from the literature?
- Future directions: What research is needed?

Pay special attention to:
- How the review organizes different papers
- Claims about the state of the field
- Explicit identification of research gaps
- Chronological or thematic trends"""

METHODS_PAPER_SYSTEM_PROMPT = f"""{EXTRACTION_SYSTEM_PROMPT_BASE}

This is a METHODS PAPER describing techniques or protocols. Focus on:
- Key protocol steps: What are the critical procedural elements?
- Parameters: What conditions, concentrations, times matter?
- Validation: How did they show the method works?
- Limitations: When does the method NOT work?

Pay special attention to:
- Specific numerical parameters
- Comparison to existing methods
- Troubleshooting advice
- Application scope"""

SHORT_COMMUNICATION_SYSTEM_PROMPT = f"""{EXTRACTION_SYSTEM_PROMPT_BASE}

This is a SHORT COMMUNICATION with a brief, focused contribution. Focus on:
- The single key finding or observation
- The evidence supporting it
- Immediate implications

Keep extraction concise - expect only 1-3 findings."""

SYSTEM_PROMPTS = {
    "research-article": RESEARCH_ARTICLE_SYSTEM_PROMPT,
    "meta-analysis": RESEARCH_ARTICLE_SYSTEM_PROMPT,
    "case-study": RESEARCH_ARTICLE_SYSTEM_PROMPT,
    "theoretical": RESEARCH_ARTICLE_SYSTEM_PROMPT,
    "review": REVIEW_PAPER_SYSTEM_PROMPT,
    "methods": METHODS_PAPER_SYSTEM_PROMPT,
    "short-communication": SHORT_COMMUNICATION_SYSTEM_PROMPT,
}


def get_extraction_system_prompt(paper_type: str) -> str:
    """System prompt for a paper type; unknown types get the research prompt."""
    return SYSTEM_PROMPTS.get(paper_type, RESEARCH_ARTICLE_SYSTEM_PROMPT)


# =============================================================================
# Guidelines and output contract
# =============================================================================

STANDARD_GUIDELINES = """EXTRACTION GUIDELINES:
1. Start with the central finding (the main contribution) - there's usually only 1-2
2. Add supporting findings that provide evidence or context
3. Include methodological findings if the method is novel
4. Capture limitations and open questions
5. For each finding, include at least one direct quote with page reference
6. Connect findings that relate to each other
7. Extract any data tables described in the text"""

REVIEW_GUIDELINES = """REVIEW PAPER EXTRACTION GUIDELINES:
1. Identify how the review organizes the literature (synthesis themes)
2. For each theme, note which papers are grouped together
3. Capture points of consensus and disagreement
4. Explicitly identify research gaps mentioned
5. Note future directions recommended
6. Track chronological trends if the review covers history
7. Quote specific claims about the state of the field"""

_CONTRACT_BODY = """Return JSON:
{
  "findings": [
    {
      "title": "Short label (3-10 words)",
      "description": "Full description (1-3 sentences)",
      "findingType": "central-finding" | "supporting-finding" | "methodological" | "limitation" | "implication" | "open-question" | "background",
      "pageNumbers": [5, 6],
      "sectionName": "Results",
      "directQuotes": [
        {
          "text": "Exact quote from paper...",
          "pageNumber": 5,
          "approximatePosition": "early" | "middle" | "late"
        }
      ],
      "confidence": 0.0-1.0
    }
  ],

  "dataTables": [
    {
      "name": "Table I: Binding Affinities",
      "description": "What the table shows",
      "pageReference": "p. 5",
      "columns": [
        { "name": "Column Name", "unit": "uM" }
      ],
      "rows": [
        { "label": "Row Label", "values": { "Column Name": "value" } }
      ],
      "linkedFindingIndices": [0, 1],
      "confidence": 0.0-1.0
    }
  ],

  "intraPaperConnections": [
    {
      "fromFindingIndex": 0,
      "toFindingIndex": 1,
      "connectionType": "supports" | "contradicts" | "extends" | "requires" | "explains" | "qualifies",
      "explanation": "How these findings relate...",
      "isExplicit": true/false
    }
  ],

  "experimentalSystem": "HeLa cells" | "E. coli" | "mice" | null,
  "keyContributions": ["1-3 main contributions"],
  "limitations": ["Acknowledged limitations"],
  "openQuestions": ["Questions raised but not answered"],

  "potentialConnections": [
    {
      "findingIndex": 0,
      "suggestedConnectionType": "supports" | "contradicts" | "extends" | "uses-method" | "same-topic",
      "targetDescription": "Papers studying X...",
      "keywords": ["keyword1", "keyword2"],
      "reasoning": "Why this connection might exist..."
    }
  ]"""

_REVIEW_CONTRACT_BLOCK = """,

  "reviewSpecific": {
    "synthesisThemes": [
      {
        "theme": "Theme description",
        "papersCited": ["Author et al., 2020", "Author & Author, 2019"],
        "consensus": "What papers agree on...",
        "disagreement": "Where papers conflict..."
      }
    ],
    "identifiedGaps": [
      {
        "gap": "Description of gap",
        "gapType": "knowledge" | "methodological" | "population" | "theoretical" | "temporal" | "geographic" | "contradictory",
        "pageReference": "p. 10",
        "explicitOrInferred": "explicit" | "inferred"
      }
    ],
    "futureDirections": ["Future research direction 1", "..."],
    "chronologicalTrends": [
      { "period": "2010-2015", "characterization": "What characterized this period..." }
    ]
  }"""


def extraction_output_contract(is_review: bool) -> str:
    """JSON contract for Stage 2; the reviewSpecific block is for reviews only."""
    review_block = _REVIEW_CONTRACT_BLOCK if is_review else ""
    return f"{_CONTRACT_BODY}{review_block}\n}}"


def max_text_length(depth: str) -> int:
    return DEPTH_TEXT_BUDGETS.get(depth, DEPTH_TEXT_BUDGETS["standard"])


# =============================================================================
# Prompt builder
# =============================================================================

def build_extraction_prompt(context: DocumentContext, classification: Classification) -> str:
    """
    Build the Stage 2 user prompt.

    The document text is cut to the budget of the suggested extraction
    depth, and review documents get review-specific guidelines plus the
    ``reviewSpecific`` block in the output contract.

    Args:
        context: Document being extracted
        classification: Stage 1 result (or one supplied by the caller)

    Returns:
        Prompt text ending with the JSON output contract
    """
    hints = classification.extraction_hints
    paper_type = classification.paper_type
    is_review = paper_type == "review"

    full_text = context.text[:max_text_length(hints.suggested_depth)]

    priority_note = ""
    if hints.priority_sections:
        priority_note = f"\nPRIORITY SECTIONS: Focus especially on: {', '.join(hints.priority_sections)}"

    guidelines = REVIEW_GUIDELINES if is_review else STANDARD_GUIDELINES

    return f"""PAPER TO EXTRACT:
Title: {context.title}
Authors: {context.authors}
Year: {context.year or 'Unknown'}
Journal: {context.venue or 'Unknown'}
Paper Type: {paper_type}

ABSTRACT:
{context.abstract or 'No abstract available'}
{priority_note}

FULL TEXT:
{full_text}

---

Extract structured knowledge from this paper.

{guidelines}

{extraction_output_contract(is_review)}"""
