"""
Stage 3 prompt: relating an extracted document to the user's thesis and
the rest of the collection, plus small display helpers for the result.
"""

from collections import Counter
from typing import NamedTuple

from papergraph.core.constants import MAX_EXISTING_PAPERS, THESIS_ROLES
from papergraph.extraction.schemas import ThesisIntegrationContext


THESIS_INTEGRATION_SYSTEM_PROMPT = """You are an expert research advisor helping a scholar connect a newly analyzed paper to their research thesis.

Your task is to:
1. Assess how relevant this paper is to the specific thesis
2. Determine what role the paper plays (supports, contradicts, method, background, other)
3. Frame a takeaway specific to this thesis
4. Score individual findings for thesis relevance
5. Suggest connections to existing papers in the collection

Key principles:
- Be THESIS-SPECIFIC, not generic. A paper on "protein folding" might be highly relevant to one thesis and irrelevant to another
- Ground assessments in the actual findings extracted from the paper
- Consider the existing collection - what role is missing? What connections are possible?
- Provide specific reasoning for all scores and suggestions

Thesis roles:
- supports: Provides evidence, data, or arguments that STRENGTHEN the thesis
- contradicts: Challenges, complicates, or presents counter-evidence to the thesis
- method: Provides methodology, tools, or frameworks to USE in the research
- background: Provides context, definitions, or foundational knowledge
- other: Related but doesn't fit the above categories

Relevance scores (1-5):
1. Not relevant - No meaningful connection to thesis
2. Tangentially relevant - Weak or indirect connection
3. Moderately relevant - Useful context or secondary evidence
4. Highly relevant - Direct evidence or important methodology
5. Essential - Core paper for the thesis, must include"""


THESIS_OUTPUT_CONTRACT = """Analyze how this paper fits the thesis and collection.

Return JSON:
{
  "overallRelevance": {
    "score": 1-5,
    "reasoning": "Why this overall score, specific to the thesis..."
  },

  "suggestedRole": {
    "role": "supports" | "contradicts" | "method" | "background" | "other",
    "confidence": 0.0-1.0,
    "reasoning": "Why this role fits best..."
  },

  "thesisFramedTakeaway": "One sentence (10-500 chars) capturing the key insight for THIS thesis...",
  "alternativeTakeaways": ["Alternative framing 1...", "Alternative framing 2..."],

  "findingRelevance": [
    {
      "findingIndex": 0,
      "relevanceScore": 1-5,
      "thesisDimension": "Which aspect of thesis this relates to",
      "reasoning": "Why this score..."
    }
  ],

  "crossPaperConnections": [
    {
      "existingPaperId": "ID from existing papers above",
      "connectionType": "supports" | "contradicts" | "extends" | "uses-method" | "same-topic",
      "reasoning": "How these papers connect...",
      "confidence": 0.0-1.0
    }
  ],

  "gapsAddressed": ["Gaps in the literature this paper helps address..."],
  "newGapsRevealed": ["New gaps or questions this paper reveals..."]
}"""


def build_thesis_integration_prompt(context: ThesisIntegrationContext) -> str:
    """
    Build the Stage 3 user prompt.

    Role counts cover the whole collection; only the first
    MAX_EXISTING_PAPERS documents are listed individually. Findings are
    numbered from 0 so the model can refer back to them by index.
    """
    existing = context.existing_papers

    if existing:
        existing_formatted = "\n".join(
            f"{i + 1}. [{p.thesis_role}] \"{p.title}\" ({p.year or 'n.d.'})\n"
            f"      ID: {p.id}\n"
            f"      Takeaway: \"{p.takeaway}\""
            for i, p in enumerate(existing[:MAX_EXISTING_PAPERS])
        )
    else:
        existing_formatted = "No papers in collection yet."

    findings_formatted = "\n\n".join(
        f"Finding {i}: [{f.finding_type}] {f.title}\n"
        f"      {f.description}\n"
        f"      Confidence: {f.confidence}"
        for i, f in enumerate(context.findings)
    )

    role_counts = Counter(p.thesis_role for p in existing)
    role_lines = "\n".join(
        f"- {role.capitalize()}: {role_counts.get(role, 0)}" for role in THESIS_ROLES
    )

    return f"""RESEARCHER'S THESIS:
"{context.thesis.title}"

THESIS DESCRIPTION:
{context.thesis.description}

---

CURRENT COLLECTION ({len(existing)} papers):
{role_lines}

EXISTING PAPERS:
{existing_formatted}

---

EXTRACTED FINDINGS FROM NEW PAPER:
{findings_formatted}

---

{THESIS_OUTPUT_CONTRACT}"""


# =============================================================================
# Display helpers
# =============================================================================

class RelevanceLabel(NamedTuple):
    label: str
    color: str
    description: str


RELEVANCE_LABELS = {
    5: RelevanceLabel("Essential", "green", "Core paper for this thesis"),
    4: RelevanceLabel("Highly Relevant", "bright_green", "Direct evidence or important method"),
    3: RelevanceLabel("Relevant", "yellow", "Useful context or secondary evidence"),
    2: RelevanceLabel("Tangential", "dark_orange", "Weak or indirect connection"),
    1: RelevanceLabel("Not Relevant", "red", "No meaningful connection"),
}

ROLE_DESCRIPTIONS = {
    "supports": "Provides evidence that strengthens your thesis",
    "contradicts": "Presents challenges or counter-evidence to your thesis",
    "method": "Provides methodology or tools you can use",
    "background": "Provides foundational context or definitions",
    "other": "Related to your thesis in other ways",
}


def relevance_label(score: int) -> RelevanceLabel:
    """Label, color and description for a 1-5 relevance score."""
    return RELEVANCE_LABELS[max(1, min(5, score))]


def role_description(role: str) -> str:
    return ROLE_DESCRIPTIONS.get(role, ROLE_DESCRIPTIONS["other"])


def recommended_action(relevance_score: int, confidence: float) -> str:
    """
    Suggest what to do with a document given its thesis relevance.

    Returns:
        "include", "consider" or "skip"
    """
    if relevance_score >= 4:
        return "include"
    if relevance_score == 3 and confidence >= 0.7:
        return "include"
    if relevance_score >= 2:
        return "consider"
    return "skip"
