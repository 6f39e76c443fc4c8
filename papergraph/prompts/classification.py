"""
Stage 1 prompt: fast structural classification of a document.
"""

from papergraph.core.constants import CLASSIFICATION_SAMPLE_CHARS, VERY_LONG_PAGES, VERY_SHORT_WORDS
from papergraph.core.types import DocumentContext


CLASSIFICATION_SYSTEM_PROMPT = """You are an expert academic librarian analyzing scientific papers. Your task is to quickly classify a paper to determine the best extraction strategy.

Analyze the paper's type, structure quality, and content richness to provide extraction hints.

Paper Types:
- research-article: Empirical research with IMRaD structure (Introduction, Methods, Results, Discussion)
- review: Synthesis of existing literature, systematic reviews
- methods: Focus on protocols, techniques, or tools
- short-communication: Brief reports, letters, short findings
- meta-analysis: Statistical combination of multiple study results
- case-study: Detailed examination of specific instances
- theoretical: Conceptual frameworks, mathematical models

Structure Quality:
- well-structured: Clear sections (Abstract, Introduction, Methods, Results, Discussion, Conclusion)
- semi-structured: Some sections present but not fully organized
- unstructured: Minimal clear sectioning, continuous text

Data Richness:
- data-heavy: Many tables, figures, quantitative results
- narrative-heavy: Mostly text, qualitative discussion
- balanced: Mix of data and narrative

Be concise and accurate. Focus on enabling effective downstream extraction."""


CLASSIFICATION_OUTPUT_CONTRACT = """Analyze this paper and provide classification for extraction strategy.

Return JSON:
{
  "paperType": "research-article" | "review" | "methods" | "short-communication" | "meta-analysis" | "case-study" | "theoretical",
  "structureQuality": "well-structured" | "semi-structured" | "unstructured",
  "dataRichness": "data-heavy" | "narrative-heavy" | "balanced",
  "confidence": 0.0-1.0,

  "flags": {
    "poorOCR": true/false,       // Text has garbled characters, formatting issues
    "missingSections": true/false,  // Key sections appear missing
    "veryShort": true/false,     // Less than ~%d words
    "veryLong": true/false       // More than ~%d pages
  },

  "extractionHints": {
    "prioritySections": ["Results", "Discussion", ...],  // Sections to focus on
    "expectedFindingCount": 3-10,  // Estimated number of key findings
    "suggestedDepth": "quick" | "standard" | "deep"
  }
}""" % (VERY_SHORT_WORDS, VERY_LONG_PAGES)


def build_classification_prompt(context: DocumentContext) -> str:
    """
    Build the Stage 1 user prompt.

    Only the first CLASSIFICATION_SAMPLE_CHARS characters of the text are
    included; that is enough to judge structure and type.

    Args:
        context: Document being classified

    Returns:
        Prompt text ending with the JSON output contract
    """
    text_sample = context.text[:CLASSIFICATION_SAMPLE_CHARS]

    ocr_note = ""
    if context.possible_ocr_issues:
        ocr_note = "- Text shows signs of OCR artifacts\n"

    return f"""PAPER METADATA:
Title: {context.title}
Authors: {context.authors}
Year: {context.year or 'Unknown'}
Journal: {context.venue or 'Unknown'}

ABSTRACT:
{context.abstract or 'No abstract available'}

DOCUMENT INFO:
- Approximate pages: {context.page_count or 'Unknown'}
- Approximate words: {context.word_count or 'Unknown'}
{ocr_note}
TEXT SAMPLE (first portion):
{text_sample}

---

{CLASSIFICATION_OUTPUT_CONTRACT}"""
