"""Test prompt construction for the three stages.

Run with: pytest tests/test_prompts.py -v
"""

from papergraph.core.constants import VERY_LONG_PAGES, VERY_SHORT_WORDS
from papergraph.core.types import (
    Classification,
    DocumentContext,
    ExistingPaperInput,
    ExtractionHints,
    ThesisInput,
)
from papergraph.extraction import RawFinding, ThesisIntegrationContext
from papergraph.prompts import (
    build_classification_prompt,
    build_extraction_prompt,
    build_thesis_integration_prompt,
    get_extraction_system_prompt,
    recommended_action,
    relevance_label,
    role_description,
)
from papergraph.prompts.extraction import (
    METHODS_PAPER_SYSTEM_PROMPT,
    RESEARCH_ARTICLE_SYSTEM_PROMPT,
    REVIEW_PAPER_SYSTEM_PROMPT,
    max_text_length,
)
from papergraph.prompts.thesis import RELEVANCE_LABELS


def context(text="Some text.", **overrides):
    data = dict(title="Sleep and memory", authors="A. Author, B. Author", year=2020, text=text)
    data.update(overrides)
    return DocumentContext(**data)


def test_classification_prompt_uses_a_text_sample():
    prompt = build_classification_prompt(context("x" * 8000 + "TAILMARKER"))

    assert "Title: Sleep and memory" in prompt
    assert "Authors: A. Author, B. Author" in prompt
    assert "x" * 8000 in prompt
    assert "TAILMARKER" not in prompt


def test_classification_prompt_placeholders():
    prompt = build_classification_prompt(context(year=None))

    assert "Year: Unknown" in prompt
    assert "Journal: Unknown" in prompt
    assert "No abstract available" in prompt


def test_classification_prompt_mentions_ocr_issues():
    assert "OCR artifacts" in build_classification_prompt(context(possible_ocr_issues=True))
    assert "OCR artifacts" not in build_classification_prompt(context())


def test_classification_contract_states_length_thresholds():
    prompt = build_classification_prompt(context())

    assert f"Less than ~{VERY_SHORT_WORDS} words" in prompt
    assert f"More than ~{VERY_LONG_PAGES} pages" in prompt


def test_extraction_text_budget_follows_depth():
    text = "x" * 15000 + "TAILMARKER"
    quick = Classification(extraction_hints=ExtractionHints(suggested_depth="quick"))
    standard = Classification(extraction_hints=ExtractionHints(suggested_depth="standard"))

    assert "TAILMARKER" not in build_extraction_prompt(context(text), quick)
    assert "TAILMARKER" in build_extraction_prompt(context(text), standard)
    assert max_text_length("deep") == 80000
    assert max_text_length("unknown") == 40000


def test_extraction_prompt_includes_priority_sections():
    classification = Classification(extraction_hints=ExtractionHints(priority_sections=["Results", "Methods"]))
    prompt = build_extraction_prompt(context(), classification)
    assert "Focus especially on: Results, Methods" in prompt


def test_review_contract_only_for_reviews():
    review = build_extraction_prompt(context(), Classification(paper_type="review"))
    research = build_extraction_prompt(context(), Classification(paper_type="research-article"))

    assert "reviewSpecific" in review
    assert "reviewSpecific" not in research
    assert "Paper Type: review" in review


def test_system_prompt_per_paper_type():
    assert get_extraction_system_prompt("review") == REVIEW_PAPER_SYSTEM_PROMPT
    assert get_extraction_system_prompt("methods") == METHODS_PAPER_SYSTEM_PROMPT
    assert get_extraction_system_prompt("meta-analysis") == RESEARCH_ARTICLE_SYSTEM_PROMPT
    assert get_extraction_system_prompt("unknown") == RESEARCH_ARTICLE_SYSTEM_PROMPT


def test_thesis_prompt_lists_at_most_fifteen_documents():
    existing = [
        ExistingPaperInput(id=f"doc-{i:02d}", title=f"Paper {i}", thesis_role="supports" if i % 2 else "method")
        for i in range(20)
    ]
    findings = [RawFinding(title="First"), RawFinding(title="Second", finding_type="limitation")]
    prompt = build_thesis_integration_prompt(ThesisIntegrationContext(
        thesis=ThesisInput(id="t", title="Sleep consolidates memory"),
        existing_papers=existing,
        findings=findings,
    ))

    assert "doc-14" in prompt
    assert "doc-15" not in prompt
    assert "CURRENT COLLECTION (20 papers)" in prompt
    assert "- Supports: 10" in prompt
    assert "- Method: 10" in prompt
    assert "Finding 0: [supporting-finding] First" in prompt
    assert "Finding 1: [limitation] Second" in prompt


def test_thesis_prompt_with_empty_collection():
    prompt = build_thesis_integration_prompt(ThesisIntegrationContext(
        thesis=ThesisInput(id="t", title="A thesis"),
    ))
    assert "No papers in collection yet." in prompt


def test_relevance_labels_are_clamped():
    assert relevance_label(9) == RELEVANCE_LABELS[5]
    assert relevance_label(-3) == RELEVANCE_LABELS[1]


def test_role_description_defaults_to_other():
    assert role_description("unheard-of") == role_description("other")


def test_recommended_action():
    assert recommended_action(4, 0.1) == "include"
    assert recommended_action(3, 0.7) == "include"
    assert recommended_action(3, 0.5) == "consider"
    assert recommended_action(2, 0.9) == "consider"
    assert recommended_action(1, 0.9) == "skip"
