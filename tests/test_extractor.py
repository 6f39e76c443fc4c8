"""Test the three-stage extraction pipeline with the mock provider.

Run with: pytest tests/test_extractor.py -v
"""

import asyncio

import pytest

from papergraph.config import ExtractorConfig
from papergraph.core.cancellation import CancellationToken
from papergraph.core.extractor import ExtractionOptions, PaperGraphExtractor, create_extractor
from papergraph.core.types import (
    Classification,
    ExistingPaperInput,
    ExtractionGraph,
    ExtractionHints,
    PaperInput,
    ThesisInput,
)
from papergraph.exceptions import GraphFinalizedError
from papergraph.prompts import get_extraction_system_prompt
from papergraph.providers.mock import MockProvider


THESIS = ThesisInput(id="thesis-1", title="Sleep consolidates declarative memory")

EXISTING = [
    ExistingPaperInput(id="doc-1", title="Earlier sleep study", takeaway="Sleep helps", thesis_role="supports"),
]


def make_paper(paper_id="paper-1"):
    return PaperInput(
        id=paper_id,
        title="Overnight sleep and word-pair recall",
        authors=["A. Author", "B. Author"],
        year=2022,
        abstract="Participants recalled more word pairs after sleep.",
        text="Introduction. Methods. Results: recall improved after sleep. Discussion.",
    )


def make_extractor(**provider_kwargs):
    provider = MockProvider(**provider_kwargs)
    return PaperGraphExtractor(ExtractorConfig(), provider=provider), provider


def run(coro):
    return asyncio.run(coro)


# =============================================================================
# Happy path
# =============================================================================

def test_extract_without_thesis():
    extractor, provider = make_extractor()
    result = run(extractor.extract(make_paper()))

    assert result.success
    assert result.error is None
    graph = result.graph
    assert graph.extraction_status == "completed"
    assert graph.paper_type == "research-article"
    assert len(graph.findings) == 2
    assert len(graph.intra_document_connections) == 1
    assert graph.thesis_relevance is None

    assert result.tokens_used.stage1.total > 0
    assert result.tokens_used.stage2.total > 0
    assert result.tokens_used.stage3.total == 0
    assert graph.tokens_used == result.tokens_used
    assert provider.calls_for("thesis") == []


def test_stage_parameters_come_from_config():
    extractor, provider = make_extractor()
    run(extractor.extract(make_paper()))

    classification_call = provider.calls_for("classification")[0]
    extraction_call = provider.calls_for("extraction")[0]
    assert (classification_call.max_output_tokens, classification_call.temperature) == (1024, 0.2)
    assert (extraction_call.max_output_tokens, extraction_call.temperature) == (4096, 0.3)


def test_extract_with_thesis():
    extractor, provider = make_extractor()
    result = run(extractor.extract(make_paper(), THESIS, EXISTING))

    assert result.success
    graph = result.graph
    assert graph.thesis_relevance.overall_score == 3
    assert graph.thesis_relevance.suggested_role == "background"
    assert graph.findings[0].thesis_relevance.score == 3
    assert graph.findings[1].thesis_relevance is None
    assert result.tokens_used.stage3.total > 0

    prompt = provider.calls_for("thesis")[0].prompt
    assert "ID: doc-1" in prompt
    assert "Finding 1: [supporting-finding] Supporting evidence" in prompt


def test_skip_thesis_integration():
    extractor, provider = make_extractor()
    result = run(extractor.extract(
        make_paper(), THESIS, EXISTING, ExtractionOptions(skip_thesis_integration=True)
    ))

    assert result.success
    assert result.graph.thesis_relevance is None
    assert provider.calls_for("thesis") == []


def test_provided_classification_is_used_exactly():
    provided = Classification(
        paper_type="methods",
        confidence=0.95,
        extraction_hints=ExtractionHints(suggested_depth="deep", expected_finding_count=3),
    )
    extractor, provider = make_extractor()
    result = run(extractor.extract(
        make_paper(),
        options=ExtractionOptions(skip_classification=True, provided_classification=provided),
    ))

    assert result.success
    assert provider.calls_for("classification") == []
    assert result.graph.classification == provided
    assert result.graph.paper_type == "methods"
    assert result.graph.extraction_depth == "deep"
    assert result.tokens_used.stage1.total == 0
    assert provider.calls_for("extraction")[0].system_instruction == get_extraction_system_prompt("methods")


def test_skip_classification_without_a_classification_still_classifies():
    extractor, provider = make_extractor()
    result = run(extractor.extract(make_paper(), options=ExtractionOptions(skip_classification=True)))

    assert result.success
    assert len(provider.calls_for("classification")) == 1


def test_review_documents_get_the_review_extension():
    extractor, provider = make_extractor(responses={"classification": {"paperType": "review"}})
    result = run(extractor.extract(make_paper()))

    assert result.success
    assert result.graph.paper_type == "review"
    assert result.graph.review_extraction is not None
    assert result.graph.review_extraction.synthesis_themes == []
    assert "reviewSpecific" in provider.calls_for("extraction")[0].prompt


def test_review_gaps_are_capped_and_typed():
    gaps = [{"gap": f"Gap {i}", "gapType": "population"} for i in range(11)]
    gaps[0]["gapType"] = "budgetary"
    extractor, _ = make_extractor(responses={
        "classification": {"paperType": "review"},
        "extraction": {"findings": [{"title": "Theme summary"}], "reviewSpecific": {"identifiedGaps": gaps}},
    })
    result = run(extractor.extract(make_paper()))

    identified = result.graph.review_extraction.identified_gaps
    assert len(identified) == 10
    assert identified[0].gap_type == "knowledge"
    assert all(g.gap_type == "population" for g in identified[1:])


def test_out_of_range_references_from_the_model_are_dropped():
    response = {
        "findings": [{"title": "Only finding"}],
        "intraPaperConnections": [{"fromFindingIndex": 0, "toFindingIndex": 3}],
        "potentialConnections": [{"findingIndex": 2}],
    }
    extractor, _ = make_extractor(responses={"extraction": response})
    result = run(extractor.extract(make_paper()))

    assert result.success
    assert len(result.graph.findings) == 1
    assert result.graph.intra_document_connections == []
    assert result.graph.potential_connections == []


def test_completed_graph_is_read_only():
    extractor, _ = make_extractor()
    graph = run(extractor.extract(make_paper())).graph

    with pytest.raises(GraphFinalizedError):
        graph.findings = []
    with pytest.raises(GraphFinalizedError):
        graph.extraction_status = "pending"


# =============================================================================
# Progress and stage hooks
# =============================================================================

def test_progress_reports_each_stage():
    updates = []
    extractor, _ = make_extractor()
    run(extractor.extract(make_paper(), THESIS, EXISTING, ExtractionOptions(on_progress=updates.append)))

    assert [u.overall_progress for u in updates] == [10, 30, 70, 100]
    assert [u.current_stage for u in updates] == [1, 2, 3, 3]
    assert all(u.paper_id == "paper-1" for u in updates)
    assert updates[-1].can_cancel is False
    assert all(u.can_cancel for u in updates[:-1])


def test_progress_without_classification_or_thesis():
    updates = []
    options = ExtractionOptions(
        skip_classification=True,
        provided_classification=Classification(),
        on_progress=updates.append,
    )
    extractor, _ = make_extractor()
    run(extractor.extract(make_paper(), options=options))

    assert [u.overall_progress for u in updates] == [30, 100]


def test_stage_hooks_receive_stage_outputs():
    seen = []
    extractor, _ = make_extractor()
    result = run(extractor.extract(
        make_paper(), THESIS, EXISTING,
        ExtractionOptions(on_stage_complete=lambda stage, output: seen.append((stage, output))),
    ))

    assert [stage for stage, _ in seen] == [1, 2, 3]
    assert seen[0][1] == result.graph.classification
    assert [f.title for f in seen[1][1].findings] == ["Primary result", "Supporting evidence"]
    assert seen[2][1].overall_relevance.score == 3


def test_async_callbacks_are_awaited():
    stages = []

    async def on_stage_complete(stage, output):
        await asyncio.sleep(0)
        stages.append(stage)

    extractor, _ = make_extractor()
    result = run(extractor.extract(make_paper(), options=ExtractionOptions(on_stage_complete=on_stage_complete)))

    assert result.success
    assert stages == [1, 2]


def test_failing_callback_fails_the_extraction():
    def on_progress(update):
        raise ValueError("display went away")

    extractor, _ = make_extractor()
    result = run(extractor.extract(make_paper(), options=ExtractionOptions(on_progress=on_progress)))

    assert not result.success
    assert result.error == "display went away"


def test_failing_final_progress_leaves_the_graph_failed(monkeypatch):
    graphs = []

    class RecordingGraph(ExtractionGraph):
        @classmethod
        def empty(cls, paper_id):
            graph = super().empty(paper_id)
            graphs.append(graph)
            return graph

    monkeypatch.setattr("papergraph.core.extractor.ExtractionGraph", RecordingGraph)

    def on_progress(update):
        if update.overall_progress == 100:
            raise ValueError("display went away")

    extractor, _ = make_extractor()
    result = run(extractor.extract(make_paper(), options=ExtractionOptions(on_progress=on_progress)))

    assert not result.success
    assert graphs[0].extraction_status == "failed"
    assert graphs[0].extraction_error == "display went away"


# =============================================================================
# Failures
# =============================================================================

def test_provider_failure_is_wrapped_with_the_stage():
    extractor, _ = make_extractor(fail=True)
    result = run(extractor.extract(make_paper()))

    assert not result.success
    assert result.graph is None
    assert result.error == "Stage 1 (Classification) failed: Mock provider configured to fail"
    assert result.tokens_used.total == 0


def test_non_json_completion_fails_stage_two_with_partial_usage():
    extractor, _ = make_extractor(responses={"extraction": "I could not find any findings."})
    result = run(extractor.extract(make_paper()))

    assert not result.success
    assert result.error.startswith("Stage 2 (Extraction) failed: ")
    assert "No JSON found" in result.error
    assert result.tokens_used.stage1.total > 0
    assert result.tokens_used.stage2.total == 0
    assert not result.cancelled


def test_stage_three_failure_keeps_earlier_usage():
    extractor, _ = make_extractor(responses={"thesis": RuntimeError("thesis model offline")})
    result = run(extractor.extract(make_paper(), THESIS, EXISTING))

    assert not result.success
    assert result.error == "Stage 3 (Thesis Integration) failed: thesis model offline"
    assert result.tokens_used.stage1.total > 0
    assert result.tokens_used.stage2.total > 0


def test_unusable_stage_output_does_not_fail_the_extraction():
    extractor, _ = make_extractor(responses={"classification": ["not", "an", "object"]})
    result = run(extractor.extract(make_paper()))

    assert result.success
    assert result.graph.classification.paper_type == "research-article"
    assert result.graph.classification.confidence == 0.5


# =============================================================================
# Cancellation
# =============================================================================

def test_cancel_from_stage_hook():
    token = CancellationToken()

    def on_stage_complete(stage, output):
        if stage == 1:
            token.cancel("user closed the dialog")

    extractor, provider = make_extractor()
    result = run(extractor.extract(
        make_paper(),
        options=ExtractionOptions(cancellation_token=token, on_stage_complete=on_stage_complete),
    ))

    assert not result.success
    assert result.error == "Extraction cancelled"
    assert result.cancelled
    assert result.tokens_used.stage1.total > 0
    assert provider.calls_for("extraction") == []


def test_cancel_during_a_provider_call():
    async def scenario():
        extractor, _ = make_extractor(delay=5.0)
        task = asyncio.create_task(extractor.extract(make_paper()))
        await asyncio.sleep(0.05)
        signalled = extractor.cancel("paper-1")
        return signalled, await task, extractor

    signalled, result, extractor = run(scenario())

    assert signalled == 1
    assert result.cancelled
    assert result.tokens_used.total == 0
    assert extractor._active == {}


def test_cancel_only_affects_the_named_paper():
    async def scenario():
        extractor, _ = make_extractor(delay=0.2)
        tasks = [
            asyncio.create_task(extractor.extract(make_paper("paper-a"))),
            asyncio.create_task(extractor.extract(make_paper("paper-b"))),
        ]
        await asyncio.sleep(0.05)
        signalled = extractor.cancel("paper-a")
        return signalled, await asyncio.gather(*tasks)

    signalled, (a, b) = run(scenario())

    assert signalled == 1
    assert a.cancelled
    assert b.success
    assert b.graph.paper_id == "paper-b"


def test_cancel_all():
    async def scenario():
        extractor, _ = make_extractor(delay=5.0)
        tasks = [asyncio.create_task(extractor.extract(make_paper(f"p{i}"))) for i in range(3)]
        await asyncio.sleep(0.05)
        signalled = extractor.cancel()
        return signalled, await asyncio.gather(*tasks)

    signalled, results = run(scenario())

    assert signalled == 3
    assert all(r.cancelled for r in results)


def test_cancel_with_nothing_running():
    extractor, _ = make_extractor()
    assert extractor.cancel() == 0
    assert extractor.cancel("paper-1") == 0


def test_task_cancellation_propagates():
    async def scenario():
        extractor, _ = make_extractor(delay=5.0)
        task = asyncio.create_task(extractor.extract(make_paper()))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return extractor

    extractor = run(scenario())
    assert extractor._active == {}


# =============================================================================
# Concurrency
# =============================================================================

def test_concurrent_extractions_are_independent():
    async def scenario():
        extractor, _ = make_extractor(delay=0.01)
        papers = [make_paper(f"paper-{i}") for i in range(4)]
        return await asyncio.gather(*(extractor.extract(p, THESIS, EXISTING) for p in papers))

    results = run(scenario())

    assert all(r.success for r in results)
    assert [r.graph.paper_id for r in results] == ["paper-0", "paper-1", "paper-2", "paper-3"]
    finding_ids = {f.id for r in results for f in r.graph.findings}
    assert len(finding_ids) == 8
    assert all(r.graph.findings[0].paper_id == r.graph.paper_id for r in results)


def test_create_extractor_uses_the_named_provider(monkeypatch):
    monkeypatch.delenv("PAPERGRAPH_TIMEOUT", raising=False)
    monkeypatch.delenv("PAPERGRAPH_RETRY_ATTEMPTS", raising=False)

    extractor = create_extractor("mock", model="scripted")

    assert extractor.provider.name == "mock"
    assert extractor.provider.model == "scripted"
    assert run(extractor.extract(make_paper())).success
