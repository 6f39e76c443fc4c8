"""
PaperGraph Extractor - Orchestrates the three-stage extraction pipeline.

Provides:
- PaperGraphExtractor: classification -> deep extraction -> thesis integration
- ExtractionOptions: per-invocation switches, callbacks and cancellation
- create_extractor(): convenience factory from provider/model settings
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from papergraph.config import ExtractorConfig
from papergraph.core.assembler import apply_extraction, apply_thesis_integration
from papergraph.core.cancellation import CancellationToken
from papergraph.core.stages import StageRunner
from papergraph.core.types import (
    Classification,
    DocumentContext,
    ExistingPaperInput,
    ExtractionGraph,
    ExtractionProgress,
    ExtractionResult,
    PaperInput,
    StageTokenUsage,
    ThesisInput,
)
from papergraph.providers.base import BaseProvider


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ExtractionProgress], Any]
StageCallback = Callable[[int, Any], Any]


@dataclass
class ExtractionOptions:
    """
    Per-invocation options for PaperGraphExtractor.extract().

    Attributes:
        skip_classification: Use ``provided_classification`` instead of Stage 1
            (both must be set for Stage 1 to be skipped)
        provided_classification: Classification to use as-is
        skip_thesis_integration: Never run Stage 3
        on_progress: Called with an ExtractionProgress at each transition
        on_stage_complete: Called with (stage, sanitized stage output)
        cancellation_token: Caller-owned token; one is created if omitted
    """
    skip_classification: bool = False
    provided_classification: Optional[Classification] = None
    skip_thesis_integration: bool = False
    on_progress: Optional[ProgressCallback] = None
    on_stage_complete: Optional[StageCallback] = None
    cancellation_token: Optional[CancellationToken] = None


async def _invoke(callback: Optional[Callable], *args) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class PaperGraphExtractor:
    """
    Converts one document into an ExtractionGraph per ``extract()`` call.

    The extractor holds only the provider, the configuration and the
    tokens of in-flight invocations; each call owns its graph, token usage
    and cancellation token, so calls can run concurrently.

    Example:
        extractor = PaperGraphExtractor(ExtractorConfig(provider="openai"))
        result = await extractor.extract(paper, thesis, existing_papers)
        if result.success:
            for finding in result.graph.findings:
                print(finding.title)
    """

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        provider: Optional[BaseProvider] = None,
    ):
        """
        Initialize the extractor.

        Args:
            config: Settings; None loads them from the environment
            provider: Provider instance; None builds one from ``config``

        Raises:
            ConfigError: Unknown provider or missing API key
        """
        self.config = config if config is not None else ExtractorConfig.from_env()
        self.provider = provider if provider is not None else self.config.create_provider()
        self.runner = StageRunner(self.provider, self.config)
        self._active: Dict[str, List[CancellationToken]] = {}

    # -------------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------------

    def cancel(self, paper_id: Optional[str] = None) -> int:
        """
        Cancel in-flight extractions.

        Args:
            paper_id: Only cancel extractions of this document; None cancels all

        Returns:
            Number of invocations signalled
        """
        if paper_id is None:
            tokens = [t for group in self._active.values() for t in group]
        else:
            tokens = list(self._active.get(paper_id, []))

        for token in tokens:
            token.cancel(f"cancel() called for {paper_id or 'all documents'}")
        return len(tokens)

    def _register(self, paper_id: str, token: CancellationToken) -> None:
        self._active.setdefault(paper_id, []).append(token)

    def _unregister(self, paper_id: str, token: CancellationToken) -> None:
        group = self._active.get(paper_id, [])
        if token in group:
            group.remove(token)
        if not group:
            self._active.pop(paper_id, None)

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    async def extract(
        self,
        paper: PaperInput,
        thesis: Optional[ThesisInput] = None,
        existing_papers: Optional[Sequence[ExistingPaperInput]] = None,
        options: Optional[ExtractionOptions] = None,
    ) -> ExtractionResult:
        """
        Run the pipeline for one document.

        Stage 1 is skipped when a classification is provided, Stage 3 runs
        only with a thesis. Errors never escape: they come back as
        ``success=False`` with the message and the token usage so far.
        Task cancellation (asyncio.CancelledError) is re-raised after the
        graph is marked failed.

        Args:
            paper: Document metadata and text
            thesis: Research thesis for Stage 3, or None
            existing_papers: Documents already in the collection
            options: Switches, callbacks and cancellation token

        Returns:
            ExtractionResult
        """
        options = options or ExtractionOptions()
        existing = list(existing_papers or [])
        token = options.cancellation_token or CancellationToken()
        usage = StageTokenUsage()
        graph = ExtractionGraph.empty(paper.id)

        self._register(paper.id, token)
        try:
            graph.extraction_status = "extracting"
            document = DocumentContext.from_paper(paper)

            # Stage 1: Classification
            if options.skip_classification and options.provided_classification is not None:
                classification = options.provided_classification
                logger.info(f"Using provided classification for {paper.id}")
            else:
                await self._progress(options, paper.id, 1, "Classifying paper type...", 10)
                classification = await self.runner.classify(document, token, usage)

            token.raise_if_cancelled()
            graph.classification = classification
            graph.paper_type = classification.paper_type
            graph.extraction_depth = classification.extraction_hints.suggested_depth
            await _invoke(options.on_stage_complete, 1, classification)

            # Stage 2: Deep extraction
            await self._progress(options, paper.id, 2, "Extracting findings...", 30)
            extraction = await self.runner.extract(document, classification, token, usage)

            token.raise_if_cancelled()
            apply_extraction(graph, extraction)
            await _invoke(options.on_stage_complete, 2, extraction)

            # Stage 3: Thesis integration (optional)
            if thesis is not None and not options.skip_thesis_integration:
                await self._progress(options, paper.id, 3, "Integrating with thesis...", 70)
                integration = await self.runner.integrate_thesis(
                    thesis, existing, extraction.findings, token, usage
                )

                token.raise_if_cancelled()
                apply_thesis_integration(graph, integration)
                await _invoke(options.on_stage_complete, 3, integration)

            graph.tokens_used = usage.model_copy(deep=True)
            await self._progress(options, paper.id, 3, "Extraction complete", 100, can_cancel=False)

            graph.finalize("completed")
            logger.info(f"Extraction of {paper.id} completed ({usage.total} tokens)")
            return ExtractionResult(success=True, graph=graph, tokens_used=usage)

        except asyncio.CancelledError:
            self._mark_failed(graph, usage, "Extraction task cancelled")
            raise
        except Exception as e:
            message = str(e)
            logger.error(f"Extraction of {paper.id} failed: {message}")
            self._mark_failed(graph, usage, message)
            return ExtractionResult(success=False, error=message, tokens_used=usage)
        finally:
            self._unregister(paper.id, token)

    def _mark_failed(self, graph: ExtractionGraph, usage: StageTokenUsage, message: str) -> None:
        if graph.is_terminal:
            return
        graph.tokens_used = usage.model_copy(deep=True)
        graph.finalize("failed", message)

    async def _progress(
        self,
        options: ExtractionOptions,
        paper_id: str,
        stage: int,
        description: str,
        percent: int,
        can_cancel: bool = True,
    ) -> None:
        logger.debug(f"{paper_id}: {description} ({percent}%)")
        await _invoke(options.on_progress, ExtractionProgress(
            paper_id=paper_id,
            current_stage=stage,
            stage_description=description,
            overall_progress=percent,
            can_cancel=can_cancel,
        ))


def create_extractor(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    **config_overrides,
) -> PaperGraphExtractor:
    """
    Create a PaperGraphExtractor from the environment plus explicit settings.

    Example:
        extractor = create_extractor("openai", model="gpt-4.1-mini")
    """
    config = ExtractorConfig.from_env(
        provider=provider,
        model=model,
        api_key=api_key,
        base_url=base_url,
        **config_overrides,
    )
    return PaperGraphExtractor(config)
