"""
PaperGraph Stage Runners - One model call per pipeline stage.

Each runner builds its prompt, calls the provider with the invocation's
cancellation token, records token usage the moment the call returns, and
sanitizes the response. Failures surface as StageError; cancellation is
re-raised untouched so the orchestrator can tell the two apart.
"""

import logging
from typing import Any, Callable, List, Optional, TypeVar

from papergraph.config import ExtractorConfig
from papergraph.core.cancellation import CancellationToken
from papergraph.core.constants import MAX_EXISTING_PAPERS, STAGE_NAMES
from papergraph.core.types import (
    Classification,
    DocumentContext,
    ExistingPaperInput,
    StageTokenUsage,
    ThesisInput,
)
from papergraph.exceptions import ExtractionCancelledError, StageError
from papergraph.extraction import (
    ExtractionResponse,
    RawFinding,
    Sanitizer,
    ThesisIntegrationContext,
    ThesisIntegrationResponse,
    parse_classification_response,
    parse_extraction_response,
    parse_review_extraction_response,
    parse_thesis_integration_response,
)
from papergraph.prompts import (
    CLASSIFICATION_SYSTEM_PROMPT,
    THESIS_INTEGRATION_SYSTEM_PROMPT,
    build_classification_prompt,
    build_extraction_prompt,
    build_thesis_integration_prompt,
    get_extraction_system_prompt,
)
from papergraph.providers.base import BaseProvider


logger = logging.getLogger(__name__)

T = TypeVar("T")


class StageRunner:
    """
    Runs the three stages against one provider.

    The runner itself holds no per-invocation state; the cancellation token
    and the token usage accumulator are passed to every call.

    Example:
        runner = StageRunner(provider, ExtractorConfig())
        usage = StageTokenUsage()
        classification = await runner.classify(document, token, usage)
    """

    def __init__(self, provider: BaseProvider, config: ExtractorConfig):
        self.provider = provider
        self.config = config

    async def _run(
        self,
        stage: int,
        prompt: str,
        system_instruction: str,
        parse: Callable[[Any, Sanitizer], T],
        token: Optional[CancellationToken],
        usage: StageTokenUsage,
    ) -> T:
        stage_name = STAGE_NAMES[stage]
        params = self.config.stage_params(stage)
        logger.info(f"Stage {stage} ({stage_name}) started with {self.provider.name}")

        sanitizer = Sanitizer()
        try:
            completion = await self.provider.complete(
                prompt,
                system_instruction,
                params.max_output_tokens,
                params.temperature,
                token,
            )
            usage.record(stage, completion.tokens_used)
            result = parse(completion.json, sanitizer)
        except ExtractionCancelledError:
            raise
        except Exception as e:
            logger.error(f"Stage {stage} ({stage_name}) failed: {e}")
            raise StageError(stage, stage_name, e) from e

        logger.info(
            f"Stage {stage} ({stage_name}) finished: "
            f"{completion.tokens_used.input} in / {completion.tokens_used.output} out tokens, "
            f"{len(sanitizer.substitutions)} substitutions"
        )
        for substitution in sanitizer.substitutions:
            logger.debug(f"Stage {stage} substitution at {substitution.path}: {substitution.reason}")
        return result

    async def classify(
        self,
        document: DocumentContext,
        token: Optional[CancellationToken],
        usage: StageTokenUsage,
    ) -> Classification:
        """Stage 1: classify the document."""
        return await self._run(
            1,
            build_classification_prompt(document),
            CLASSIFICATION_SYSTEM_PROMPT,
            parse_classification_response,
            token,
            usage,
        )

    async def extract(
        self,
        document: DocumentContext,
        classification: Classification,
        token: Optional[CancellationToken],
        usage: StageTokenUsage,
    ) -> ExtractionResponse:
        """Stage 2: deep extraction, with the review parser for review documents."""
        if classification.paper_type == "review":
            parse = parse_review_extraction_response
        else:
            parse = parse_extraction_response

        return await self._run(
            2,
            build_extraction_prompt(document, classification),
            get_extraction_system_prompt(classification.paper_type),
            parse,
            token,
            usage,
        )

    async def integrate_thesis(
        self,
        thesis: ThesisInput,
        existing_papers: List[ExistingPaperInput],
        findings: List[RawFinding],
        token: Optional[CancellationToken],
        usage: StageTokenUsage,
    ) -> ThesisIntegrationResponse:
        """
        Stage 3: relate the findings to the thesis and the collection.

        Only documents listed in the prompt are valid connection targets.
        """
        shown_ids = [p.id for p in existing_papers[:MAX_EXISTING_PAPERS]]
        context = ThesisIntegrationContext(
            thesis=thesis,
            existing_papers=existing_papers,
            findings=findings,
        )

        return await self._run(
            3,
            build_thesis_integration_prompt(context),
            THESIS_INTEGRATION_SYSTEM_PROMPT,
            lambda data, sanitizer: parse_thesis_integration_response(data, shown_ids, sanitizer),
            token,
            usage,
        )
