"""
PaperGraph Mock Provider - Deterministic responses for tests and offline runs.

Responses are chosen per stage, recognized from the system prompt. Each
scripted response may be:
- a dict or list (serialized to JSON text)
- a str (returned verbatim, so malformed output can be simulated)
- an Exception instance (raised from the call)
- a callable taking the prompt and returning any of the above

Example:
    provider = MockProvider(responses={
        "classification": {"paperType": "review"},
        "extraction": "not json at all",
    })
"""

import asyncio
import json
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from papergraph.exceptions import ProviderError
from papergraph.prompts.classification import CLASSIFICATION_SYSTEM_PROMPT
from papergraph.prompts.thesis import THESIS_INTEGRATION_SYSTEM_PROMPT
from papergraph.providers.base import BaseProvider, Generation


DEFAULT_RESPONSES: Dict[str, Any] = {
    "classification": {
        "paperType": "research-article",
        "structureQuality": "well-structured",
        "dataRichness": "balanced",
        "confidence": 0.8,
        "flags": {
            "poorOCR": False,
            "missingSections": False,
            "veryShort": False,
            "veryLong": False,
        },
        "extractionHints": {
            "prioritySections": ["Abstract", "Results", "Discussion"],
            "expectedFindingCount": 2,
            "suggestedDepth": "standard",
        },
    },
    "extraction": {
        "findings": [
            {
                "title": "Primary result",
                "description": "The main result reported by the document.",
                "findingType": "central-finding",
                "pageNumbers": [1],
                "sectionName": "Results",
                "directQuotes": [
                    {"text": "We report the main result.", "pageNumber": 1, "approximatePosition": "early"}
                ],
                "confidence": 0.9,
            },
            {
                "title": "Supporting evidence",
                "description": "Evidence backing the primary result.",
                "findingType": "supporting-finding",
                "pageNumbers": [2],
                "sectionName": "Results",
                "directQuotes": [],
                "confidence": 0.7,
            },
        ],
        "dataTables": [],
        "intraPaperConnections": [
            {
                "fromFindingIndex": 1,
                "toFindingIndex": 0,
                "connectionType": "supports",
                "explanation": "The evidence supports the primary result.",
                "isExplicit": True,
            }
        ],
        "experimentalSystem": None,
        "keyContributions": ["Reports the primary result"],
        "limitations": [],
        "openQuestions": [],
        "potentialConnections": [],
    },
    "thesis": {
        "overallRelevance": {"score": 3, "reasoning": "Moderately related to the thesis."},
        "suggestedRole": {"role": "background", "confidence": 0.6, "reasoning": "Provides context."},
        "thesisFramedTakeaway": "Provides context for the thesis.",
        "alternativeTakeaways": [],
        "findingRelevance": [
            {"findingIndex": 0, "relevanceScore": 3, "thesisDimension": "Context", "reasoning": "Related."}
        ],
        "crossPaperConnections": [],
        "gapsAddressed": [],
        "newGapsRevealed": [],
    },
}


def stage_for(system_instruction: str) -> str:
    """Which stage a request belongs to, judged by its system prompt."""
    if system_instruction == CLASSIFICATION_SYSTEM_PROMPT:
        return "classification"
    if system_instruction == THESIS_INTEGRATION_SYSTEM_PROMPT:
        return "thesis"
    return "extraction"


def estimate_tokens(text: str) -> int:
    """Roughly four characters per token for English text."""
    return math.ceil(len(text) / 4)


@dataclass
class MockCall:
    """One recorded request."""
    stage: str
    prompt: str
    system_instruction: str
    max_output_tokens: int
    temperature: float


class MockProvider(BaseProvider):
    """
    Scripted provider that never touches the network.

    Every request is recorded in ``calls``; ``calls_for(stage)`` filters
    them by stage.
    """

    DEFAULT_MODEL = "mock-model"

    def __init__(
        self,
        responses: Optional[Dict[str, Any]] = None,
        delay: float = 0.0,
        fail: bool = False,
        api_key: str = None,
        model: str = None,
        timeout: float = 120.0,
        max_attempts: int = 1,
        retry_delay: float = 0.0,
    ):
        """
        Initialize mock provider.

        Args:
            responses: Per-stage responses ("classification", "extraction",
                      "thesis"); missing stages use DEFAULT_RESPONSES
            delay: Seconds to wait before answering
            fail: Raise ProviderError on every call
            api_key: Ignored
        """
        super().__init__(model=model, timeout=timeout, max_attempts=max_attempts, retry_delay=retry_delay)
        self.responses = dict(DEFAULT_RESPONSES)
        self.responses.update(responses or {})
        self.delay = delay
        self.fail = fail
        self.calls: List[MockCall] = []

    @property
    def name(self) -> str:
        return "mock"

    def calls_for(self, stage: str) -> List[MockCall]:
        return [call for call in self.calls if call.stage == stage]

    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        max_output_tokens: int,
        temperature: float,
    ) -> Generation:
        stage = stage_for(system_instruction)
        self.calls.append(MockCall(stage, prompt, system_instruction, max_output_tokens, temperature))

        if self.delay:
            await asyncio.sleep(self.delay)

        if self.fail:
            raise ProviderError("Mock provider configured to fail")

        response = self.responses.get(stage)
        if callable(response):
            response = response(prompt)
        if isinstance(response, Exception):
            raise response

        text = response if isinstance(response, str) else json.dumps(response)
        return Generation(
            text=text,
            input_tokens=estimate_tokens(system_instruction + prompt),
            output_tokens=estimate_tokens(text),
            model=self.model,
        )
