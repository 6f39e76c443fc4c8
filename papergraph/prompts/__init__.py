"""
PaperGraph Prompts - Prompt builders for the three extraction stages.
"""

from papergraph.prompts.classification import (
    CLASSIFICATION_SYSTEM_PROMPT,
    build_classification_prompt,
)
from papergraph.prompts.extraction import (
    build_extraction_prompt,
    get_extraction_system_prompt,
)
from papergraph.prompts.thesis import (
    THESIS_INTEGRATION_SYSTEM_PROMPT,
    build_thesis_integration_prompt,
    recommended_action,
    relevance_label,
    role_description,
)

__all__ = [
    "CLASSIFICATION_SYSTEM_PROMPT",
    "build_classification_prompt",
    "get_extraction_system_prompt",
    "build_extraction_prompt",
    "THESIS_INTEGRATION_SYSTEM_PROMPT",
    "build_thesis_integration_prompt",
    "relevance_label",
    "role_description",
    "recommended_action",
]
