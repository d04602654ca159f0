"""Domain services."""

from juicy.domain.services.intent_detection import (
    detect_intents,
    detect_intents_with_context,
)
from juicy.domain.services.model_selection import (
    ModelChoice,
    ModelTier,
    ModelTiers,
    select_model,
)
from juicy.domain.services.protocols import (
    AttachmentAnalyzer,
    LLMProvider,
    SummaryGenerator,
    SystemPromptBuilder,
    ToolExecutor,
)
from juicy.domain.services.token_estimator import (
    TOKEN_SAFETY_MARGIN,
    estimate_content_tokens,
    estimate_tokens,
)

__all__ = [
    "AttachmentAnalyzer",
    "LLMProvider",
    "ModelChoice",
    "ModelTier",
    "ModelTiers",
    "SummaryGenerator",
    "SystemPromptBuilder",
    "TOKEN_SAFETY_MARGIN",
    "ToolExecutor",
    "detect_intents",
    "detect_intents_with_context",
    "estimate_content_tokens",
    "estimate_tokens",
    "select_model",
]
