"""LLM integration."""

from juicy.infrastructure.llm.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMModelNotFoundError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from juicy.infrastructure.llm.factory import create_provider, model_tiers
from juicy.infrastructure.llm.prompt_builder import PromptBuilder
from juicy.infrastructure.llm.provider import LiteLLMProvider

__all__ = [
    "LLMAuthenticationError",
    "LLMError",
    "LLMModelNotFoundError",
    "LLMRateLimitError",
    "LLMTimeoutError",
    "LiteLLMProvider",
    "PromptBuilder",
    "create_provider",
    "model_tiers",
]
