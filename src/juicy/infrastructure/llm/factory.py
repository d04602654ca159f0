"""LLM provider factory."""

import logging

from juicy.config.models import LLMConfig
from juicy.domain.services.model_selection import ModelTiers
from juicy.infrastructure.llm.provider import LiteLLMProvider

logger = logging.getLogger(__name__)


def create_provider(
    config: LLMConfig, *, debug_llm_messages: bool = False
) -> LiteLLMProvider:
    """Create the provider for the active backend.

    The backend is resolved once here; callers receive the provider
    instance and never look the configuration up again.

    Args:
        config: LLM configuration.
        debug_llm_messages: If True, log request sizes at INFO level.

    Returns:
        Provider for config.active.
    """
    provider_config = config.active_provider
    logger.info(
        "Using LLM provider %s (fast=%s, strong=%s)",
        config.active,
        provider_config.fast_model,
        provider_config.strong_model,
    )
    return LiteLLMProvider(provider_config, debug_llm_messages=debug_llm_messages)


def model_tiers(config: LLMConfig) -> ModelTiers:
    """Fast and strong model IDs of the active backend."""
    provider_config = config.active_provider
    return ModelTiers(
        fast=provider_config.fast_model, strong=provider_config.strong_model
    )
