"""LiteLLMModel factory for strands-agents."""

from typing import Any

from strands.models.litellm import LiteLLMModel

from juicy.config.models import ProviderConfig


def create_model(
    config: ProviderConfig,
    model_id: str | None = None,
    *,
    max_tokens: int | None = None,
    temperature: float | None = None,
) -> LiteLLMModel:
    """Create LiteLLMModel for the active provider.

    Args:
        config: Active provider configuration.
        model_id: Model ID (defaults to the provider's fast model).
        max_tokens: Max output tokens (defaults to the provider's value).
        temperature: Sampling temperature (defaults to the provider's value).

    Returns:
        LiteLLMModel instance
    """
    params: dict[str, Any] = {
        "max_tokens": max_tokens or config.max_tokens,
        "temperature": temperature if temperature is not None else config.temperature,
    }
    client_args: dict[str, Any] = {}
    if config.api_key:
        client_args["api_key"] = config.api_key
    if config.api_base:
        client_args["api_base"] = config.api_base
    return LiteLLMModel(
        model_id=model_id or config.fast_model,
        params=params,
        client_args=client_args or None,
    )
