"""Exception mapping utilities for strands-agents."""

from juicy.infrastructure.llm.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMModelNotFoundError,
    LLMRateLimitError,
    LLMTimeoutError,
)

_PATTERNS: tuple[tuple[type[LLMError], tuple[str, ...]], ...] = (
    (LLMAuthenticationError, ("authentication", "api key", "unauthorized")),
    (LLMRateLimitError, ("rate limit", "too many requests", "throttl")),
    (LLMTimeoutError, ("timeout", "timed out")),
    (LLMModelNotFoundError, ("model not found", "invalid model", "does not exist")),
)


def map_strands_exception(e: Exception) -> LLMError:
    """Map strands-agents exceptions to LLM exceptions.

    strands wraps provider errors without a stable hierarchy, so the
    message text is matched.

    Args:
        e: Exception from strands-agents

    Returns:
        Corresponding LLM exception (the same instance if already an LLMError)
    """
    if isinstance(e, LLMError):
        return e
    error_message = str(e)
    error_message_lower = error_message.lower()
    for error_type, patterns in _PATTERNS:
        if any(pattern in error_message_lower for pattern in patterns):
            return error_type(error_message)
    return LLMError(error_message)
