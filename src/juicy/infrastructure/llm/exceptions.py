"""LLM-related exceptions."""


class LLMError(Exception):
    """Base exception for LLM-related errors."""


class LLMRateLimitError(LLMError):
    """Upstream rate limit exceeded."""


class LLMAuthenticationError(LLMError):
    """Authentication error (invalid API key, etc.)."""


class LLMTimeoutError(LLMError):
    """Request to the backend timed out."""


class LLMModelNotFoundError(LLMError):
    """Requested model does not exist on the backend."""
