"""Token usage helpers for strands-agents results."""

import logging

logger = logging.getLogger(__name__)


def output_tokens(result) -> int:
    """Output token count of a strands AgentResult.

    Args:
        result: Strands AgentResult object.

    Returns:
        Accumulated output tokens, or 0 when the result carries no metrics.
    """
    try:
        summary = result.metrics.get_summary()
    except Exception:
        logger.debug("No metrics on strands result", exc_info=True)
        return 0
    usage = summary.get("accumulated_usage", {})
    return int(usage.get("outputTokens", 0) or 0)
