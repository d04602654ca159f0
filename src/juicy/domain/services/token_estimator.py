"""Character-length token estimation."""

import json
import math

from juicy.domain.entities.content import (
    ContentBlock,
    DocumentBlock,
    ImageBlock,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)

CHARS_PER_TOKEN = 4

# 推定誤差を吸収するため、可変枠の予算に掛ける係数
TOKEN_SAFETY_MARGIN = 0.8

# base64 の長さではなく固定値で見積もる
IMAGE_TOKEN_ESTIMATE = 1600
DOCUMENT_TOKEN_ESTIMATE = 3000


def estimate_tokens(text: str | None) -> int:
    """Estimate the token count of a text (~4 characters per token).

    Not exact. Callers must not rely on it for hard limits.

    Args:
        text: Text to estimate. None and "" count as zero.

    Returns:
        Estimated token count (>= 0).
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_block_tokens(block: ContentBlock) -> int:
    """Estimate the token count of a single content block."""
    if isinstance(block, TextBlock):
        return estimate_tokens(block.text)
    if isinstance(block, ImageBlock):
        return IMAGE_TOKEN_ESTIMATE
    if isinstance(block, DocumentBlock):
        return DOCUMENT_TOKEN_ESTIMATE
    if isinstance(block, ToolUseBlock):
        return estimate_tokens(block.name) + estimate_tokens(json.dumps(block.input))
    if isinstance(block, ToolResultBlock):
        return estimate_tokens(block.content)
    raise TypeError(f"Unsupported content block: {type(block).__name__}")


def estimate_content_tokens(content: str | tuple[ContentBlock, ...]) -> int:
    """Estimate the token count of plain or structured message content."""
    if isinstance(content, str):
        return estimate_tokens(content)
    return sum(estimate_block_tokens(block) for block in content)
