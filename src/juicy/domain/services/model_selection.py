"""Model-tier selection heuristics."""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from juicy.domain.entities.content import ChatMessage, Role
from juicy.domain.entities.tool import ToolDefinition

SIMPLE_MAX_CHARS = 80
VERY_SHORT_MAX_CHARS = 20
VERY_LONG_MIN_CHARS = 500

SIMPLE_PATTERNS = (
    re.compile(r"^\s*(hi|hello|hey|gm|yo|sup)\b", re.IGNORECASE),
    re.compile(r"^\s*(thanks|thank you|thx|ty|cheers)\b", re.IGNORECASE),
    re.compile(r"^\s*(ok|okay|sure|yes|yep|no|nope|cool|great|nice)\W*$", re.IGNORECASE),
    re.compile(r"^\s*what is (a |an |the )?\w+\??\s*$", re.IGNORECASE),
)

COMPLEX_PATTERNS = (
    re.compile(r"\b(design|architect|plan|strategy|tokenomics)\b", re.IGNORECASE),
    re.compile(r"\b(compare|trade-?offs?|pros and cons)\b", re.IGNORECASE),
    re.compile(r"\b(debug|why does|why doesn't|explain how)\b", re.IGNORECASE),
    re.compile(r"\b(configure|launch|deploy|ruleset|split|payout)\b", re.IGNORECASE),
    re.compile(r"\b(solidity|contract|hook|implement)\b", re.IGNORECASE),
    re.compile(r"\b(step by step|in detail|walk me through)\b", re.IGNORECASE),
)


class ModelTier(Enum):
    """モデルの性能帯"""

    FAST = "fast"
    STRONG = "strong"


@dataclass(frozen=True)
class ModelTiers:
    """性能帯ごとのモデル ID"""

    fast: str
    strong: str

    def model_for(self, tier: ModelTier) -> str:
        return self.fast if tier == ModelTier.FAST else self.strong


@dataclass(frozen=True)
class ModelChoice:
    """選択結果"""

    model: str
    tier: ModelTier | None
    reason: str


def _latest_user_text(messages: Sequence[ChatMessage]) -> str:
    for message in reversed(messages):
        if message.role == Role.USER:
            return message.text().strip()
    return ""


def select_tier(
    messages: Sequence[ChatMessage],
    tools: Sequence[ToolDefinition] | None = None,
) -> tuple[ModelTier, str]:
    """Pick a tier from the latest user message. Ambiguity favours STRONG."""
    text = _latest_user_text(messages)
    has_tools = bool(tools)

    if (
        any(p.search(text) for p in SIMPLE_PATTERNS)
        and len(text) <= SIMPLE_MAX_CHARS
        and not has_tools
    ):
        return ModelTier.FAST, "simple message"
    if any(p.search(text) for p in COMPLEX_PATTERNS):
        return ModelTier.STRONG, "complex message"
    if has_tools:
        return ModelTier.STRONG, "tools attached"
    if len(text) < VERY_SHORT_MAX_CHARS:
        return ModelTier.FAST, "short message"
    if len(text) > VERY_LONG_MIN_CHARS:
        return ModelTier.STRONG, "long message"
    return ModelTier.STRONG, "default"


def select_model(
    messages: Sequence[ChatMessage],
    tools: Sequence[ToolDefinition] | None,
    tiers: ModelTiers,
    override: str | None = None,
) -> ModelChoice:
    """Select the model for an invocation.

    An explicit override always wins. It may name a tier ("fast" or
    "strong") or be a raw model id.

    Args:
        messages: Conversation messages, oldest first.
        tools: Tool definitions attached to the invocation.
        tiers: Model ids of the active provider.
        override: Explicit tier name or model id.

    Returns:
        The chosen model with the tier and reason.
    """
    if override:
        try:
            tier = ModelTier(override.lower())
        except ValueError:
            return ModelChoice(model=override, tier=None, reason="explicit model")
        return ModelChoice(model=tiers.model_for(tier), tier=tier, reason="explicit tier")

    tier, reason = select_tier(messages, tools)
    return ModelChoice(model=tiers.model_for(tier), tier=tier, reason=reason)
