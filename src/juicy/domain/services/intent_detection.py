"""Intent detection: which knowledge modules does this turn need?

Both entry points are pure functions of their arguments. Each rule can only
turn a module flag on, and every decision appends a reason string so the
selection is observable.
"""

import re
from collections.abc import Sequence

from juicy.domain.entities.content import ChatMessage, Role
from juicy.domain.entities.entity_state import LATE_STAGE_PHASES, DesignPhase, EntityState
from juicy.domain.entities.intents import DetectedIntents
from juicy.domain.entities.participant import ExperienceLevel
from juicy.domain.services.knowledge_modules import (
    INTENT_HINTS,
    match_hints,
    match_sub_modules,
)

RECENT_USER_MESSAGE_COUNT = 5
SHORT_CONVERSATION_MAX_MESSAGES = 4

CONFIG_QUESTION_PATTERN = re.compile(r"ruleset|split|payout|terminal|chain", re.IGNORECASE)
ADVANCED_TECHNICAL_TERMS = ("contract", "solidity", "implement")

GENERIC_SUB_MODULES = ("chains", "v51_addresses")
DESIGN_PHASE_SUB_MODULES = ("v51_addresses", "terminals", "deployment")
DESIGN_PHASE_DEFAULTS = frozenset({DesignPhase.CONFIGURATION, DesignPhase.READY})


def recent_user_text(messages: Sequence[ChatMessage]) -> str:
    """Lower-cased text of the last few user messages, joined by spaces.

    Only text blocks are considered; tool results and attachments are ignored.
    """
    user_messages = [m for m in messages if m.role == Role.USER]
    return " ".join(
        m.text().lower() for m in user_messages[-RECENT_USER_MESSAGE_COUNT:]
    )


def detect_intents(messages: Sequence[ChatMessage]) -> DetectedIntents:
    """Keyword-only intent detection (no entity state available).

    Args:
        messages: Conversation messages, oldest first.

    Returns:
        Detected intents with reasons.
    """
    text = recent_user_text(messages)
    reasons: list[str] = []

    needs_data_query = match_hints(text, INTENT_HINTS["data_query"])
    needs_hook_developer = match_hints(text, INTENT_HINTS["hook_developer"])
    needs_transaction = match_hints(text, INTENT_HINTS["transaction"])

    if needs_data_query:
        reasons.append("keywords: data query")
    if needs_hook_developer:
        reasons.append("keywords: hook developer")
    if needs_transaction:
        reasons.append("keywords: transaction")

    if (
        not (needs_data_query or needs_hook_developer or needs_transaction)
        and len(messages) <= SHORT_CONVERSATION_MAX_MESSAGES
    ):
        needs_data_query = True
        reasons.append("new conversation default (exploration)")

    sub_modules: tuple[str, ...] | None = None
    if needs_transaction:
        matched = match_sub_modules(text)
        if matched:
            sub_modules = tuple(matched)
            reasons.append(f"sub-modules: {', '.join(matched)}")
        else:
            sub_modules = GENERIC_SUB_MODULES
            reasons.append("default transaction sub-modules")

    return DetectedIntents(
        needs_data_query=needs_data_query,
        needs_hook_developer=needs_hook_developer,
        needs_transaction=needs_transaction,
        transaction_sub_modules=sub_modules,
        reasons=tuple(reasons),
    )


def detect_intents_with_context(
    messages: Sequence[ChatMessage],
    entity_state: EntityState | None = None,
    experience_level: ExperienceLevel | None = None,
) -> DetectedIntents:
    """Context-aware intent detection.

    Rules are applied in priority order:

    1. keyword hints per module
    2. late design phase forces the transaction module
    3. defined tiers force the transaction module
    4. configuration-related pending questions force the transaction module
    5. advanced users using implementation terms get the hook developer module
    6. short conversations with nothing selected default to data query
    7. transaction sub-modules by keyword, else a phase-dependent default

    Args:
        messages: Conversation messages, oldest first.
        entity_state: Entity state of the conversation, if any.
        experience_level: Experience level of the requesting user, if known.

    Returns:
        Detected intents with reasons in rule order.
    """
    text = recent_user_text(messages)
    reasons: list[str] = []

    needs_data_query = match_hints(text, INTENT_HINTS["data_query"])
    needs_hook_developer = match_hints(text, INTENT_HINTS["hook_developer"])
    needs_transaction = match_hints(text, INTENT_HINTS["transaction"])

    if needs_data_query:
        reasons.append("keywords: data query")
    if needs_hook_developer:
        reasons.append("keywords: hook developer")
    if needs_transaction:
        reasons.append("keywords: transaction")

    if entity_state is not None:
        if entity_state.design_phase in LATE_STAGE_PHASES and not needs_transaction:
            needs_transaction = True
            reasons.append(f"design phase: {entity_state.design_phase.value}")

        if entity_state.tiers and not needs_transaction:
            needs_transaction = True
            reasons.append("has NFT tiers defined")

        has_config_question = any(
            CONFIG_QUESTION_PATTERN.search(question)
            for question in entity_state.pending_questions
        )
        if has_config_question and not needs_transaction:
            needs_transaction = True
            reasons.append("pending config questions")

    if experience_level == ExperienceLevel.ADVANCED and not needs_hook_developer:
        if any(term in text for term in ADVANCED_TECHNICAL_TERMS):
            needs_hook_developer = True
            reasons.append("advanced user + technical keywords")

    if (
        not (needs_data_query or needs_hook_developer or needs_transaction)
        and len(messages) <= SHORT_CONVERSATION_MAX_MESSAGES
    ):
        needs_data_query = True
        reasons.append("new conversation default (exploration)")

    sub_modules: tuple[str, ...] | None = None
    if needs_transaction:
        matched = match_sub_modules(text)
        if matched:
            sub_modules = tuple(matched)
            reasons.append(f"sub-modules: {', '.join(matched)}")
        elif (
            entity_state is not None
            and entity_state.design_phase in DESIGN_PHASE_DEFAULTS
        ):
            sub_modules = DESIGN_PHASE_SUB_MODULES
            reasons.append("default transaction sub-modules (design phase)")
        else:
            sub_modules = GENERIC_SUB_MODULES
            reasons.append("default transaction sub-modules (generic)")

    return DetectedIntents(
        needs_data_query=needs_data_query,
        needs_hook_developer=needs_hook_developer,
        needs_transaction=needs_transaction,
        transaction_sub_modules=sub_modules,
        reasons=tuple(reasons),
    )
