"""Token-budgeted context assembly."""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from juicy.config.models import ContextBudgetConfig
from juicy.domain.entities.content import ChatMessage, Role
from juicy.domain.entities.context import ContextMetadata, OptimizedContext
from juicy.domain.entities.message import StoredMessage
from juicy.domain.entities.summary import AttachmentSummary
from juicy.domain.repositories import (
    AttachmentSummaryRepository,
    EntityStateRepository,
    MessageRepository,
    ParticipantRepository,
    SummaryRepository,
    UserContextRepository,
)
from juicy.domain.services.context_formatter import (
    clip_to_tokens,
    format_entity_state,
    format_participants,
    format_summaries,
    format_user_context,
)
from juicy.domain.services.token_estimator import (
    estimate_content_tokens,
    estimate_tokens,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Layer:
    text: str | None
    tokens: int


def _fixed_layer(text: str | None, ceiling: int) -> _Layer:
    """Clamp a fixed-allocation layer to its ceiling.

    The text is clipped as well so that the recorded cost matches what
    is actually sent.
    """
    if not text:
        return _Layer(text=None, tokens=0)
    clipped = clip_to_tokens(text, ceiling)
    return _Layer(text=clipped, tokens=min(estimate_tokens(clipped), ceiling))


def message_tokens(message: StoredMessage) -> int:
    """Stored token count, or an estimate when none was stored."""
    if message.token_count:
        return message.token_count
    return estimate_content_tokens(message.content)


def select_recent_messages(
    messages: Sequence[StoredMessage], budget: int
) -> tuple[list[StoredMessage], int]:
    """Greedy backward selection of recent messages.

    Walks newest to oldest and stops before the first message that would
    exceed the budget. When nothing has been selected yet and the budget
    is positive, that message is included anyway so the result is never
    empty.

    Args:
        messages: Eligible messages, oldest first.
        budget: Token budget for this layer.

    Returns:
        Selected messages (oldest first, a contiguous suffix) and their tokens.
    """
    selected: list[StoredMessage] = []
    total = 0
    for message in reversed(messages):
        tokens = message_tokens(message)
        if total + tokens > budget and (selected or budget <= 0):
            break
        selected.append(message)
        total += tokens
    selected.reverse()
    return selected, total


def select_attachment_summaries(
    summaries: Sequence[AttachmentSummary], ceiling: int
) -> tuple[list[AttachmentSummary], int]:
    """Greedy selection, most recent first, stopping at the first overflow."""
    selected: list[AttachmentSummary] = []
    total = 0
    for summary in summaries:
        tokens = summary.token_count or estimate_tokens(summary.summary_text)
        if total + tokens > ceiling:
            break
        selected.append(summary)
        total += tokens
    return selected, total


class ContextOrchestrator:
    """Builds a budget-compliant context from the memory layers.

    Layers are allocated strictly in order: entity state, user context,
    participant roster, attachment summaries, latest summary, and finally
    recent messages filling whatever budget remains.
    """

    def __init__(
        self,
        message_repository: MessageRepository,
        entity_state_repository: EntityStateRepository,
        summary_repository: SummaryRepository,
        attachment_summary_repository: AttachmentSummaryRepository,
        participant_repository: ParticipantRepository,
        user_context_repository: UserContextRepository,
        config: ContextBudgetConfig | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            message_repository: Message store.
            entity_state_repository: Entity state store.
            summary_repository: Anchored summary store.
            attachment_summary_repository: Attachment summary store.
            participant_repository: Participant roster lookup.
            user_context_repository: User context lookup.
            config: Budget configuration.
        """
        self._messages = message_repository
        self._entity_states = entity_state_repository
        self._summaries = summary_repository
        self._attachments = attachment_summary_repository
        self._participants = participant_repository
        self._user_contexts = user_context_repository
        self._config = config or ContextBudgetConfig()

    @property
    def config(self) -> ContextBudgetConfig:
        return self._config

    @property
    def attachment_ceiling(self) -> int:
        return math.floor(self._config.attachment_summaries * self._config.safety_margin)

    @property
    def summary_ceiling(self) -> int:
        return math.floor(self._config.summaries * self._config.safety_margin)

    async def build(self, chat_id: str, user_id: str | None = None) -> OptimizedContext:
        """Assemble the context for one invocation.

        Missing layers contribute zero tokens. Exceeding the total budget is
        recorded in the metadata, never raised.

        Args:
            chat_id: Conversation ID.
            user_id: Requesting user ID (enables the user context layer).

        Returns:
            Assembled context with per-layer token counts.
        """
        config = self._config
        remaining = config.total_budget

        # 1. Entity state
        entity_state = await self._entity_states.get(chat_id)
        entity_layer = _fixed_layer(
            format_entity_state(entity_state) if entity_state else None,
            config.entity_state,
        )
        remaining -= entity_layer.tokens

        # 2. User context
        user_layer = _Layer(text=None, tokens=0)
        if user_id:
            user_context = await self._user_contexts.get(user_id)
            if user_context:
                user_layer = _fixed_layer(
                    format_user_context(user_context), config.user_context
                )
        remaining -= user_layer.tokens

        # 3. Participant roster (multi-party conversations only)
        participants = await self._participants.find_active(chat_id)
        participant_layer = _fixed_layer(
            format_participants(participants), config.participant_context
        )
        remaining -= participant_layer.tokens

        # 4. Attachment summaries
        attachments, attachment_tokens = select_attachment_summaries(
            await self._attachments.find_by_chat(chat_id), self.attachment_ceiling
        )
        remaining -= attachment_tokens

        # 5. Latest anchored summary, all or nothing
        latest = await self._summaries.find_latest(chat_id)
        summaries = []
        summary_tokens = 0
        if latest:
            tokens = estimate_tokens(latest.summary_text)
            if tokens <= self.summary_ceiling:
                summaries.append(latest)
                summary_tokens = tokens
            else:
                logger.info(
                    "Latest summary for chat %s dropped: %d tokens > ceiling %d",
                    chat_id,
                    tokens,
                    self.summary_ceiling,
                )
        remaining -= summary_tokens

        # 6. Recent messages fill the remainder
        cutoff: datetime | None = latest.covers_to_timestamp if latest else None
        candidates = await self._messages.find_recent(
            chat_id, limit=config.max_recent_messages, after=cutoff
        )
        recent, recent_tokens = select_recent_messages(candidates, max(0, remaining))

        metadata = ContextMetadata(
            total_budget=config.total_budget,
            entity_state_tokens=entity_layer.tokens,
            user_context_tokens=user_layer.tokens,
            participant_context_tokens=participant_layer.tokens,
            attachment_summary_tokens=attachment_tokens,
            summary_tokens=summary_tokens,
            recent_message_tokens=recent_tokens,
            recent_message_count=len(recent),
            summary_count=len(summaries),
            attachment_count=len(attachments),
        )
        self._log_usage(chat_id, metadata)

        return OptimizedContext(
            chat_id=chat_id,
            metadata=metadata,
            recent_messages=tuple(recent),
            entity_state=entity_state,
            entity_state_text=entity_layer.text,
            summaries=tuple(summaries),
            attachment_summaries=tuple(attachments),
            user_context=user_layer.text,
            participant_context=participant_layer.text,
        )

    def _log_usage(self, chat_id: str, metadata: ContextMetadata) -> None:
        log = logger.warning if metadata.budget_exceeded else logger.info
        log(
            "Context for chat %s: total=%d/%d entity=%d user=%d participants=%d "
            "attachments=%d(%d) summary=%d(%d) recent=%d(%d) exceeded=%s",
            chat_id,
            metadata.total_tokens,
            metadata.total_budget,
            metadata.entity_state_tokens,
            metadata.user_context_tokens,
            metadata.participant_context_tokens,
            metadata.attachment_summary_tokens,
            metadata.attachment_count,
            metadata.summary_tokens,
            metadata.summary_count,
            metadata.recent_message_tokens,
            metadata.recent_message_count,
            metadata.budget_exceeded,
        )


def format_messages_for_provider(
    context: OptimizedContext,
) -> tuple[list[ChatMessage], bool]:
    """Convert the selected recent messages into provider messages.

    When a summary is present and the first message is a plain-text user
    message, the summary block is prepended to it. Structured (multimodal)
    first messages are left untouched.

    Returns:
        The messages and whether the summary was placed into them.
    """
    messages = [m.to_chat_message() for m in context.recent_messages]
    if not context.summaries or not messages:
        return messages, False

    first = messages[0]
    if first.role != Role.USER or not isinstance(first.content, str):
        return messages, False

    summary_block = format_summaries(context.summaries)
    messages[0] = ChatMessage.user(f"{summary_block}\n\n---\n\n{first.content}")
    return messages, True
