"""Anchored iterative summarization service."""

import logging
import re
from datetime import datetime, timezone
from typing import Any

from juicy.application.services.background import BackgroundTaskRunner
from juicy.application.services.context_orchestrator import message_tokens
from juicy.config.models import SummarizationConfig
from juicy.domain.entities.summary import (
    AnchoredSummary,
    AttachmentInput,
    AttachmentSummary,
    missing_sections,
)
from juicy.domain.repositories import (
    AttachmentSummaryRepository,
    MessageRepository,
    SummaryRepository,
)
from juicy.domain.services.protocols import AttachmentAnalyzer, SummaryGenerator
from juicy.domain.services.token_estimator import estimate_tokens

logger = logging.getLogger(__name__)

_EXTRACTED_SECTION = re.compile(r"## Extracted Data\s*\n([\s\S]*?)(?=\n##|$)")
_ADDRESS = re.compile(r"0x[a-fA-F0-9]{40}")
_AMOUNT_PATTERNS = (
    re.compile(r"\$[\d,]+(?:\.\d{2})?"),
    re.compile(r"[\d.]+\s*(?:ETH|USDC|USD)", re.IGNORECASE),
    re.compile(r"[\d]+%"),
)
_DATE = re.compile(
    r"\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b"
    r"|\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]* \d{1,2},? \d{4}\b",
    re.IGNORECASE,
)


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def extract_attachment_data(summary_text: str) -> dict[str, Any]:
    """Pull structured values out of the "Extracted Data" section.

    Args:
        summary_text: Attachment summary markdown.

    Returns:
        Dict with de-duplicated "addresses", "amounts" and "dates" lists.
        Lists with no matches are omitted; no section yields an empty dict.
    """
    match = _EXTRACTED_SECTION.search(summary_text)
    if not match:
        return {}
    section = match.group(1)

    amounts: list[str] = []
    for pattern in _AMOUNT_PATTERNS:
        amounts.extend(pattern.findall(section))

    data: dict[str, Any] = {}
    for key, values in (
        ("addresses", _ADDRESS.findall(section)),
        ("amounts", amounts),
        ("dates", _DATE.findall(section)),
    ):
        if values:
            data[key] = _unique(values)
    return data


class SummarizationEngine:
    """Compresses conversation history off the request path.

    New messages are merged into the latest anchored summary. The most
    recent messages are always kept raw. The "last summarized" pointer is
    written only after the new summary row, so a failed run leaves the
    backlog to be retried on the next trigger.
    """

    def __init__(
        self,
        message_repository: MessageRepository,
        summary_repository: SummaryRepository,
        attachment_summary_repository: AttachmentSummaryRepository,
        summary_generator: SummaryGenerator,
        attachment_analyzer: AttachmentAnalyzer,
        runner: BackgroundTaskRunner,
        config: SummarizationConfig | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            message_repository: Message store.
            summary_repository: Summary store and pointer.
            attachment_summary_repository: Attachment summary store.
            summary_generator: Conversation summary generator.
            attachment_analyzer: Attachment summary generator.
            runner: Background task runner for fire-and-forget runs.
            config: Summarization configuration.
        """
        self._messages = message_repository
        self._summaries = summary_repository
        self._attachments = attachment_summary_repository
        self._generator = summary_generator
        self._analyzer = attachment_analyzer
        self._runner = runner
        self._config = config or SummarizationConfig()
        self._in_flight: set[str] = set()

    async def _cutoff(self, chat_id: str) -> datetime | None:
        """Timestamp after which messages are not yet summarized."""
        pointer = await self._summaries.get_last_summarized_message_id(chat_id)
        if pointer:
            message = await self._messages.find_by_id(pointer)
            if message:
                return message.created_at
        latest = await self._summaries.find_latest(chat_id)
        return latest.covers_to_timestamp if latest else None

    async def count_unsummarized(self, chat_id: str) -> int:
        """Count messages newer than the last summarized message."""
        return await self._messages.count_after(chat_id, await self._cutoff(chat_id))

    async def should_summarize(self, chat_id: str) -> bool:
        count = await self.count_unsummarized(chat_id)
        return count >= self._config.trigger_threshold

    async def check_and_trigger(self, chat_id: str) -> bool:
        """Start a background summarization run when the backlog is large enough.

        At most one run per chat is in flight; later triggers are skipped
        until it finishes.

        Args:
            chat_id: Conversation ID.

        Returns:
            True if a run was started.
        """
        if not await self.should_summarize(chat_id):
            return False
        if chat_id in self._in_flight:
            logger.debug("Summarization already running for chat %s", chat_id)
            return False
        self._in_flight.add(chat_id)
        logger.info("Triggering summarization for chat %s", chat_id)
        self._runner.spawn(self._run_tracked(chat_id), name=f"summarize:{chat_id}")
        return True

    def is_running(self, chat_id: str) -> bool:
        return chat_id in self._in_flight

    async def _run_tracked(self, chat_id: str) -> AnchoredSummary | None:
        try:
            return await self.summarize(chat_id)
        finally:
            self._in_flight.discard(chat_id)

    async def summarize(self, chat_id: str) -> AnchoredSummary | None:
        """Merge the unsummarized backlog into a new anchored summary.

        Args:
            chat_id: Conversation ID.

        Returns:
            The stored summary, or None when nothing beyond the kept-raw
            messages is pending.
        """
        cutoff = await self._cutoff(chat_id)
        pending = await self._messages.find_after(chat_id, cutoff)
        keep = self._config.keep_recent_count
        batch = pending[: len(pending) - keep] if keep > 0 else pending
        if not batch:
            logger.debug(
                "Nothing to summarize for chat %s (%d pending)", chat_id, len(pending)
            )
            return None

        previous = await self._summaries.find_latest(chat_id)
        generated = await self._generator.generate(
            batch, previous.summary_text if previous else None
        )

        missing = missing_sections(generated.text)
        if missing:
            logger.warning(
                "Summary for chat %s is missing sections: %s",
                chat_id,
                ", ".join(missing),
            )

        first, last = batch[0], batch[-1]
        summary = await self._summaries.save(
            AnchoredSummary(
                chat_id=chat_id,
                summary_text=generated.text,
                covers_from_message_id=first.id,
                covers_to_message_id=last.id,
                covers_from_timestamp=first.created_at,
                covers_to_timestamp=last.created_at,
                message_count=len(batch),
                original_token_count=sum(message_tokens(m) for m in batch),
                summary_token_count=generated.token_count
                or estimate_tokens(generated.text),
                created_at=datetime.now(timezone.utc),
                model_used=generated.model,
            )
        )
        await self._summaries.set_last_summarized_message_id(chat_id, last.id)

        logger.info(
            "Summarized %d messages for chat %s (%d -> %d tokens, ratio %.1f)",
            summary.message_count,
            chat_id,
            summary.original_token_count,
            summary.summary_token_count,
            summary.compression_ratio,
        )
        return summary

    async def summarize_attachment(
        self,
        message_id: str,
        chat_id: str,
        attachment_index: int,
        attachment: AttachmentInput,
    ) -> AttachmentSummary:
        """Summarize one attachment, reusing a stored summary if present.

        Args:
            message_id: Message the attachment belongs to.
            chat_id: Conversation ID.
            attachment_index: Position of the attachment in the message.
            attachment: Attachment content.

        Returns:
            The stored (or previously cached) attachment summary.
        """
        cached = await self._attachments.find(message_id, attachment_index)
        if cached:
            logger.debug(
                "Attachment summary cache hit: %s[%d]", message_id, attachment_index
            )
            return cached

        generated = await self._analyzer.analyze(attachment)
        summary = await self._attachments.save(
            AttachmentSummary(
                message_id=message_id,
                chat_id=chat_id,
                attachment_index=attachment_index,
                summary_text=generated.text,
                token_count=generated.token_count or estimate_tokens(generated.text),
                created_at=datetime.now(timezone.utc),
                filename=attachment.filename,
                mime_type=attachment.mime_type,
                extracted_data=extract_attachment_data(generated.text),
                model_used=generated.model,
            )
        )
        logger.info(
            "Summarized attachment %s[%d] (%s, %d tokens)",
            message_id,
            attachment_index,
            attachment.filename or attachment.mime_type,
            summary.token_count,
        )
        return summary

    def queue_attachment_summary(
        self,
        message_id: str,
        chat_id: str,
        attachment_index: int,
        attachment: AttachmentInput,
    ) -> None:
        """Run summarize_attachment as a background task."""
        self._runner.spawn(
            self.summarize_attachment(message_id, chat_id, attachment_index, attachment),
            name=f"attachment:{message_id}:{attachment_index}",
        )
