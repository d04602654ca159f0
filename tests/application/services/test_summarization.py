"""Tests for SummarizationEngine."""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from juicy.application.services.background import BackgroundTaskRunner
from juicy.application.services.summarization import (
    SummarizationEngine,
    extract_attachment_data,
)
from juicy.config import SummarizationConfig
from juicy.domain.entities import (
    AnchoredSummary,
    AttachmentInput,
    AttachmentSummary,
    GeneratedSummary,
    StructuredSummary,
)

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

SUMMARY_TEXT = StructuredSummary(
    key_decisions=("Alice chose USDC",),
    pending_items=("MARKER-42: confirm payout split",),
    context_summary="Discussed the funding currency.",
).to_markdown()


@pytest.fixture
def summary_generator() -> Mock:
    """Create mock SummaryGenerator."""
    generator = Mock()
    generator.generate = AsyncMock(
        return_value=GeneratedSummary(text=SUMMARY_TEXT, token_count=120, model="fast")
    )
    return generator


@pytest.fixture
def attachment_analyzer() -> Mock:
    """Create mock AttachmentAnalyzer."""
    analyzer = Mock()
    analyzer.analyze = AsyncMock(
        return_value=GeneratedSummary(
            text="## Overview\nInvoice\n\n## Extracted Data\n- Total: $1,200.00",
            token_count=40,
            model="fast",
        )
    )
    return analyzer


@pytest.fixture
def runner() -> BackgroundTaskRunner:
    return BackgroundTaskRunner()


@pytest.fixture
def engine(
    message_repository,
    summary_repository,
    attachment_summary_repository,
    summary_generator,
    attachment_analyzer,
    runner,
) -> SummarizationEngine:
    """Create SummarizationEngine with threshold 30 and 10 kept raw."""
    return SummarizationEngine(
        message_repository=message_repository,
        summary_repository=summary_repository,
        attachment_summary_repository=attachment_summary_repository,
        summary_generator=summary_generator,
        attachment_analyzer=attachment_analyzer,
        runner=runner,
        config=SummarizationConfig(trigger_threshold=30, keep_recent_count=10),
    )


def create_previous_summary(covers_to: datetime) -> AnchoredSummary:
    return AnchoredSummary(
        chat_id="chat-1",
        summary_text="## Pending Items\n- MARKER-42: confirm payout split",
        covers_from_message_id="old-1",
        covers_to_message_id="old-9",
        covers_from_timestamp=covers_to - timedelta(hours=1),
        covers_to_timestamp=covers_to,
        message_count=9,
        original_token_count=900,
        summary_token_count=20,
        created_at=covers_to,
    )


class MergingGenerator:
    """SummaryGenerator that carries previous items forward.

    Every bullet of the existing summary is kept and each batch message
    becomes a new key decision.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[list, str | None]] = []

    async def generate(self, messages, existing_summary=None) -> GeneratedSummary:
        self.calls.append((list(messages), existing_summary))
        carried = tuple(
            line[2:]
            for line in (existing_summary or "").splitlines()
            if line.startswith("- ")
        )
        decisions = carried + tuple(m.content for m in messages)
        text = StructuredSummary(
            key_decisions=decisions,
            context_summary=f"{len(decisions)} decisions so far.",
        ).to_markdown()
        return GeneratedSummary(text=text, token_count=len(decisions) * 5, model="fake")


class TestShouldSummarize:
    """トリガー判定のテスト"""

    async def test_below_threshold(
        self, engine: SummarizationEngine, message_repository
    ) -> None:
        message_repository.count_after.return_value = 29
        assert await engine.should_summarize("chat-1") is False

    async def test_at_threshold(
        self, engine: SummarizationEngine, message_repository
    ) -> None:
        message_repository.count_after.return_value = 30
        assert await engine.should_summarize("chat-1") is True
        message_repository.count_after.assert_awaited_once_with("chat-1", None)

    async def test_counts_after_pointer_message(
        self, engine: SummarizationEngine, message_repository, summary_repository, make_messages
    ) -> None:
        """ポインターのメッセージより後の件数を数える"""
        pointer = make_messages(10)[9]
        summary_repository.get_last_summarized_message_id.return_value = pointer.id
        message_repository.find_by_id.return_value = pointer
        message_repository.count_after.return_value = 3

        assert await engine.count_unsummarized("chat-1") == 3
        message_repository.count_after.assert_awaited_once_with(
            "chat-1", pointer.created_at
        )

    async def test_falls_back_to_latest_summary(
        self, engine: SummarizationEngine, message_repository, summary_repository
    ) -> None:
        """ポインターがない場合は最新の要約の終了日時を使う"""
        summary_repository.find_latest.return_value = create_previous_summary(NOW)

        await engine.count_unsummarized("chat-1")

        message_repository.count_after.assert_awaited_once_with("chat-1", NOW)


class TestSummarize:
    """summarize のテスト"""

    async def test_summarizes_all_but_kept_messages(
        self,
        engine: SummarizationEngine,
        message_repository,
        summary_repository,
        summary_generator,
        make_messages,
    ) -> None:
        """35件の未要約メッセージのうち最初の25件を要約する"""
        messages = make_messages(35, tokens=10)
        message_repository.count_after.return_value = 35
        message_repository.find_after.return_value = messages

        assert await engine.should_summarize("chat-1") is True
        summary = await engine.summarize("chat-1")

        assert summary is not None
        batch = summary_generator.generate.await_args.args[0]
        assert batch == messages[:25]
        assert summary.covers_from_message_id == "m000"
        assert summary.covers_to_message_id == "m024"
        assert summary.covers_to_timestamp == messages[24].created_at
        assert summary.message_count == 25
        assert summary.original_token_count == 250
        assert summary.summary_token_count == 120
        assert summary.model_used == "fast"
        summary_repository.set_last_summarized_message_id.assert_awaited_once_with(
            "chat-1", "m024"
        )

    async def test_cutoff_from_previous_summary(
        self,
        engine: SummarizationEngine,
        message_repository,
        summary_repository,
        summary_generator,
        make_messages,
    ) -> None:
        """既存の要約の範囲以降を対象にし、要約本文を生成器に渡す"""
        previous = create_previous_summary(NOW)
        summary_repository.find_latest.return_value = previous
        message_repository.find_after.return_value = make_messages(
            12, start=NOW + timedelta(minutes=1)
        )

        await engine.summarize("chat-1")

        assert summary_generator.generate.await_args.args[1] == previous.summary_text
        message_repository.find_after.assert_awaited_once_with("chat-1", NOW)

    async def test_markers_survive_consecutive_merges(
        self,
        message_repository,
        summary_repository,
        attachment_summary_repository,
        attachment_analyzer,
        runner,
        make_messages,
    ) -> None:
        """2回の要約を通して、両方のバッチの項目がすべて最終要約に残る"""
        generator = MergingGenerator()
        engine = SummarizationEngine(
            message_repository=message_repository,
            summary_repository=summary_repository,
            attachment_summary_repository=attachment_summary_repository,
            summary_generator=generator,
            attachment_analyzer=attachment_analyzer,
            runner=runner,
            config=SummarizationConfig(trigger_threshold=10, keep_recent_count=10),
        )
        messages = [
            replace(m, content=f"decided MARKER-{i}")
            for i, m in enumerate(make_messages(25))
        ]
        saved: list[AnchoredSummary] = []

        async def save(summary):
            saved.append(summary)
            return summary

        summary_repository.save.side_effect = save
        summary_repository.find_latest.side_effect = lambda chat_id: (
            saved[-1] if saved else None
        )
        # Pending after each run: 0-14 first, then 5-24 (10 kept raw each time)
        message_repository.find_after.side_effect = [messages[:15], messages[5:]]

        first = await engine.summarize("chat-1")
        second = await engine.summarize("chat-1")

        assert first is not None and second is not None
        assert [len(batch) for batch, _ in generator.calls] == [5, 10]
        assert generator.calls[0][1] is None
        assert generator.calls[1][1] == first.summary_text

        decisions = second.summary_text.split("## Key Decisions")[1].split("## ")[0]
        for i in range(15):
            assert f"- decided MARKER-{i}\n" in decisions
        assert "MARKER-15" not in second.summary_text
        assert second.covers_from_message_id == "m005"
        assert second.covers_to_message_id == "m014"

    async def test_pointer_written_after_summary(
        self, engine: SummarizationEngine, message_repository, summary_repository, make_messages
    ) -> None:
        calls: list[str] = []

        async def save(summary):
            calls.append("save")
            return summary

        async def set_pointer(chat_id, message_id):
            calls.append("pointer")

        summary_repository.save.side_effect = save
        summary_repository.set_last_summarized_message_id.side_effect = set_pointer
        message_repository.find_after.return_value = make_messages(15)

        await engine.summarize("chat-1")

        assert calls == ["save", "pointer"]

    async def test_generator_failure_leaves_pointer(
        self,
        engine: SummarizationEngine,
        message_repository,
        summary_repository,
        summary_generator,
        make_messages,
    ) -> None:
        """生成に失敗した場合は要約もポインターも保存しない"""
        summary_generator.generate.side_effect = RuntimeError("model down")
        message_repository.find_after.return_value = make_messages(15)

        with pytest.raises(RuntimeError):
            await engine.summarize("chat-1")

        summary_repository.save.assert_not_awaited()
        summary_repository.set_last_summarized_message_id.assert_not_awaited()

    async def test_nothing_beyond_kept_messages(
        self, engine: SummarizationEngine, message_repository, summary_generator, make_messages
    ) -> None:
        message_repository.find_after.return_value = make_messages(10)

        assert await engine.summarize("chat-1") is None
        summary_generator.generate.assert_not_awaited()


class TestCheckAndTrigger:
    """check_and_trigger のテスト"""

    async def test_runs_in_background(
        self,
        engine: SummarizationEngine,
        runner: BackgroundTaskRunner,
        message_repository,
        summary_repository,
        make_messages,
    ) -> None:
        message_repository.count_after.return_value = 30
        message_repository.find_after.return_value = make_messages(30)

        assert await engine.check_and_trigger("chat-1") is True
        await runner.wait()

        summary_repository.save.assert_awaited_once()
        assert runner.pending == 0

    async def test_not_triggered(
        self, engine: SummarizationEngine, runner: BackgroundTaskRunner, message_repository
    ) -> None:
        message_repository.count_after.return_value = 5

        assert await engine.check_and_trigger("chat-1") is False
        assert runner.pending == 0

    async def test_background_failure_is_contained(
        self,
        engine: SummarizationEngine,
        runner: BackgroundTaskRunner,
        message_repository,
        summary_generator,
        make_messages,
    ) -> None:
        """バックグラウンドの失敗は呼び出し元に伝播しない"""
        summary_generator.generate.side_effect = RuntimeError("model down")
        message_repository.count_after.return_value = 40
        message_repository.find_after.return_value = make_messages(40)

        assert await engine.check_and_trigger("chat-1") is True
        await runner.wait()

        assert runner.pending == 0

    async def test_one_run_per_chat(
        self,
        engine: SummarizationEngine,
        runner: BackgroundTaskRunner,
        message_repository,
        summary_repository,
        summary_generator,
        make_messages,
    ) -> None:
        """実行中の会話には新しい要約を開始しない"""
        release = asyncio.Event()

        async def slow_generate(messages, existing_summary=None):
            await release.wait()
            return GeneratedSummary(text=SUMMARY_TEXT, token_count=120, model="fast")

        summary_generator.generate.side_effect = slow_generate
        message_repository.count_after.return_value = 40
        message_repository.find_after.return_value = make_messages(40)

        assert await engine.check_and_trigger("chat-1") is True
        assert await engine.check_and_trigger("chat-1") is False
        assert engine.is_running("chat-1") is True
        assert await engine.check_and_trigger("chat-2") is True

        release.set()
        await runner.wait()

        assert summary_generator.generate.await_count == 2
        assert summary_repository.save.await_count == 2
        assert engine.is_running("chat-1") is False
        assert await engine.check_and_trigger("chat-1") is True
        await runner.wait()

    async def test_failed_run_releases_chat(
        self,
        engine: SummarizationEngine,
        runner: BackgroundTaskRunner,
        message_repository,
        summary_generator,
        make_messages,
    ) -> None:
        summary_generator.generate.side_effect = RuntimeError("model down")
        message_repository.count_after.return_value = 40
        message_repository.find_after.return_value = make_messages(40)

        assert await engine.check_and_trigger("chat-1") is True
        await runner.wait()

        assert engine.is_running("chat-1") is False
        assert await engine.check_and_trigger("chat-1") is True
        await runner.wait()


class TestAttachmentSummaries:
    """添付ファイル要約のテスト"""

    @pytest.fixture
    def attachment(self) -> AttachmentInput:
        return AttachmentInput(
            kind="document",
            mime_type="application/pdf",
            data="JVBERi0=",
            filename="invoice.pdf",
        )

    async def test_generates_and_stores(
        self,
        engine: SummarizationEngine,
        attachment_summary_repository,
        attachment: AttachmentInput,
    ) -> None:
        summary = await engine.summarize_attachment("m001", "chat-1", 0, attachment)

        assert summary.message_id == "m001"
        assert summary.attachment_index == 0
        assert summary.token_count == 40
        assert summary.filename == "invoice.pdf"
        assert summary.mime_type == "application/pdf"
        assert summary.extracted_data == {"amounts": ["$1,200.00"]}
        attachment_summary_repository.save.assert_awaited_once()

    async def test_cache_hit(
        self,
        engine: SummarizationEngine,
        attachment_summary_repository,
        attachment_analyzer,
        attachment: AttachmentInput,
    ) -> None:
        """既存の要約があれば再生成しない"""
        cached = AttachmentSummary(
            message_id="m001",
            chat_id="chat-1",
            attachment_index=0,
            summary_text="cached",
            token_count=2,
            created_at=NOW,
        )
        attachment_summary_repository.find.return_value = cached

        summary = await engine.summarize_attachment("m001", "chat-1", 0, attachment)

        assert summary is cached
        attachment_analyzer.analyze.assert_not_awaited()
        attachment_summary_repository.save.assert_not_awaited()

    async def test_queue(
        self,
        engine: SummarizationEngine,
        runner: BackgroundTaskRunner,
        attachment_analyzer,
        attachment: AttachmentInput,
    ) -> None:
        engine.queue_attachment_summary("m001", "chat-1", 0, attachment)
        await runner.wait()

        attachment_analyzer.analyze.assert_awaited_once_with(attachment)


class TestExtractAttachmentData:
    """extract_attachment_data のテスト"""

    def test_extracts_values(self) -> None:
        text = (
            "## Overview\nA contract\n\n"
            "## Extracted Data\n"
            "- Owner: 0x1234567890abcdef1234567890abcdef12345678\n"
            "- Owner again: 0x1234567890abcdef1234567890abcdef12345678\n"
            "- Goal: 50 ETH and $2,000\n"
            "- Reserved: 20%\n"
            "- Deadline: 12/31/2024\n"
            "\n## Notes\n- 99% unrelated"
        )
        data = extract_attachment_data(text)

        assert data["addresses"] == ["0x1234567890abcdef1234567890abcdef12345678"]
        assert data["amounts"] == ["$2,000", "50 ETH", "20%"]
        assert data["dates"] == ["12/31/2024"]

    def test_no_section(self) -> None:
        assert extract_attachment_data("## Overview\n$500") == {}

    def test_section_without_matches(self) -> None:
        assert extract_attachment_data("## Extracted Data\nnothing here") == {}
