"""Tests for ContextMetadata."""

from dataclasses import asdict

from juicy.domain.entities import ContextMetadata


class TestContextMetadata:
    """ContextMetadata のテスト"""

    def test_total_is_sum_of_layers(self) -> None:
        """total_tokens は各レイヤーの合計"""
        metadata = ContextMetadata(
            total_budget=1000,
            entity_state_tokens=10,
            user_context_tokens=20,
            participant_context_tokens=30,
            attachment_summary_tokens=40,
            summary_tokens=50,
            recent_message_tokens=60,
        )
        assert metadata.total_tokens == 210
        assert metadata.budget_exceeded is False

    def test_budget_exceeded(self) -> None:
        """合計が予算を超えたら budget_exceeded"""
        metadata = ContextMetadata(total_budget=100, recent_message_tokens=101)
        assert metadata.budget_exceeded is True

    def test_exactly_at_budget(self) -> None:
        """予算ちょうどは超過ではない"""
        metadata = ContextMetadata(total_budget=100, recent_message_tokens=100)
        assert metadata.budget_exceeded is False

    def test_fields(self) -> None:
        """プレビューに出力される項目はトークン内訳と件数のみ"""
        assert set(asdict(ContextMetadata(total_budget=100))) == {
            "total_budget",
            "entity_state_tokens",
            "user_context_tokens",
            "participant_context_tokens",
            "attachment_summary_tokens",
            "summary_tokens",
            "recent_message_tokens",
            "recent_message_count",
            "summary_count",
            "attachment_count",
            "modular_prompt",
        }
