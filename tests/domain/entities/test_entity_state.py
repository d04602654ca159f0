"""Tests for EntityState."""

from juicy.domain.entities.entity_state import (
    Artifact,
    DesignPhase,
    EntityState,
    RulesetConfig,
    Split,
    Tier,
)


class TestRulesetConfig:
    """RulesetConfig のテスト"""

    def test_is_empty(self) -> None:
        """全項目が None なら空"""
        assert RulesetConfig().is_empty()
        assert not RulesetConfig(duration=0).is_empty()


class TestEntityState:
    """EntityState のテスト"""

    def test_defaults(self) -> None:
        """初期状態は discovery フェーズ"""
        state = EntityState(chat_id="c1")
        assert state.design_phase == DesignPhase.DISCOVERY
        assert state.tiers == ()

    def test_dict_conversion(self) -> None:
        """to_dict / from_dict で同じ状態に戻る"""
        state = EntityState(
            chat_id="c1",
            design_phase=DesignPhase.REVIEW,
            project_name="Garden DAO",
            project_type="crowdfund",
            funding_goal="50000",
            funding_currency="USDC",
            target_chains=(1, 8453),
            ruleset=RulesetConfig(reserved_percent=10, duration=604800),
            tiers=(Tier(name="Seed", price="10 USDC", supply=100),),
            payout_splits=(Split(address="0x" + "a" * 40, percent=50),),
            pending_questions=("Which chain?",),
            confirmed_decisions=("Use USDC",),
            artifacts=(Artifact(type="pdf", name="plan.pdf"),),
        )

        data = state.to_dict()

        assert "chat_id" not in data
        assert data["design_phase"] == "review"
        assert data["target_chains"] == [1, 8453]
        assert EntityState.from_dict("c1", data) == state

    def test_from_empty_dict(self) -> None:
        """空の dict からは初期状態になる"""
        assert EntityState.from_dict("c1", {}) == EntityState(chat_id="c1")
