"""Tests for the knowledge module catalogue."""

from juicy.domain.entities import DetectedIntents
from juicy.domain.services.knowledge_modules import (
    MODULE_TOKENS,
    TRANSACTION_SUB_MODULES,
    estimate_modular_prompt_tokens,
    estimate_sub_module_tokens,
    get_sub_module,
    loaded_modules,
    match_sub_modules,
)


class TestSubModules:
    """サブモジュール定義のテスト"""

    def test_ids_are_unique(self) -> None:
        ids = [module.id for module in TRANSACTION_SUB_MODULES]
        assert len(ids) == len(set(ids))

    def test_get_sub_module(self) -> None:
        assert get_sub_module("nft_tiers") is not None
        assert get_sub_module("unknown") is None

    def test_match_in_registry_order(self) -> None:
        """一致したサブモジュールは登録順で返る"""
        assert match_sub_modules("deploy on arbitrum with a payout split") == [
            "chains",
            "splits_limits",
            "deployment",
        ]

    def test_estimate_ignores_unknown_ids(self) -> None:
        assert estimate_sub_module_tokens(["metadata", "nope"]) == 600


class TestLoadedModules:
    """loaded_modules / estimate_modular_prompt_tokens のテスト"""

    def test_base_only(self) -> None:
        intents = DetectedIntents()
        assert loaded_modules(intents) == ["BASE_PROMPT", "EXAMPLE_INTERACTIONS"]
        assert estimate_modular_prompt_tokens(intents) == 6500

    def test_full_transaction_module(self) -> None:
        """サブモジュール無効時は完全版のトランザクションモジュール"""
        intents = DetectedIntents(
            needs_transaction=True, transaction_sub_modules=("chains",)
        )
        assert "TRANSACTION_CONTEXT" in loaded_modules(intents, use_sub_modules=False)
        assert estimate_modular_prompt_tokens(intents, use_sub_modules=False) == (
            6500 + MODULE_TOKENS["TRANSACTION_CONTEXT"]
        )

    def test_sub_modules(self) -> None:
        """サブモジュール有効時はコアと選択されたサブモジュール"""
        intents = DetectedIntents(
            needs_data_query=True,
            needs_transaction=True,
            transaction_sub_modules=("chains", "metadata"),
        )
        assert loaded_modules(intents, use_sub_modules=True) == [
            "BASE_PROMPT",
            "DATA_QUERY_CONTEXT",
            "TRANSACTION_CORE",
            "TRANSACTION.chains",
            "TRANSACTION.metadata",
            "EXAMPLE_INTERACTIONS",
        ]
        assert estimate_modular_prompt_tokens(intents, use_sub_modules=True) == (
            6500 + 2000 + 400 + 1000 + 600
        )
