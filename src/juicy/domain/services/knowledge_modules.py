"""Knowledge module catalogue: keyword hints and token estimates.

The system prompt is assembled from a base prompt, the optional modules
selected for the turn and a short block of example interactions. The
transaction module can alternatively be loaded as a small core plus a
subset of fine-grained sub-modules.
"""

from dataclasses import dataclass

from juicy.domain.entities.intents import DetectedIntents

BASE_PROMPT = "BASE_PROMPT"
DATA_QUERY_CONTEXT = "DATA_QUERY_CONTEXT"
HOOK_DEVELOPER_CONTEXT = "HOOK_DEVELOPER_CONTEXT"
TRANSACTION_CONTEXT = "TRANSACTION_CONTEXT"
TRANSACTION_CORE = "TRANSACTION_CORE"
EXAMPLE_INTERACTIONS = "EXAMPLE_INTERACTIONS"

MODULE_TOKENS: dict[str, int] = {
    BASE_PROMPT: 6000,
    DATA_QUERY_CONTEXT: 2000,
    HOOK_DEVELOPER_CONTEXT: 3000,
    TRANSACTION_CONTEXT: 8000,
    TRANSACTION_CORE: 400,
    EXAMPLE_INTERACTIONS: 500,
}

INTENT_HINTS: dict[str, tuple[str, ...]] = {
    "data_query": (
        "balance", "volume", "holders", "participants", "activity",
        "how much", "who paid", "who owns", "show me", "what's happening",
        "trending", "top projects", "search", "find project",
    ),
    "hook_developer": (
        "hook", "solidity", "contract", "interface", "custom logic",
        "IJB", "terminal wrapper", "data hook", "pay hook", "cash out hook",
        "split hook", "approval hook", "implement", "develop", "code",
    ),
    "transaction": (
        "launch", "deploy", "create project", "transaction", "preview",
        "fund", "payout", "withdraw", "queue ruleset", "mint", "perks",
        "tiers", "NFT", "721", "revnet", "autonomous", "goal", "raise",
        "change name", "update name", "rename", "change description",
        "update metadata", "setUriOf", "update project", "edit project",
    ),
}  # fmt: skip


@dataclass(frozen=True)
class SubModule:
    """トランザクション知識のサブモジュール

    Attributes:
        id: サブモジュール ID（テンプレート名にも使用）
        description: 内容の説明
        hints: 読み込みのきっかけとなるキーワード
        token_estimate: 推定トークン数
    """

    id: str
    description: str
    hints: tuple[str, ...]
    token_estimate: int


TRANSACTION_SUB_MODULES: tuple[SubModule, ...] = (
    SubModule(
        id="chains",
        description="Supported chains and omnichain deployment rules",
        hints=("chain", "ethereum", "optimism", "base chain", "arbitrum", "sepolia",
               "omnichain", "multi-chain", "cross-chain", "testnet"),
        token_estimate=1000,
    ),
    SubModule(
        id="v51_addresses",
        description="Current protocol contract addresses",
        hints=("address", "v5.1", "v51", "controller", "JBController",
               "JBMultiTerminal", "deployer"),
        token_estimate=1200,
    ),
    SubModule(
        id="v5_addresses",
        description="Legacy protocol contract addresses",
        hints=("v5.0", "v5 ", "legacy", "old project", "previous version"),
        token_estimate=1000,
    ),
    SubModule(
        id="terminals",
        description="Payment terminals and accepted tokens",
        hints=("terminal", "accept", "usdc", "swap", "accounting context",
               "pay in", "currency"),
        token_estimate=1000,
    ),
    SubModule(
        id="splits_limits",
        description="Payout splits, fund access limits and fees",
        hints=("payout", "split", "withdraw", "fund access", "goal", "surplus",
               "allowance", "limit", "fee", "2.5%", "platform fee", "beneficiary",
               "fundAccessLimitGroups", "splitGroups", "how much can withdraw"),
        token_estimate=1500,
    ),
    SubModule(
        id="nft_tiers",
        description="NFT reward tiers",
        hints=("tier", "NFT", "721", "perks", "rewards", "collectible", "membership",
               "launch721Project", "tiersConfig", "initialSupply", "tier price",
               "founding member", "supporter level",
               "adjustTiers", "add tier", "remove tier", "delete tier", "sell something",
               "setDiscount", "discount", "sale", "price reduction",
               "edit tier", "update tier", "tier metadata"),
        token_estimate=1500,
    ),
    SubModule(
        id="revnet_params",
        description="Autonomous revnet stage parameters",
        hints=("revnet", "autonomous", "stage", "splitOperator", "auto issuance",
               "price ceiling", "price floor"),
        token_estimate=1200,
    ),
    SubModule(
        id="rulesets",
        description="Ruleset configuration and queueing",
        hints=("ruleset", "weight", "duration", "reserved", "metadata", "issuance",
               "queue ruleset", "update rules", "change settings", "weightCutPercent",
               "baseCurrency", "pausePay", "allowOwnerMinting"),
        token_estimate=1000,
    ),
    SubModule(
        id="deployment",
        description="Launch transaction structure",
        hints=("launch", "deploy", "create project", "launchProject",
               "chainConfigs", "go live"),
        token_estimate=1500,
    ),
    SubModule(
        id="metadata",
        description="Project metadata and IPFS URIs",
        hints=("setUriOf", "rename", "change name", "update name",
               "change description", "update metadata", "logo", "ipfs", "project uri"),
        token_estimate=600,
    ),
    SubModule(
        id="ref_addresses",
        description="Reference: well-known token addresses",
        hints=("token address", "weth", "usdc address"),
        token_estimate=500,
    ),
    SubModule(
        id="ref_currencies",
        description="Reference: currency ids and decimals",
        hints=("currency id", "decimals", "baseCurrency"),
        token_estimate=300,
    ),
    SubModule(
        id="ref_structures",
        description="Reference: struct layouts",
        hints=("struct", "JBRulesetConfig", "JBSplit", "JBTerminalConfig"),
        token_estimate=800,
    ),
)  # fmt: skip

_SUB_MODULES_BY_ID = {module.id: module for module in TRANSACTION_SUB_MODULES}


def get_sub_module(module_id: str) -> SubModule | None:
    """ID からサブモジュールを取得する"""
    return _SUB_MODULES_BY_ID.get(module_id)


def match_hints(text: str, hints: tuple[str, ...]) -> bool:
    """小文字化したテキストにいずれかのヒントが含まれるか"""
    return any(hint.lower() in text for hint in hints)


def match_sub_modules(text: str) -> list[str]:
    """キーワードに一致したサブモジュール ID を登録順で返す

    Args:
        text: 小文字化済みの直近ユーザーメッセージ

    Returns:
        一致したサブモジュール ID のリスト
    """
    lowered = text.lower()
    return [
        module.id
        for module in TRANSACTION_SUB_MODULES
        if match_hints(lowered, module.hints)
    ]


def estimate_sub_module_tokens(module_ids: tuple[str, ...] | list[str]) -> int:
    """サブモジュールの推定トークン数の合計（未知の ID は 0）"""
    return sum(
        module.token_estimate
        for module in (get_sub_module(module_id) for module_id in module_ids)
        if module is not None
    )


def _uses_sub_modules(intents: DetectedIntents, use_sub_modules: bool) -> bool:
    return use_sub_modules and bool(intents.transaction_sub_modules)


def loaded_modules(intents: DetectedIntents, use_sub_modules: bool = False) -> list[str]:
    """システムプロンプトに読み込まれるモジュール名の一覧"""
    modules = [BASE_PROMPT]
    if intents.needs_data_query:
        modules.append(DATA_QUERY_CONTEXT)
    if intents.needs_hook_developer:
        modules.append(HOOK_DEVELOPER_CONTEXT)
    if intents.needs_transaction:
        if _uses_sub_modules(intents, use_sub_modules):
            modules.append(TRANSACTION_CORE)
            modules.extend(
                f"TRANSACTION.{module_id}"
                for module_id in intents.transaction_sub_modules or ()
            )
        else:
            modules.append(TRANSACTION_CONTEXT)
    modules.append(EXAMPLE_INTERACTIONS)
    return modules


def estimate_modular_prompt_tokens(
    intents: DetectedIntents, use_sub_modules: bool = False
) -> int:
    """モジュール構成のシステムプロンプトの推定トークン数"""
    tokens = MODULE_TOKENS[BASE_PROMPT] + MODULE_TOKENS[EXAMPLE_INTERACTIONS]
    if intents.needs_data_query:
        tokens += MODULE_TOKENS[DATA_QUERY_CONTEXT]
    if intents.needs_hook_developer:
        tokens += MODULE_TOKENS[HOOK_DEVELOPER_CONTEXT]
    if intents.needs_transaction:
        if _uses_sub_modules(intents, use_sub_modules):
            tokens += MODULE_TOKENS[TRANSACTION_CORE]
            tokens += estimate_sub_module_tokens(intents.transaction_sub_modules or ())
        else:
            tokens += MODULE_TOKENS[TRANSACTION_CONTEXT]
    return tokens
