"""Per-conversation entity state (the project design being negotiated)."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class DesignPhase(Enum):
    """設計フェーズ"""

    DISCOVERY = "discovery"
    CONFIGURATION = "configuration"
    REVIEW = "review"
    READY = "ready"


# フェーズが進んでいる状態。トランザクションモジュールを強制的に読み込む。
LATE_STAGE_PHASES = frozenset(
    {DesignPhase.CONFIGURATION, DesignPhase.REVIEW, DesignPhase.READY}
)


@dataclass(frozen=True)
class RulesetConfig:
    """ルールセット設定"""

    reserved_percent: float | None = None
    cash_out_tax_rate: float | None = None
    duration: int | None = None
    payout_limit: str | None = None
    surplus_allowance: str | None = None
    decay_percent: float | None = None
    weight: str | None = None

    def is_empty(self) -> bool:
        return all(value is None for value in asdict(self).values())


@dataclass(frozen=True)
class Tier:
    """支援ティア"""

    name: str
    price: str
    description: str | None = None
    supply: int | None = None


@dataclass(frozen=True)
class Split:
    """分配先"""

    address: str
    percent: float
    project_id: int | None = None


@dataclass(frozen=True)
class Artifact:
    """会話で参照された資料"""

    type: str
    name: str
    summary: str | None = None
    message_id: str | None = None


@dataclass(frozen=True)
class EntityState:
    """会話ごとのエンティティ状態

    会話中に合意されつつある構造化された事実を保持する。
    更新はアプリケーション側が行い、このパッケージはプロンプト用の
    整形とトークン見積もりのみを行う。

    Attributes:
        chat_id: 会話 ID
        design_phase: 設計フェーズ
        project_name: プロジェクト名
        project_description: プロジェクト説明
        project_type: revnet / crowdfund / membership / nft / other
        funding_goal: 目標金額（例: "50000 USD"）
        funding_currency: ETH / USDC / USD
        target_chains: 対象チェーン ID
        ruleset: ルールセット設定
        tiers: 支援ティア
        payout_splits: 分配先
        owner_address: オーナーアドレス
        pending_questions: 未解決の質問
        confirmed_decisions: 確定済みの決定事項
        artifacts: 参照資料
        schema_version: スキーマバージョン
    """

    chat_id: str
    design_phase: DesignPhase = DesignPhase.DISCOVERY
    project_name: str | None = None
    project_description: str | None = None
    project_type: str | None = None
    funding_goal: str | None = None
    funding_currency: str | None = None
    target_chains: tuple[int, ...] = ()
    ruleset: RulesetConfig = field(default_factory=RulesetConfig)
    tiers: tuple[Tier, ...] = ()
    payout_splits: tuple[Split, ...] = ()
    owner_address: str | None = None
    pending_questions: tuple[str, ...] = ()
    confirmed_decisions: tuple[str, ...] = ()
    artifacts: tuple[Artifact, ...] = ()
    schema_version: int = 1

    def to_dict(self) -> dict[str, Any]:
        """JSON 互換の dict に変換する（chat_id を除く）"""
        data = asdict(self)
        data.pop("chat_id")
        data["design_phase"] = self.design_phase.value
        for key in (
            "target_chains",
            "tiers",
            "payout_splits",
            "pending_questions",
            "confirmed_decisions",
            "artifacts",
        ):
            data[key] = list(data[key])
        return data

    @classmethod
    def from_dict(cls, chat_id: str, data: dict[str, Any]) -> "EntityState":
        """to_dict の逆変換"""
        return cls(
            chat_id=chat_id,
            design_phase=DesignPhase(data.get("design_phase", "discovery")),
            project_name=data.get("project_name"),
            project_description=data.get("project_description"),
            project_type=data.get("project_type"),
            funding_goal=data.get("funding_goal"),
            funding_currency=data.get("funding_currency"),
            target_chains=tuple(data.get("target_chains") or ()),
            ruleset=RulesetConfig(**(data.get("ruleset") or {})),
            tiers=tuple(Tier(**t) for t in data.get("tiers") or ()),
            payout_splits=tuple(Split(**s) for s in data.get("payout_splits") or ()),
            owner_address=data.get("owner_address"),
            pending_questions=tuple(data.get("pending_questions") or ()),
            confirmed_decisions=tuple(data.get("confirmed_decisions") or ()),
            artifacts=tuple(Artifact(**a) for a in data.get("artifacts") or ()),
            schema_version=data.get("schema_version", 1),
        )
