"""Optimized context entity."""

from dataclasses import dataclass

from juicy.domain.entities.entity_state import EntityState
from juicy.domain.entities.message import StoredMessage
from juicy.domain.entities.summary import AnchoredSummary, AttachmentSummary


@dataclass(frozen=True)
class ModularPromptInfo:
    """システムプロンプトに読み込んだ知識モジュールの情報"""

    estimated_tokens: int
    modules_loaded: tuple[str, ...]
    reasons: tuple[str, ...]
    sub_modules_enabled: bool
    transaction_sub_modules: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ContextMetadata:
    """コンテキストのトークン内訳

    total_tokens は各レイヤーのトークン数の合計と常に一致する。
    """

    total_budget: int
    entity_state_tokens: int = 0
    user_context_tokens: int = 0
    participant_context_tokens: int = 0
    attachment_summary_tokens: int = 0
    summary_tokens: int = 0
    recent_message_tokens: int = 0
    recent_message_count: int = 0
    summary_count: int = 0
    attachment_count: int = 0
    modular_prompt: ModularPromptInfo | None = None

    @property
    def total_tokens(self) -> int:
        return (
            self.entity_state_tokens
            + self.user_context_tokens
            + self.participant_context_tokens
            + self.attachment_summary_tokens
            + self.summary_tokens
            + self.recent_message_tokens
        )

    @property
    def budget_exceeded(self) -> bool:
        return self.total_tokens > self.total_budget


@dataclass(frozen=True)
class OptimizedContext:
    """予算内に収めた1回の呼び出し用コンテキスト

    Attributes:
        chat_id: 会話 ID
        recent_messages: 含めた直近メッセージ（古い順）
        entity_state: エンティティ状態
        entity_state_text: プロンプト用に整形したエンティティ状態
        summaries: 含めた要約（最新の1件のみ）
        attachment_summaries: 含めた添付要約（新しい順）
        user_context: ユーザーコンテキストのテキスト
        participant_context: 参加者一覧のテキスト（単独会話では None）
        metadata: トークン内訳
    """

    chat_id: str
    metadata: ContextMetadata
    recent_messages: tuple[StoredMessage, ...] = ()
    entity_state: EntityState | None = None
    entity_state_text: str | None = None
    summaries: tuple[AnchoredSummary, ...] = ()
    attachment_summaries: tuple[AttachmentSummary, ...] = ()
    user_context: str | None = None
    participant_context: str | None = None
