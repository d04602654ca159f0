"""Anchored summary and attachment summary entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

EMPTY_SECTION_PLACEHOLDER = "(none in this segment)"

# 要約の必須セクション（出力順）
SUMMARY_SECTIONS: tuple[tuple[str, str], ...] = (
    ("key_decisions", "Key Decisions"),
    ("project_design", "Project Design"),
    ("artifact_references", "Artifact References"),
    ("pending_items", "Pending Items"),
    ("context_summary", "Context Summary"),
)


@dataclass(frozen=True)
class StructuredSummary:
    """セクション構造を持つ要約

    全セクションは必須であり、空の場合もプレースホルダーを出力する。

    Attributes:
        key_decisions: 決定事項（誰が何を決めたか）
        project_design: 議論中のパラメータ（暫定値を含む）
        artifact_references: ファイル・リンク・画像などの参照
        pending_items: 未解決の質問やフォローアップ
        context_summary: 会話の流れの短い説明
    """

    key_decisions: tuple[str, ...] = ()
    project_design: tuple[str, ...] = ()
    artifact_references: tuple[str, ...] = ()
    pending_items: tuple[str, ...] = ()
    context_summary: str = ""

    def to_markdown(self) -> str:
        """Markdown 形式に整形する"""
        parts: list[str] = []
        for attr, title in SUMMARY_SECTIONS:
            value = getattr(self, attr)
            parts.append(f"## {title}")
            if isinstance(value, str):
                parts.append(value.strip() or EMPTY_SECTION_PLACEHOLDER)
            elif value:
                parts.extend(f"- {item}" for item in value)
            else:
                parts.append(EMPTY_SECTION_PLACEHOLDER)
            parts.append("")
        return "\n".join(parts).rstrip() + "\n"


def missing_sections(summary_text: str) -> list[str]:
    """要約テキストに欠けている必須セクション名を返す"""
    return [
        title for _, title in SUMMARY_SECTIONS if f"## {title}" not in summary_text
    ]


@dataclass(frozen=True)
class AnchoredSummary:
    """アンカー付き要約

    会話の古い履歴を圧縮したもの。新しい要約は既存の要約とマージされた
    新しい行として保存され、オーケストレーションでは最新の1件だけが使われる。

    Attributes:
        chat_id: 会話 ID
        summary_text: 要約本文（Markdown）
        covers_from_message_id: 対象範囲の最初のメッセージ ID
        covers_to_message_id: 対象範囲の最後のメッセージ ID
        covers_from_timestamp: 対象範囲の開始日時
        covers_to_timestamp: 対象範囲の終了日時（これ以前は要約済み）
        message_count: 要約したメッセージ数
        original_token_count: 元メッセージの推定トークン数
        summary_token_count: 要約のトークン数
        created_at: 作成日時
        model_used: 生成に使用したモデル
        id: 永続化後の ID
    """

    chat_id: str
    summary_text: str
    covers_from_message_id: str
    covers_to_message_id: str
    covers_from_timestamp: datetime
    covers_to_timestamp: datetime
    message_count: int
    original_token_count: int
    summary_token_count: int
    created_at: datetime
    model_used: str | None = None
    id: int | None = None

    @property
    def compression_ratio(self) -> float:
        """圧縮率（元トークン数 / 要約トークン数）"""
        if self.summary_token_count <= 0:
            return 0.0
        return self.original_token_count / self.summary_token_count


@dataclass(frozen=True)
class AttachmentInput:
    """要約対象の添付ファイル

    Attributes:
        kind: "image" または "document"
        mime_type: MIME タイプ
        data: base64 エンコードされたデータ
        filename: 元のファイル名
    """

    kind: str
    mime_type: str
    data: str
    filename: str | None = None


@dataclass(frozen=True)
class AttachmentSummary:
    """添付ファイル要約

    (message_id, attachment_index) で一意。一度生成されたら再生成しない。
    """

    message_id: str
    chat_id: str
    attachment_index: int
    summary_text: str
    token_count: int
    created_at: datetime
    filename: str | None = None
    mime_type: str | None = None
    extracted_data: dict[str, Any] = field(default_factory=dict)
    model_used: str | None = None
    id: int | None = None


@dataclass(frozen=True)
class GeneratedSummary:
    """LLM による要約生成結果

    Attributes:
        text: 要約本文（Markdown）
        token_count: 要約の出力トークン数
        model: 生成に使用したモデル
    """

    text: str
    token_count: int
    model: str | None = None
