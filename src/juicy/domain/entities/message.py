"""Stored chat message entity."""

from dataclasses import dataclass
from datetime import datetime

from juicy.domain.entities.content import ChatMessage, ContentBlock, Role


@dataclass(frozen=True)
class StoredMessage:
    """会話に保存されたメッセージ

    チャット送信処理（このパッケージの外側）が追記し、
    コンテキスト構築と要約では読み取り専用として扱う。

    Attributes:
        id: メッセージ ID
        chat_id: 会話 ID
        role: 送信者ロール
        content: プレーンテキストまたはコンテンツブロック列
        created_at: 作成日時（UTC）
        sender_address: 送信者のウォレットアドレス（マルチユーザー会話用）
        token_count: 保存時に計算済みのトークン数
    """

    id: str
    chat_id: str
    role: Role
    content: str | tuple[ContentBlock, ...]
    created_at: datetime
    sender_address: str | None = None
    token_count: int | None = None

    def to_chat_message(self) -> ChatMessage:
        """プロバイダー向けのメッセージに変換する"""
        return ChatMessage(role=self.role, content=self.content)

    def text(self) -> str:
        """テキスト部分のみを返す"""
        return self.to_chat_message().text()
