"""Anchored summary repository protocol."""

from typing import Protocol

from juicy.domain.entities.summary import AnchoredSummary


class SummaryRepository(Protocol):
    """要約リポジトリ

    要約は追記のみで、最新の1件が有効な要約となる。
    「最後に要約したメッセージ」ポインタもここで管理する。
    """

    async def save(self, summary: AnchoredSummary) -> AnchoredSummary:
        """要約を追加

        Args:
            summary: 保存する要約

        Returns:
            ID が採番された要約
        """
        ...

    async def find_latest(self, chat_id: str) -> AnchoredSummary | None:
        """最新の要約を取得

        Args:
            chat_id: 会話 ID

        Returns:
            最新の要約、または None
        """
        ...

    async def find_all(self, chat_id: str) -> list[AnchoredSummary]:
        """会話の全要約を取得

        Args:
            chat_id: 会話 ID

        Returns:
            要約のリスト（新しい順）
        """
        ...

    async def get_last_summarized_message_id(self, chat_id: str) -> str | None:
        """最後に要約したメッセージ ID を取得

        Args:
            chat_id: 会話 ID

        Returns:
            メッセージ ID、未要約なら None
        """
        ...

    async def set_last_summarized_message_id(self, chat_id: str, message_id: str) -> None:
        """最後に要約したメッセージ ID を更新

        Args:
            chat_id: 会話 ID
            message_id: メッセージ ID
        """
        ...
