"""Attachment summary repository protocol."""

from typing import Protocol

from juicy.domain.entities.summary import AttachmentSummary


class AttachmentSummaryRepository(Protocol):
    """添付要約リポジトリ

    (message_id, attachment_index) で一意。
    """

    async def save(self, summary: AttachmentSummary) -> AttachmentSummary:
        """添付要約を保存

        Args:
            summary: 保存する添付要約

        Returns:
            ID が採番された添付要約
        """
        ...

    async def find(
        self, message_id: str, attachment_index: int
    ) -> AttachmentSummary | None:
        """メッセージ ID と添付番号で検索

        Args:
            message_id: メッセージ ID
            attachment_index: 添付番号

        Returns:
            見つかった添付要約、または None
        """
        ...

    async def find_by_chat(self, chat_id: str) -> list[AttachmentSummary]:
        """会話の添付要約を取得

        Args:
            chat_id: 会話 ID

        Returns:
            添付要約のリスト（新しい順）
        """
        ...

    async def find_by_message(self, message_id: str) -> list[AttachmentSummary]:
        """メッセージの添付要約を取得

        Args:
            message_id: メッセージ ID

        Returns:
            添付要約のリスト（添付番号順）
        """
        ...
