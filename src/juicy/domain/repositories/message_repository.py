"""Message repository protocol."""

from datetime import datetime
from typing import Protocol

from juicy.domain.entities.message import StoredMessage


class MessageRepository(Protocol):
    """メッセージリポジトリ

    論理削除されたメッセージはどのメソッドからも返されない。
    """

    async def save(self, message: StoredMessage) -> None:
        """メッセージを保存

        Args:
            message: 保存するメッセージ
        """
        ...

    async def find_by_id(self, message_id: str) -> StoredMessage | None:
        """ID でメッセージを検索

        Args:
            message_id: メッセージ ID

        Returns:
            見つかったメッセージ、または None
        """
        ...

    async def find_recent(
        self,
        chat_id: str,
        limit: int,
        after: datetime | None = None,
    ) -> list[StoredMessage]:
        """直近のメッセージを取得

        Args:
            chat_id: 会話 ID
            limit: 最大取得件数（新しい方から数える）
            after: この日時より後のメッセージのみ対象

        Returns:
            メッセージのリスト（古い順）
        """
        ...

    async def find_after(
        self,
        chat_id: str,
        after: datetime | None = None,
    ) -> list[StoredMessage]:
        """指定日時より後の全メッセージを取得

        Args:
            chat_id: 会話 ID
            after: この日時より後のメッセージのみ対象（None なら全件）

        Returns:
            メッセージのリスト（古い順）
        """
        ...

    async def count_after(self, chat_id: str, after: datetime | None = None) -> int:
        """指定日時より後のメッセージ数を数える

        Args:
            chat_id: 会話 ID
            after: この日時より後のメッセージのみ対象（None なら全件）

        Returns:
            メッセージ数
        """
        ...

    async def soft_delete(self, message_id: str) -> None:
        """メッセージを論理削除

        Args:
            message_id: メッセージ ID
        """
        ...
