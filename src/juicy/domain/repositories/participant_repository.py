"""Participant and user context repository protocols."""

from typing import Protocol

from juicy.domain.entities.participant import Participant, UserContext


class ParticipantRepository(Protocol):
    """参加者リポジトリ"""

    async def find_active(self, chat_id: str) -> list[Participant]:
        """会話のアクティブな参加者を取得

        Args:
            chat_id: 会話 ID

        Returns:
            参加者のリスト
        """
        ...

    async def add(self, chat_id: str, participant: Participant) -> None:
        """参加者を追加（既存なら更新）

        Args:
            chat_id: 会話 ID
            participant: 参加者
        """
        ...


class UserContextRepository(Protocol):
    """ユーザーコンテキストリポジトリ"""

    async def get(self, user_id: str) -> UserContext | None:
        """ユーザーコンテキストを取得

        Args:
            user_id: ユーザー ID

        Returns:
            ユーザーコンテキスト、または None
        """
        ...

    async def save(self, context: UserContext) -> None:
        """ユーザーコンテキストを保存（upsert）

        Args:
            context: ユーザーコンテキスト
        """
        ...
