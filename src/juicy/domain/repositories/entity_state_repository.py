"""Entity state repository protocol."""

from typing import Protocol

from juicy.domain.entities.entity_state import EntityState


class EntityStateRepository(Protocol):
    """エンティティ状態リポジトリ

    会話ごとに1件。書き込みはアプリケーション側のみが行う。
    """

    async def get(self, chat_id: str) -> EntityState | None:
        """会話のエンティティ状態を取得

        Args:
            chat_id: 会話 ID

        Returns:
            エンティティ状態、未作成なら None
        """
        ...

    async def save(self, state: EntityState) -> None:
        """エンティティ状態を保存（upsert）

        Args:
            state: 保存するエンティティ状態
        """
        ...
