"""SQLite implementation of MessageRepository."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlalchemy import func
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from juicy.domain.entities.content import Role, deserialize_content, serialize_content
from juicy.domain.entities.message import StoredMessage
from juicy.infrastructure.persistence.datetime_utils import normalize_to_utc, to_storage
from juicy.infrastructure.persistence.models import MessageModel


class SQLiteMessageRepository:
    """SQLite によるメッセージリポジトリ実装

    並び順は created_at（同時刻は id）で、論理削除済みの行は返さない。
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
        """
        self._session_factory = session_factory

    @staticmethod
    def _visible(chat_id: str, after: datetime | None):
        conditions = [
            MessageModel.chat_id == chat_id,
            col(MessageModel.deleted_at).is_(None),
        ]
        if after is not None:
            conditions.append(MessageModel.created_at > to_storage(after))
        return conditions

    async def save(self, message: StoredMessage) -> None:
        """メッセージを保存（同じ ID があれば更新）

        Args:
            message: 保存するメッセージ
        """
        async with self._session_factory() as session:
            existing = await session.get(MessageModel, message.id)
            model = self._to_model(message)
            if existing:
                existing.content = model.content
                existing.structured = model.structured
                existing.token_count = model.token_count
                session.add(existing)
            else:
                session.add(model)
            await session.commit()

    async def find_by_id(self, message_id: str) -> StoredMessage | None:
        """ID でメッセージを検索

        Args:
            message_id: メッセージ ID

        Returns:
            見つかったメッセージ、または None（論理削除済みを含む）
        """
        async with self._session_factory() as session:
            model = await session.get(MessageModel, message_id)
            if model is None or model.deleted_at is not None:
                return None
            return self._to_entity(model)

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
        async with self._session_factory() as session:
            stmt = (
                select(MessageModel)
                .where(*self._visible(chat_id, after))
                .order_by(col(MessageModel.created_at).desc(), col(MessageModel.id).desc())
                .limit(limit)
            )
            result = await session.exec(stmt)
            models = list(result.all())
            models.reverse()
            return [self._to_entity(m) for m in models]

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
        async with self._session_factory() as session:
            stmt = (
                select(MessageModel)
                .where(*self._visible(chat_id, after))
                .order_by(col(MessageModel.created_at), col(MessageModel.id))
            )
            result = await session.exec(stmt)
            return [self._to_entity(m) for m in result.all()]

    async def count_after(self, chat_id: str, after: datetime | None = None) -> int:
        """指定日時より後のメッセージ数を数える

        Args:
            chat_id: 会話 ID
            after: この日時より後のメッセージのみ対象（None なら全件）

        Returns:
            メッセージ数
        """
        async with self._session_factory() as session:
            stmt = (
                select(func.count())
                .select_from(MessageModel)
                .where(*self._visible(chat_id, after))
            )
            result = await session.exec(stmt)
            return result.one()

    async def soft_delete(self, message_id: str) -> None:
        """メッセージを論理削除

        Args:
            message_id: メッセージ ID
        """
        async with self._session_factory() as session:
            model = await session.get(MessageModel, message_id)
            if model and model.deleted_at is None:
                model.deleted_at = to_storage(datetime.now(timezone.utc))
                session.add(model)
                await session.commit()

    def _to_model(self, message: StoredMessage) -> MessageModel:
        """エンティティをモデルに変換"""
        return MessageModel(
            id=message.id,
            chat_id=message.chat_id,
            role=message.role.value,
            content=serialize_content(message.content),
            structured=not isinstance(message.content, str),
            sender_address=message.sender_address,
            token_count=message.token_count,
            created_at=to_storage(message.created_at),
        )

    def _to_entity(self, model: MessageModel) -> StoredMessage:
        """モデルをエンティティに変換"""
        return StoredMessage(
            id=model.id,
            chat_id=model.chat_id,
            role=Role(model.role),
            content=deserialize_content(model.content, model.structured),
            created_at=normalize_to_utc(model.created_at),
            sender_address=model.sender_address,
            token_count=model.token_count,
        )
