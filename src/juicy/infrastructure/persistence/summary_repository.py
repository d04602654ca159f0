"""SQLite implementation of SummaryRepository."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from juicy.domain.entities.summary import AnchoredSummary
from juicy.infrastructure.persistence.datetime_utils import normalize_to_utc, to_storage
from juicy.infrastructure.persistence.models import ChatSummaryModel, SummaryPointerModel


class SQLiteSummaryRepository:
    """SQLite による要約リポジトリ実装

    要約は追記のみ。最新は created_at（同時刻は id）が最大の行。
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

    async def save(self, summary: AnchoredSummary) -> AnchoredSummary:
        """要約を追加

        Args:
            summary: 保存する要約

        Returns:
            ID が採番された要約
        """
        async with self._session_factory() as session:
            model = self._to_model(summary)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return self._to_entity(model)

    async def find_latest(self, chat_id: str) -> AnchoredSummary | None:
        """最新の要約を取得

        Args:
            chat_id: 会話 ID

        Returns:
            最新の要約、または None
        """
        async with self._session_factory() as session:
            stmt = (
                select(ChatSummaryModel)
                .where(ChatSummaryModel.chat_id == chat_id)
                .order_by(
                    col(ChatSummaryModel.created_at).desc(),
                    col(ChatSummaryModel.id).desc(),
                )
                .limit(1)
            )
            result = await session.exec(stmt)
            model = result.first()
            return self._to_entity(model) if model else None

    async def find_all(self, chat_id: str) -> list[AnchoredSummary]:
        """会話の全要約を取得

        Args:
            chat_id: 会話 ID

        Returns:
            要約のリスト（新しい順）
        """
        async with self._session_factory() as session:
            stmt = (
                select(ChatSummaryModel)
                .where(ChatSummaryModel.chat_id == chat_id)
                .order_by(
                    col(ChatSummaryModel.created_at).desc(),
                    col(ChatSummaryModel.id).desc(),
                )
            )
            result = await session.exec(stmt)
            return [self._to_entity(m) for m in result.all()]

    async def get_last_summarized_message_id(self, chat_id: str) -> str | None:
        """最後に要約したメッセージ ID を取得

        Args:
            chat_id: 会話 ID

        Returns:
            メッセージ ID、未要約なら None
        """
        async with self._session_factory() as session:
            model = await session.get(SummaryPointerModel, chat_id)
            return model.last_summarized_message_id if model else None

    async def set_last_summarized_message_id(self, chat_id: str, message_id: str) -> None:
        """最後に要約したメッセージ ID を更新

        Args:
            chat_id: 会話 ID
            message_id: メッセージ ID
        """
        now = to_storage(datetime.now(timezone.utc))
        async with self._session_factory() as session:
            model = await session.get(SummaryPointerModel, chat_id)
            if model:
                model.last_summarized_message_id = message_id
                model.updated_at = now
            else:
                model = SummaryPointerModel(
                    chat_id=chat_id,
                    last_summarized_message_id=message_id,
                    updated_at=now,
                )
            session.add(model)
            await session.commit()

    def _to_model(self, summary: AnchoredSummary) -> ChatSummaryModel:
        """エンティティをモデルに変換"""
        return ChatSummaryModel(
            id=summary.id,
            chat_id=summary.chat_id,
            summary_text=summary.summary_text,
            covers_from_message_id=summary.covers_from_message_id,
            covers_to_message_id=summary.covers_to_message_id,
            covers_from_timestamp=to_storage(summary.covers_from_timestamp),
            covers_to_timestamp=to_storage(summary.covers_to_timestamp),
            message_count=summary.message_count,
            original_token_count=summary.original_token_count,
            summary_token_count=summary.summary_token_count,
            model_used=summary.model_used,
            created_at=to_storage(summary.created_at),
        )

    def _to_entity(self, model: ChatSummaryModel) -> AnchoredSummary:
        """モデルをエンティティに変換"""
        return AnchoredSummary(
            id=model.id,
            chat_id=model.chat_id,
            summary_text=model.summary_text,
            covers_from_message_id=model.covers_from_message_id,
            covers_to_message_id=model.covers_to_message_id,
            covers_from_timestamp=normalize_to_utc(model.covers_from_timestamp),
            covers_to_timestamp=normalize_to_utc(model.covers_to_timestamp),
            message_count=model.message_count,
            original_token_count=model.original_token_count,
            summary_token_count=model.summary_token_count,
            model_used=model.model_used,
            created_at=normalize_to_utc(model.created_at),
        )
