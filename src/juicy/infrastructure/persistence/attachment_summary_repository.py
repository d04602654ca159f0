"""SQLite implementation of AttachmentSummaryRepository."""

import json
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from juicy.domain.entities.summary import AttachmentSummary
from juicy.infrastructure.persistence.datetime_utils import normalize_to_utc, to_storage
from juicy.infrastructure.persistence.models import AttachmentSummaryModel


class SQLiteAttachmentSummaryRepository:
    """SQLite による添付要約リポジトリ実装"""

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
        """
        self._session_factory = session_factory

    async def save(self, summary: AttachmentSummary) -> AttachmentSummary:
        """添付要約を保存

        (message_id, attachment_index) が既に存在する場合は既存の行を返す。

        Args:
            summary: 保存する添付要約

        Returns:
            ID が採番された添付要約
        """
        async with self._session_factory() as session:
            existing = await self._find(session, summary.message_id, summary.attachment_index)
            if existing:
                return self._to_entity(existing)
            model = self._to_model(summary)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return self._to_entity(model)

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
        async with self._session_factory() as session:
            model = await self._find(session, message_id, attachment_index)
            return self._to_entity(model) if model else None

    async def find_by_chat(self, chat_id: str) -> list[AttachmentSummary]:
        """会話の添付要約を取得

        Args:
            chat_id: 会話 ID

        Returns:
            添付要約のリスト（新しい順）
        """
        async with self._session_factory() as session:
            stmt = (
                select(AttachmentSummaryModel)
                .where(AttachmentSummaryModel.chat_id == chat_id)
                .order_by(
                    col(AttachmentSummaryModel.created_at).desc(),
                    col(AttachmentSummaryModel.id).desc(),
                )
            )
            result = await session.exec(stmt)
            return [self._to_entity(m) for m in result.all()]

    async def find_by_message(self, message_id: str) -> list[AttachmentSummary]:
        """メッセージの添付要約を取得

        Args:
            message_id: メッセージ ID

        Returns:
            添付要約のリスト（添付番号順）
        """
        async with self._session_factory() as session:
            stmt = (
                select(AttachmentSummaryModel)
                .where(AttachmentSummaryModel.message_id == message_id)
                .order_by(col(AttachmentSummaryModel.attachment_index))
            )
            result = await session.exec(stmt)
            return [self._to_entity(m) for m in result.all()]

    async def _find(
        self, session: AsyncSession, message_id: str, attachment_index: int
    ) -> AttachmentSummaryModel | None:
        stmt = select(AttachmentSummaryModel).where(
            AttachmentSummaryModel.message_id == message_id,
            AttachmentSummaryModel.attachment_index == attachment_index,
        )
        result = await session.exec(stmt)
        return result.first()

    def _to_model(self, summary: AttachmentSummary) -> AttachmentSummaryModel:
        """エンティティをモデルに変換"""
        return AttachmentSummaryModel(
            id=summary.id,
            message_id=summary.message_id,
            chat_id=summary.chat_id,
            attachment_index=summary.attachment_index,
            filename=summary.filename,
            mime_type=summary.mime_type,
            summary_text=summary.summary_text,
            extracted_data=json.dumps(summary.extracted_data, ensure_ascii=False),
            token_count=summary.token_count,
            model_used=summary.model_used,
            created_at=to_storage(summary.created_at),
        )

    def _to_entity(self, model: AttachmentSummaryModel) -> AttachmentSummary:
        """モデルをエンティティに変換"""
        return AttachmentSummary(
            id=model.id,
            message_id=model.message_id,
            chat_id=model.chat_id,
            attachment_index=model.attachment_index,
            filename=model.filename,
            mime_type=model.mime_type,
            summary_text=model.summary_text,
            extracted_data=json.loads(model.extracted_data or "{}"),
            token_count=model.token_count,
            model_used=model.model_used,
            created_at=normalize_to_utc(model.created_at),
        )
