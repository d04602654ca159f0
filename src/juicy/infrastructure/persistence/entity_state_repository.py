"""SQLite implementation of EntityStateRepository."""

import json
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlmodel.ext.asyncio.session import AsyncSession

from juicy.domain.entities.entity_state import EntityState
from juicy.infrastructure.persistence.datetime_utils import to_storage
from juicy.infrastructure.persistence.exceptions import CorruptRecordError
from juicy.infrastructure.persistence.models import EntityStateModel


class SQLiteEntityStateRepository:
    """SQLite によるエンティティ状態リポジトリ実装

    状態は JSON として1行に保存する。
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

    async def get(self, chat_id: str) -> EntityState | None:
        """会話のエンティティ状態を取得

        Args:
            chat_id: 会話 ID

        Returns:
            エンティティ状態、未作成なら None

        Raises:
            CorruptRecordError: 保存された JSON が壊れている
        """
        async with self._session_factory() as session:
            model = await session.get(EntityStateModel, chat_id)
            if model is None:
                return None
            try:
                return EntityState.from_dict(chat_id, json.loads(model.state))
            except (ValueError, KeyError, TypeError) as e:
                raise CorruptRecordError(
                    f"Invalid entity state for chat {chat_id}: {e}"
                ) from e

    async def save(self, state: EntityState) -> None:
        """エンティティ状態を保存（upsert）

        Args:
            state: 保存するエンティティ状態
        """
        payload = json.dumps(state.to_dict(), ensure_ascii=False)
        now = to_storage(datetime.now(timezone.utc))
        async with self._session_factory() as session:
            model = await session.get(EntityStateModel, state.chat_id)
            if model:
                model.state = payload
                model.schema_version = state.schema_version
                model.updated_at = now
            else:
                model = EntityStateModel(
                    chat_id=state.chat_id,
                    state=payload,
                    schema_version=state.schema_version,
                    updated_at=now,
                )
            session.add(model)
            await session.commit()
