"""SQLite implementations of ParticipantRepository and UserContextRepository."""

import json
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from juicy.domain.entities.participant import ExperienceLevel, Participant, UserContext
from juicy.infrastructure.persistence.datetime_utils import to_storage
from juicy.infrastructure.persistence.models import ParticipantModel, UserContextModel


class SQLiteParticipantRepository:
    """SQLite による参加者リポジトリ実装"""

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
        """
        self._session_factory = session_factory

    async def find_active(self, chat_id: str) -> list[Participant]:
        """会話のアクティブな参加者を取得

        Args:
            chat_id: 会話 ID

        Returns:
            参加者のリスト（参加順）
        """
        async with self._session_factory() as session:
            stmt = (
                select(ParticipantModel)
                .where(
                    ParticipantModel.chat_id == chat_id,
                    col(ParticipantModel.active).is_(True),
                )
                .order_by(col(ParticipantModel.joined_at), col(ParticipantModel.id))
            )
            result = await session.exec(stmt)
            return [
                Participant(
                    address=m.address,
                    role=m.role,
                    display_name=m.display_name,
                    user_id=m.user_id,
                )
                for m in result.all()
            ]

    async def add(self, chat_id: str, participant: Participant) -> None:
        """参加者を追加（既存なら更新して再アクティブ化）

        Args:
            chat_id: 会話 ID
            participant: 参加者
        """
        async with self._session_factory() as session:
            stmt = select(ParticipantModel).where(
                ParticipantModel.chat_id == chat_id,
                ParticipantModel.address == participant.address,
            )
            result = await session.exec(stmt)
            model = result.first()
            if model:
                model.role = participant.role
                model.display_name = participant.display_name
                model.user_id = participant.user_id
                model.active = True
            else:
                model = ParticipantModel(
                    chat_id=chat_id,
                    address=participant.address,
                    user_id=participant.user_id,
                    role=participant.role,
                    display_name=participant.display_name,
                    joined_at=to_storage(datetime.now(timezone.utc)),
                )
            session.add(model)
            await session.commit()

    async def deactivate(self, chat_id: str, address: str) -> None:
        """参加者を非アクティブにする

        Args:
            chat_id: 会話 ID
            address: ウォレットアドレス
        """
        async with self._session_factory() as session:
            stmt = select(ParticipantModel).where(
                ParticipantModel.chat_id == chat_id,
                ParticipantModel.address == address,
            )
            result = await session.exec(stmt)
            model = result.first()
            if model and model.active:
                model.active = False
                session.add(model)
                await session.commit()


class SQLiteUserContextRepository:
    """SQLite によるユーザーコンテキストリポジトリ実装"""

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
        """
        self._session_factory = session_factory

    async def get(self, user_id: str) -> UserContext | None:
        """ユーザーコンテキストを取得

        Args:
            user_id: ユーザー ID

        Returns:
            ユーザーコンテキスト、または None
        """
        async with self._session_factory() as session:
            model = await session.get(UserContextModel, user_id)
            if model is None:
                return None
            return UserContext(
                user_id=model.user_id,
                experience_level=ExperienceLevel(model.experience_level),
                familiar_terms=tuple(json.loads(model.familiar_terms)),
                preferences=tuple(json.loads(model.preferences)),
                observations=tuple(json.loads(model.observations)),
            )

    async def save(self, context: UserContext) -> None:
        """ユーザーコンテキストを保存（upsert）

        Args:
            context: ユーザーコンテキスト
        """
        async with self._session_factory() as session:
            model = await session.get(UserContextModel, context.user_id)
            if model is None:
                model = UserContextModel(user_id=context.user_id)
            model.experience_level = context.experience_level.value
            model.familiar_terms = json.dumps(list(context.familiar_terms), ensure_ascii=False)
            model.preferences = json.dumps(list(context.preferences), ensure_ascii=False)
            model.observations = json.dumps(list(context.observations), ensure_ascii=False)
            model.updated_at = to_storage(datetime.now(timezone.utc))
            session.add(model)
            await session.commit()
