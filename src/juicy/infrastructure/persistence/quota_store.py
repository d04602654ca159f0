"""Per-user quota stores."""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from juicy.config.models import RateLimitConfig
from juicy.domain.entities.metrics import QuotaStatus
from juicy.infrastructure.persistence.datetime_utils import normalize_to_utc, to_storage
from juicy.infrastructure.persistence.models import QuotaUsageModel

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def window_start(now: datetime, window_seconds: int) -> datetime:
    """Start of the fixed window containing now (aligned to the epoch)."""
    timestamp = int(normalize_to_utc(now).timestamp())
    return datetime.fromtimestamp(timestamp - timestamp % window_seconds, timezone.utc)


def _status(
    config: RateLimitConfig, start: datetime, requests: int, tokens: int
) -> QuotaStatus:
    return QuotaStatus(
        allowed=requests <= config.max_requests and tokens < config.max_tokens,
        remaining_requests=max(0, config.max_requests - requests),
        remaining_tokens=max(0, config.max_tokens - tokens),
        reset_at=start + timedelta(seconds=config.window_seconds),
    )


@dataclass
class _Window:
    start: datetime
    requests: int = 0
    tokens: int = 0


class InMemoryQuotaStore:
    """Process-local quota store.

    Counters reset when a new window starts. Read-modify-write is guarded
    by an asyncio.Lock.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config or RateLimitConfig()
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = asyncio.Lock()

    def _current(self, user_id: str) -> _Window:
        start = window_start(self._clock(), self._config.window_seconds)
        window = self._windows.get(user_id)
        if window is None or window.start != start:
            window = _Window(start=start)
            self._windows[user_id] = window
        return window

    async def check(self, user_id: str) -> QuotaStatus:
        async with self._lock:
            window = self._current(user_id)
            window.requests += 1
            return _status(self._config, window.start, window.requests, window.tokens)

    async def record_usage(self, user_id: str, tokens: int) -> None:
        async with self._lock:
            self._current(user_id).tokens += tokens


class SQLiteQuotaStore:
    """SQLite による永続クォータストア

    ユーザー × ウィンドウ開始時刻ごとに1行。カウンタの増加は
    単一の upsert 文で行うため、複数プロセスからでもアトミックになる。
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
        config: RateLimitConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
            config: レート制限設定
            clock: 現在時刻の取得関数
        """
        self._session_factory = session_factory
        self._config = config or RateLimitConfig()
        self._clock = clock

    async def _increment(
        self, user_id: str, requests: int, tokens: int
    ) -> QuotaStatus:
        start = window_start(self._clock(), self._config.window_seconds)
        stored_start = to_storage(start)
        stmt = sqlite_insert(QuotaUsageModel).values(
            user_id=user_id,
            window_start=stored_start,
            request_count=requests,
            token_count=tokens,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "window_start"],
            set_={
                "request_count": QuotaUsageModel.request_count + requests,
                "token_count": QuotaUsageModel.token_count + tokens,
            },
        )
        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()
            result = await session.exec(
                select(QuotaUsageModel).where(
                    QuotaUsageModel.user_id == user_id,
                    QuotaUsageModel.window_start == stored_start,
                )
            )
            row = result.one()
            return _status(self._config, start, row.request_count, row.token_count)

    async def check(self, user_id: str) -> QuotaStatus:
        """リクエスト数を1増やし、呼び出し可能か確認する

        Args:
            user_id: ユーザー ID

        Returns:
            レート制限状況
        """
        return await self._increment(user_id, requests=1, tokens=0)

    async def record_usage(self, user_id: str, tokens: int) -> None:
        """使用トークン数を加算

        Args:
            user_id: ユーザー ID
            tokens: 使用トークン数
        """
        status = await self._increment(user_id, requests=0, tokens=tokens)
        logger.debug(
            "Recorded %d tokens for user %s (%d remaining)",
            tokens,
            user_id,
            status.remaining_tokens,
        )
