"""Per-user quota store protocol."""

from typing import Protocol

from juicy.domain.entities.metrics import QuotaStatus


class QuotaStore(Protocol):
    """ユーザー単位のレート制限ストア

    同時実行される呼び出しから更新されるため、
    カウンタの増加はアトミックでなければならない。
    """

    async def check(self, user_id: str) -> QuotaStatus:
        """リクエスト数を1増やし、現在のウィンドウで呼び出し可能か確認する

        Args:
            user_id: ユーザー ID

        Returns:
            レート制限状況（allowed が False なら呼び出し不可）
        """
        ...

    async def record_usage(self, user_id: str, tokens: int) -> None:
        """使用トークン数を加算

        Args:
            user_id: ユーザー ID
            tokens: 使用トークン数
        """
        ...
