"""Domain exceptions."""

from juicy.domain.entities.metrics import QuotaStatus


class QuotaExceededError(Exception):
    """ユーザーのレート制限を超えた場合に発生する例外

    プロバイダー呼び出し前に発生し、呼び出し全体を中断する。
    """

    def __init__(self, user_id: str, status: QuotaStatus, message: str = "") -> None:
        """初期化

        Args:
            user_id: 制限を超えたユーザーの ID
            status: 現在のレート制限状況
            message: エラーメッセージ（オプション）
        """
        self.user_id = user_id
        self.status = status
        super().__init__(
            message
            or f"Rate limit exceeded for user {user_id}; resets at "
            f"{status.reset_at.isoformat()}"
        )


class ToolNotFoundError(Exception):
    """登録されていないツールが要求された場合に発生する例外"""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")
