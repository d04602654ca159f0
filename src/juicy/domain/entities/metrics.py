"""Invocation and tool usage metrics entities."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ToolUsageEvent:
    """ツール実行1回分の記録

    Attributes:
        timestamp: 実行開始日時
        tool_name: ツール名
        success: 成功したか
        duration_ms: 実行時間（ミリ秒）
        chat_id: 会話 ID
        user_id: ユーザー ID
        error_message: 失敗時のエラー内容
    """

    timestamp: datetime
    tool_name: str
    success: bool
    duration_ms: float
    chat_id: str | None = None
    user_id: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class InvocationEvent:
    """エージェント呼び出し1回分の記録"""

    timestamp: datetime
    prompt_length: int
    response_length: int
    duration_ms: float
    tools_used: tuple[str, ...]
    iterations: int
    success: bool
    input_tokens: int = 0
    output_tokens: int = 0
    chat_id: str | None = None
    user_id: str | None = None
    model: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class MetricsSummary:
    """集計結果"""

    window_from: datetime
    window_to: datetime
    total_invocations: int = 0
    successful_invocations: int = 0
    failed_invocations: int = 0
    avg_response_time_ms: float = 0.0
    p95_response_time_ms: float = 0.0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    avg_tokens_per_request: float = 0.0
    tool_usage_counts: dict[str, int] = field(default_factory=dict)
    tool_success_rates: dict[str, float] = field(default_factory=dict)
    avg_tools_per_invocation: float = 0.0
    invocations_with_tools: int = 0
    invocations_without_tools: int = 0
    avg_iterations: float = 0.0
    max_iterations: int = 0


@dataclass(frozen=True)
class QuotaStatus:
    """ユーザーのレート制限状況"""

    allowed: bool
    remaining_requests: int
    remaining_tokens: int
    reset_at: datetime


@dataclass(frozen=True)
class ChatToolUsage:
    """会話ごとのツール使用状況"""

    tools: dict[str, int]
    total_invocations: int
    avg_response_time_ms: float
