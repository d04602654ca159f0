"""Streaming events emitted by providers and by the agentic loop."""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from juicy.domain.entities.tool import ToolCall, ToolResult


class StopReason(Enum):
    """プロバイダーのターン終了理由"""

    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"


class LoopState(Enum):
    """エージェントループの状態"""

    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    MAX_ITERATIONS_REACHED = "max_iterations_reached"


# Provider events (one provider turn)


@dataclass(frozen=True)
class TextDelta:
    """テキスト断片"""

    text: str


@dataclass(frozen=True)
class ToolCallRequest:
    """引数のパースが完了したツール呼び出し要求"""

    tool_call: ToolCall


@dataclass(frozen=True)
class TurnUsage:
    """ターン終了時の使用量（各ストリームの最後に必ず1回）"""

    input_tokens: int
    output_tokens: int
    stop_reason: StopReason


ProviderEvent = Union[TextDelta, ToolCallRequest, TurnUsage]


# Agent events (whole invocation)


@dataclass(frozen=True)
class TextEvent:
    """呼び出し元に流すテキスト断片"""

    text: str


@dataclass(frozen=True)
class ToolRequestedEvent:
    """ツール実行開始の通知"""

    tool_name: str

    @property
    def notice(self) -> str:
        return f"Using tool: {self.tool_name}"


@dataclass(frozen=True)
class ToolUseEvent:
    """モデルが要求したツール呼び出し"""

    tool_call: ToolCall


@dataclass(frozen=True)
class ToolResultEvent:
    """ツール実行結果"""

    result: ToolResult


@dataclass(frozen=True)
class UsageSummaryEvent:
    """呼び出し全体の使用量（正常終了時に最後に1回）"""

    input_tokens: int
    output_tokens: int
    iterations: int
    final_state: LoopState
    model: str | None = None


@dataclass(frozen=True)
class ErrorEvent:
    """プロバイダー障害による終端エラー"""

    message: str
    error_type: str


AgentEvent = Union[
    TextEvent,
    ToolRequestedEvent,
    ToolUseEvent,
    ToolResultEvent,
    UsageSummaryEvent,
    ErrorEvent,
]
