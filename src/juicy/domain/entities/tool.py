"""Tool definition, call and result entities."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ToolDefinition:
    """モデルに提示するツール定義

    Attributes:
        name: ツール名
        description: ツールの説明
        input_schema: 入力の JSON Schema
    """

    name: str
    description: str
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


@dataclass(frozen=True)
class ToolCall:
    """モデルが要求したツール呼び出し（引数はパース済み）"""

    id: str
    name: str
    input: dict[str, Any]


@dataclass(frozen=True)
class ToolResult:
    """ツールの実行結果"""

    tool_use_id: str
    content: str
    is_error: bool = False
