"""Message content blocks."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class Role(Enum):
    """メッセージの送信者ロール"""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class TextBlock:
    """テキストブロック"""

    text: str


@dataclass(frozen=True)
class ImageBlock:
    """画像ブロック

    Attributes:
        media_type: MIME タイプ（例: image/png）
        data: base64 エンコードされた画像データ
    """

    media_type: str
    data: str


@dataclass(frozen=True)
class DocumentBlock:
    """ドキュメントブロック（PDF など）"""

    media_type: str
    data: str
    filename: str | None = None


@dataclass(frozen=True)
class ToolUseBlock:
    """モデルが要求したツール呼び出し"""

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResultBlock:
    """ツール実行結果"""

    tool_use_id: str
    content: str
    is_error: bool = False


ContentBlock = Union[TextBlock, ImageBlock, DocumentBlock, ToolUseBlock, ToolResultBlock]


@dataclass(frozen=True)
class ChatMessage:
    """プロバイダーに渡すメッセージ

    Attributes:
        role: 送信者ロール
        content: プレーンテキスト、またはコンテンツブロックのタプル
    """

    role: Role
    content: str | tuple[ContentBlock, ...]

    @classmethod
    def user(cls, content: str | tuple[ContentBlock, ...]) -> "ChatMessage":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str | tuple[ContentBlock, ...]) -> "ChatMessage":
        return cls(role=Role.ASSISTANT, content=content)

    @property
    def blocks(self) -> tuple[ContentBlock, ...]:
        """content をブロック列として返す"""
        if isinstance(self.content, str):
            return (TextBlock(self.content),)
        return self.content

    def text(self) -> str:
        """テキストブロックのみを連結した文字列

        ツール結果や画像は含まない。
        """
        if isinstance(self.content, str):
            return self.content
        return " ".join(
            block.text for block in self.content if isinstance(block, TextBlock)
        )


def block_to_dict(block: ContentBlock) -> dict[str, Any]:
    """コンテンツブロックを JSON 互換の dict に変換する

    Raises:
        TypeError: 未知のブロック型
    """
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, ImageBlock):
        return {"type": "image", "media_type": block.media_type, "data": block.data}
    if isinstance(block, DocumentBlock):
        return {
            "type": "document",
            "media_type": block.media_type,
            "data": block.data,
            "filename": block.filename,
        }
    if isinstance(block, ToolUseBlock):
        return {
            "type": "tool_use",
            "id": block.id,
            "name": block.name,
            "input": block.input,
        }
    if isinstance(block, ToolResultBlock):
        return {
            "type": "tool_result",
            "tool_use_id": block.tool_use_id,
            "content": block.content,
            "is_error": block.is_error,
        }
    raise TypeError(f"Unsupported content block: {type(block).__name__}")


def block_from_dict(data: dict[str, Any]) -> ContentBlock:
    """dict からコンテンツブロックを復元する

    Raises:
        ValueError: 未知の type
    """
    kind = data.get("type")
    if kind == "text":
        return TextBlock(text=data["text"])
    if kind == "image":
        return ImageBlock(media_type=data["media_type"], data=data["data"])
    if kind == "document":
        return DocumentBlock(
            media_type=data["media_type"],
            data=data["data"],
            filename=data.get("filename"),
        )
    if kind == "tool_use":
        return ToolUseBlock(id=data["id"], name=data["name"], input=data.get("input", {}))
    if kind == "tool_result":
        return ToolResultBlock(
            tool_use_id=data["tool_use_id"],
            content=data.get("content", ""),
            is_error=data.get("is_error", False),
        )
    raise ValueError(f"Unknown content block type: {kind!r}")


def serialize_content(content: str | tuple[ContentBlock, ...]) -> str:
    """永続化用にコンテンツを文字列化する

    プレーンテキストはそのまま、ブロック列は JSON 配列として保存する。
    """
    if isinstance(content, str):
        return content
    return json.dumps([block_to_dict(block) for block in content])


def deserialize_content(raw: str, structured: bool) -> str | tuple[ContentBlock, ...]:
    """serialize_content の逆変換"""
    if not structured:
        return raw
    return tuple(block_from_dict(item) for item in json.loads(raw))
