"""Tests for message content blocks."""

import pytest

from juicy.domain.entities import (
    ChatMessage,
    DocumentBlock,
    ImageBlock,
    Role,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from juicy.domain.entities.content import (
    block_from_dict,
    block_to_dict,
    deserialize_content,
    serialize_content,
)


class TestChatMessage:
    """ChatMessage のテスト"""

    def test_user_factory(self) -> None:
        """user() は USER ロールのメッセージを作る"""
        message = ChatMessage.user("hello")
        assert message.role == Role.USER
        assert message.content == "hello"

    def test_blocks_from_plain_text(self) -> None:
        """プレーンテキストは1つの TextBlock として扱う"""
        assert ChatMessage.assistant("hi").blocks == (TextBlock("hi"),)

    def test_text_ignores_non_text_blocks(self) -> None:
        """text() はテキストブロックのみを連結する"""
        message = ChatMessage.user(
            (
                TextBlock("look at"),
                ImageBlock(media_type="image/png", data="aGVsbG8="),
                TextBlock("this"),
                ToolResultBlock(tool_use_id="t1", content="ignored"),
            )
        )
        assert message.text() == "look at this"


class TestSerialization:
    """コンテンツの永続化形式のテスト"""

    def test_plain_text_is_stored_as_is(self) -> None:
        """プレーンテキストはそのまま保存される"""
        assert serialize_content("hello") == "hello"
        assert deserialize_content("hello", structured=False) == "hello"

    def test_structured_content(self) -> None:
        """ブロック列は JSON として保存され、同じブロック列に戻る"""
        content = (
            TextBlock("see attached"),
            DocumentBlock(media_type="application/pdf", data="JVBERi0=", filename="plan.pdf"),
            ToolUseBlock(id="call_1", name="search", input={"q": "revnet"}),
            ToolResultBlock(tool_use_id="call_1", content="3 results", is_error=False),
        )
        raw = serialize_content(content)
        assert raw.startswith("[")
        assert deserialize_content(raw, structured=True) == content

    def test_block_to_dict_tool_result(self) -> None:
        """ToolResultBlock は is_error を含む"""
        data = block_to_dict(ToolResultBlock(tool_use_id="t", content="x", is_error=True))
        assert data == {
            "type": "tool_result",
            "tool_use_id": "t",
            "content": "x",
            "is_error": True,
        }

    def test_unknown_block_type(self) -> None:
        """未知の type は ValueError"""
        with pytest.raises(ValueError):
            block_from_dict({"type": "audio"})
