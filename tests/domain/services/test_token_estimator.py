"""Tests for token estimation."""

import pytest

from juicy.domain.entities import (
    DocumentBlock,
    ImageBlock,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from juicy.domain.services import estimate_content_tokens, estimate_tokens
from juicy.domain.services.token_estimator import (
    DOCUMENT_TOKEN_ESTIMATE,
    IMAGE_TOKEN_ESTIMATE,
)


class TestEstimateTokens:
    """estimate_tokens のテスト"""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            (None, 0),
            ("", 0),
            ("a", 1),
            ("abcd", 1),
            ("abcde", 2),
            ("x" * 400, 100),
        ],
    )
    def test_ceil_of_quarter_length(self, text: str | None, expected: int) -> None:
        """文字数 / 4 の切り上げ"""
        assert estimate_tokens(text) == expected


class TestEstimateContentTokens:
    """estimate_content_tokens のテスト"""

    def test_plain_text(self) -> None:
        assert estimate_content_tokens("x" * 8) == 2

    def test_blocks(self) -> None:
        """画像とドキュメントは固定値で見積もる"""
        content = (
            TextBlock("x" * 8),
            ImageBlock(media_type="image/png", data="A" * 100000),
            DocumentBlock(media_type="application/pdf", data="A" * 10),
            ToolResultBlock(tool_use_id="t", content="x" * 4),
        )
        assert estimate_content_tokens(content) == (
            2 + IMAGE_TOKEN_ESTIMATE + DOCUMENT_TOKEN_ESTIMATE + 1
        )

    def test_tool_use_counts_name_and_input(self) -> None:
        block = ToolUseBlock(id="t", name="abcd", input={})
        assert estimate_content_tokens((block,)) == 1 + 1
