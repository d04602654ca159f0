"""Common fixtures for LLM infrastructure tests."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from juicy.domain.entities import Role, StoredMessage


@pytest.fixture
def timestamp() -> datetime:
    """Create test timestamp."""
    return datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def stored_messages(timestamp: datetime) -> list[StoredMessage]:
    """Create a short user / assistant exchange."""
    texts = [
        (Role.USER, "Let's raise 50000 USDC on Base"),
        (Role.ASSISTANT, "Great. Should the reserved rate be 20%?"),
        (Role.USER, "Yes, 20% reserved"),
    ]
    return [
        StoredMessage(
            id=f"m{i}",
            chat_id="chat-1",
            role=role,
            content=text,
            created_at=timestamp + timedelta(minutes=i),
        )
        for i, (role, text) in enumerate(texts)
    ]


def create_mock_result(text: str = "", output_tokens: int = 0) -> MagicMock:
    """Create a mock Agent result."""
    result = MagicMock()
    result.__str__ = MagicMock(return_value=text)
    result.metrics.get_summary.return_value = {
        "accumulated_usage": {"outputTokens": output_tokens}
    }
    return result


@pytest.fixture
def mock_result_factory():
    """Factory fixture for create_mock_result."""
    return create_mock_result
