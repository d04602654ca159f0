"""Common fixtures for application layer tests."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from juicy.domain.entities import Role, StoredMessage

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def create_messages(
    count: int,
    chat_id: str = "chat-1",
    tokens: int | list[int] = 10,
    start: datetime = BASE_TIME,
) -> list[StoredMessage]:
    """Create alternating user / assistant messages one minute apart."""
    token_counts = tokens if isinstance(tokens, list) else [tokens] * count
    return [
        StoredMessage(
            id=f"m{i:03d}",
            chat_id=chat_id,
            role=Role.USER if i % 2 == 0 else Role.ASSISTANT,
            content=f"message {i}",
            created_at=start + timedelta(minutes=i),
            token_count=token_counts[i],
        )
        for i in range(count)
    ]


@pytest.fixture
def message_repository() -> Mock:
    """Create mock MessageRepository."""
    repo = Mock()
    repo.save = AsyncMock()
    repo.find_by_id = AsyncMock(return_value=None)
    repo.find_recent = AsyncMock(return_value=[])
    repo.find_after = AsyncMock(return_value=[])
    repo.count_after = AsyncMock(return_value=0)
    return repo


@pytest.fixture
def entity_state_repository() -> Mock:
    """Create mock EntityStateRepository."""
    repo = Mock()
    repo.get = AsyncMock(return_value=None)
    repo.save = AsyncMock()
    return repo


@pytest.fixture
def summary_repository() -> Mock:
    """Create mock SummaryRepository."""
    repo = Mock()
    repo.save = AsyncMock(side_effect=lambda summary: summary)
    repo.find_latest = AsyncMock(return_value=None)
    repo.find_all = AsyncMock(return_value=[])
    repo.get_last_summarized_message_id = AsyncMock(return_value=None)
    repo.set_last_summarized_message_id = AsyncMock()
    return repo


@pytest.fixture
def attachment_summary_repository() -> Mock:
    """Create mock AttachmentSummaryRepository."""
    repo = Mock()
    repo.save = AsyncMock(side_effect=lambda summary: summary)
    repo.find = AsyncMock(return_value=None)
    repo.find_by_chat = AsyncMock(return_value=[])
    repo.find_by_message = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def participant_repository() -> Mock:
    """Create mock ParticipantRepository."""
    repo = Mock()
    repo.find_active = AsyncMock(return_value=[])
    repo.add = AsyncMock()
    return repo


@pytest.fixture
def user_context_repository() -> Mock:
    """Create mock UserContextRepository."""
    repo = Mock()
    repo.get = AsyncMock(return_value=None)
    repo.save = AsyncMock()
    return repo


@pytest.fixture
def make_messages():
    """Factory fixture for create_messages."""
    return create_messages
