"""Domain repositories."""

from juicy.domain.repositories.attachment_summary_repository import (
    AttachmentSummaryRepository,
)
from juicy.domain.repositories.entity_state_repository import EntityStateRepository
from juicy.domain.repositories.message_repository import MessageRepository
from juicy.domain.repositories.participant_repository import (
    ParticipantRepository,
    UserContextRepository,
)
from juicy.domain.repositories.quota_store import QuotaStore
from juicy.domain.repositories.summary_repository import SummaryRepository

__all__ = [
    "AttachmentSummaryRepository",
    "EntityStateRepository",
    "MessageRepository",
    "ParticipantRepository",
    "QuotaStore",
    "SummaryRepository",
    "UserContextRepository",
]
