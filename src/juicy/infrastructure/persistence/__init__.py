"""Persistence infrastructure."""

from juicy.infrastructure.persistence.attachment_summary_repository import (
    SQLiteAttachmentSummaryRepository,
)
from juicy.infrastructure.persistence.database import DatabaseManager
from juicy.infrastructure.persistence.entity_state_repository import (
    SQLiteEntityStateRepository,
)
from juicy.infrastructure.persistence.exceptions import (
    CorruptRecordError,
    DatabaseError,
    PersistenceError,
)
from juicy.infrastructure.persistence.message_repository import (
    SQLiteMessageRepository,
)
from juicy.infrastructure.persistence.participant_repository import (
    SQLiteParticipantRepository,
    SQLiteUserContextRepository,
)
from juicy.infrastructure.persistence.quota_store import (
    InMemoryQuotaStore,
    SQLiteQuotaStore,
)
from juicy.infrastructure.persistence.summary_repository import (
    SQLiteSummaryRepository,
)

__all__ = [
    "CorruptRecordError",
    "DatabaseError",
    "DatabaseManager",
    "InMemoryQuotaStore",
    "PersistenceError",
    "SQLiteAttachmentSummaryRepository",
    "SQLiteEntityStateRepository",
    "SQLiteMessageRepository",
    "SQLiteParticipantRepository",
    "SQLiteQuotaStore",
    "SQLiteSummaryRepository",
    "SQLiteUserContextRepository",
]
