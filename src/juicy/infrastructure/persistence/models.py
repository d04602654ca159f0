"""SQLModel table definitions."""

from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageModel(SQLModel, table=True):
    """メッセージテーブル"""

    __tablename__ = "messages"

    id: str = Field(primary_key=True)
    chat_id: str = Field(index=True)
    role: str
    content: str
    structured: bool = False  # content が JSON のブロック列かどうか
    sender_address: str | None = None
    token_count: int | None = None
    created_at: datetime = Field(default_factory=_utcnow, index=True)
    deleted_at: datetime | None = None


class EntityStateModel(SQLModel, table=True):
    """エンティティ状態テーブル（会話ごとに1行）"""

    __tablename__ = "entity_states"

    chat_id: str = Field(primary_key=True)
    state: str  # JSON
    schema_version: int = 1
    updated_at: datetime = Field(default_factory=_utcnow)


class ChatSummaryModel(SQLModel, table=True):
    """要約テーブル（追記のみ）"""

    __tablename__ = "chat_summaries"

    id: int | None = Field(default=None, primary_key=True)
    chat_id: str = Field(index=True)
    summary_text: str
    covers_from_message_id: str
    covers_to_message_id: str
    covers_from_timestamp: datetime
    covers_to_timestamp: datetime
    message_count: int
    original_token_count: int
    summary_token_count: int
    model_used: str | None = None
    created_at: datetime = Field(default_factory=_utcnow, index=True)


class SummaryPointerModel(SQLModel, table=True):
    """最後に要約したメッセージのポインタ"""

    __tablename__ = "summary_pointers"

    chat_id: str = Field(primary_key=True)
    last_summarized_message_id: str
    updated_at: datetime = Field(default_factory=_utcnow)


class AttachmentSummaryModel(SQLModel, table=True):
    """添付要約テーブル"""

    __tablename__ = "attachment_summaries"

    id: int | None = Field(default=None, primary_key=True)
    message_id: str = Field(index=True)
    chat_id: str = Field(index=True)
    attachment_index: int
    filename: str | None = None
    mime_type: str | None = None
    summary_text: str
    extracted_data: str = "{}"  # JSON
    token_count: int
    model_used: str | None = None
    created_at: datetime = Field(default_factory=_utcnow, index=True)

    __table_args__ = (
        UniqueConstraint(
            "message_id", "attachment_index", name="uq_attachment_message_index"
        ),
    )


class ParticipantModel(SQLModel, table=True):
    """会話参加者テーブル"""

    __tablename__ = "chat_participants"

    id: int | None = Field(default=None, primary_key=True)
    chat_id: str = Field(index=True)
    address: str
    user_id: str | None = None
    role: str = "member"
    display_name: str | None = None
    active: bool = True
    joined_at: datetime = Field(default_factory=_utcnow)

    __table_args__ = (
        UniqueConstraint("chat_id", "address", name="uq_participant_chat_address"),
    )


class UserContextModel(SQLModel, table=True):
    """ユーザーコンテキストテーブル"""

    __tablename__ = "user_contexts"

    user_id: str = Field(primary_key=True)
    experience_level: str = "beginner"
    familiar_terms: str = "[]"  # JSON
    preferences: str = "[]"  # JSON
    observations: str = "[]"  # JSON
    updated_at: datetime = Field(default_factory=_utcnow)


class QuotaUsageModel(SQLModel, table=True):
    """レート制限カウンタ（ユーザー × ウィンドウ）"""

    __tablename__ = "quota_usage"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    window_start: datetime
    request_count: int = 0
    token_count: int = 0

    __table_args__ = (
        UniqueConstraint("user_id", "window_start", name="uq_quota_user_window"),
    )
