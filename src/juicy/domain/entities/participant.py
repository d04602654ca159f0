"""Chat participant and user context entities."""

from dataclasses import dataclass
from enum import Enum


class ExperienceLevel(Enum):
    """ユーザーの習熟度（専門用語への慣れ）"""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class Participant:
    """マルチユーザー会話の参加者

    Attributes:
        address: ウォレットアドレス
        role: founder / admin / member
        display_name: 表示名
        user_id: 登録ユーザーの ID
    """

    address: str
    role: str = "member"
    display_name: str | None = None
    user_id: str | None = None


@dataclass(frozen=True)
class UserContext:
    """ユーザーごとのコミュニケーション設定

    Attributes:
        user_id: ユーザー ID
        experience_level: 習熟度
        familiar_terms: ユーザーが使ったことのある専門用語
        preferences: 明示的に伝えられた希望
        observations: 会話から観察された特徴
    """

    user_id: str
    experience_level: ExperienceLevel = ExperienceLevel.BEGINNER
    familiar_terms: tuple[str, ...] = ()
    preferences: tuple[str, ...] = ()
    observations: tuple[str, ...] = ()
