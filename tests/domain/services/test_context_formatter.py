"""Tests for context layer formatting."""

from datetime import datetime, timezone

from juicy.domain.entities import (
    AnchoredSummary,
    AttachmentSummary,
    DesignPhase,
    EntityState,
    ExperienceLevel,
    Participant,
    UserContext,
)
from juicy.domain.entities.entity_state import RulesetConfig, Tier
from juicy.domain.services.context_formatter import (
    clip_to_tokens,
    format_address,
    format_attachment_summaries,
    format_entity_state,
    format_participants,
    format_summaries,
    format_user_context,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestFormatAddress:
    def test_shortens(self) -> None:
        assert format_address("0x1234567890abcdef") == "0x1234...cdef"

    def test_short_value_unchanged(self) -> None:
        assert format_address("0x1234") == "0x1234"


class TestFormatEntityState:
    """format_entity_state のテスト"""

    def test_phase_only(self) -> None:
        text = format_entity_state(EntityState(chat_id="c1"))
        assert text == "**Phase:** Discovery (exploring requirements)"

    def test_full_state(self) -> None:
        state = EntityState(
            chat_id="c1",
            design_phase=DesignPhase.CONFIGURATION,
            project_name="Garden",
            funding_goal="5000",
            funding_currency="USDC",
            target_chains=(1, 999),
            ruleset=RulesetConfig(reserved_percent=10, duration=0),
            tiers=(Tier(name="Seed", price="10 USDC", description="Early"),),
            pending_questions=("Which chain?",),
        )

        text = format_entity_state(state)

        assert "**Pending Questions:** 1" in text
        assert "- **Name:** Garden" in text
        assert "- **Goal:** 5000 USDC" in text
        assert "- **Chains:** Ethereum, Chain 999" in text
        assert "- Reserved rate: 10%" in text
        assert "- Cycle duration: Unlimited" in text
        assert "1. **Seed** - 10 USDC: Early" in text
        assert "- [ ] Which chain?" in text


class TestFormatParticipants:
    def test_single_participant(self) -> None:
        """1人以下の会話では None"""
        assert format_participants([Participant(address="0xabc")]) is None

    def test_multiple_participants(self) -> None:
        text = format_participants(
            [
                Participant(address="0x" + "1" * 40, role="founder", display_name="Ana"),
                Participant(address="0x" + "2" * 40),
            ]
        )
        assert text is not None
        assert "- Ana (founder)" in text
        assert "- 0x2222...2222" in text


class TestFormatUserContext:
    def test_block(self) -> None:
        text = format_user_context(
            UserContext(
                user_id="u1",
                experience_level=ExperienceLevel.ADVANCED,
                familiar_terms=("ruleset",),
                preferences=("short answers",),
            )
        )
        assert text.startswith("<user-context>")
        assert "- Jargon level: advanced" in text
        assert "- Familiar terms: ruleset" in text
        assert "- short answers" in text
        assert "## Observations" not in text


class TestFormatSummaries:
    def test_header(self) -> None:
        summary = AnchoredSummary(
            chat_id="c1",
            summary_text="## Key Decisions\n- Base",
            covers_from_message_id="m1",
            covers_to_message_id="m9",
            covers_from_timestamp=NOW,
            covers_to_timestamp=NOW,
            message_count=9,
            original_token_count=900,
            summary_token_count=10,
            created_at=NOW,
        )
        text = format_summaries([summary])
        assert text.startswith("# Previous Context (Summarized)")
        assert "_Summarized from 9 messages_" in text
        assert "- Base" in text

    def test_attachments(self) -> None:
        summary = AttachmentSummary(
            message_id="m1",
            chat_id="c1",
            attachment_index=0,
            summary_text="A pitch deck",
            token_count=3,
            created_at=NOW,
            filename="deck.pdf",
        )
        text = format_attachment_summaries([summary])
        assert text.startswith("# Uploaded Documents")
        assert "## deck.pdf" in text
        assert format_attachment_summaries([]) == ""


class TestClipToTokens:
    def test_clips(self) -> None:
        assert clip_to_tokens("x" * 100, 10) == "x" * 40

    def test_short_text_unchanged(self) -> None:
        assert clip_to_tokens("abc", 10) == "abc"
