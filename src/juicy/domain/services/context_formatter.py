"""Prompt text formatting for the context layers."""

from collections.abc import Sequence

from juicy.domain.entities.entity_state import EntityState
from juicy.domain.entities.participant import Participant, UserContext
from juicy.domain.entities.summary import AnchoredSummary, AttachmentSummary
from juicy.domain.services.token_estimator import CHARS_PER_TOKEN

PHASE_LABELS = {
    "discovery": "Discovery (exploring requirements)",
    "configuration": "Configuration (setting parameters)",
    "review": "Review (confirming settings)",
    "ready": "Ready (awaiting deployment)",
}

CHAIN_NAMES = {
    1: "Ethereum",
    10: "Optimism",
    8453: "Base",
    42161: "Arbitrum",
    11155111: "Sepolia",
}


def format_address(address: str) -> str:
    """0x1234...abcd 形式に短縮する"""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def chain_name(chain_id: int) -> str:
    return CHAIN_NAMES.get(chain_id, f"Chain {chain_id}")


def _format_number(value: float) -> str:
    return f"{value:g}"


def format_entity_state(state: EntityState) -> str:
    """エンティティ状態をプロンプト用の Markdown に整形する

    Args:
        state: エンティティ状態

    Returns:
        整形済みテキスト
    """
    lines = [
        f"**Phase:** {PHASE_LABELS.get(state.design_phase.value, state.design_phase.value)}"
    ]
    if state.pending_questions:
        lines.append(f"**Pending Questions:** {len(state.pending_questions)}")

    if state.project_name or state.project_type or state.funding_goal:
        lines.append("\n## Confirmed Decisions")
        if state.project_name:
            lines.append(f"- **Name:** {state.project_name}")
        if state.project_type:
            lines.append(f"- **Type:** {state.project_type}")
        if state.funding_goal:
            currency = f" {state.funding_currency}" if state.funding_currency else ""
            lines.append(f"- **Goal:** {state.funding_goal}{currency}")
        if state.target_chains:
            chains = ", ".join(chain_name(c) for c in state.target_chains)
            lines.append(f"- **Chains:** {chains}")
        if state.owner_address:
            lines.append(f"- **Owner:** {format_address(state.owner_address)}")
        for decision in state.confirmed_decisions:
            lines.append(f"- {decision}")

    ruleset = state.ruleset
    if not ruleset.is_empty():
        lines.append("\n## Ruleset Configuration")
        if ruleset.reserved_percent is not None:
            lines.append(f"- Reserved rate: {_format_number(ruleset.reserved_percent)}%")
        if ruleset.cash_out_tax_rate is not None:
            lines.append(f"- Cash out tax: {_format_number(ruleset.cash_out_tax_rate)}%")
        if ruleset.duration is not None:
            duration = (
                "Unlimited"
                if ruleset.duration == 0
                else f"{_format_number(ruleset.duration / 86400)} days"
            )
            lines.append(f"- Cycle duration: {duration}")
        if ruleset.decay_percent is not None:
            lines.append(
                f"- Issuance decay: {_format_number(ruleset.decay_percent)}% per cycle"
            )
        if ruleset.payout_limit:
            lines.append(f"- Payout limit: {ruleset.payout_limit}")

    if state.tiers:
        lines.append("\n## Contribution Tiers")
        for i, tier in enumerate(state.tiers, start=1):
            description = f": {tier.description}" if tier.description else ""
            lines.append(f"{i}. **{tier.name}** - {tier.price}{description}")

    if state.payout_splits:
        lines.append("\n## Payout Splits")
        for split in state.payout_splits:
            lines.append(
                f"- {format_address(split.address)}: {_format_number(split.percent)}%"
            )

    if state.pending_questions:
        lines.append("\n## Pending Questions")
        for question in state.pending_questions:
            lines.append(f"- [ ] {question}")

    if state.artifacts:
        lines.append("\n## Referenced Materials")
        for artifact in state.artifacts:
            summary = f": {artifact.summary}" if artifact.summary else ""
            lines.append(f"- **{artifact.name}** ({artifact.type}){summary}")

    return "\n".join(lines)


def format_participants(participants: Sequence[Participant]) -> str | None:
    """参加者一覧を整形する

    参加者が1人以下の会話では None を返す。
    """
    if len(participants) <= 1:
        return None

    lines = ["# Chat Participants", ""]
    for participant in participants:
        name = participant.display_name or format_address(participant.address)
        label = {"founder": "(founder)", "admin": "(admin)"}.get(participant.role, "")
        lines.append(f"- {name} {label}".rstrip())
    lines.append("")
    lines.append(
        "_Address messages appropriately. Reference participants by name when relevant._"
    )
    return "\n".join(lines)


def format_user_context(context: UserContext) -> str:
    """ユーザーコンテキストを <user-context> ブロックに整形する"""
    familiar = ", ".join(context.familiar_terms) or "none yet"
    lines = [
        "<user-context>",
        "# User Context",
        "",
        "## Communication Style",
        f"- Jargon level: {context.experience_level.value}",
        f"- Familiar terms: {familiar}",
    ]
    if context.preferences:
        lines.append("")
        lines.append("## Explicit Preferences")
        lines.extend(f"- {p}" for p in context.preferences)
    if context.observations:
        lines.append("")
        lines.append("## Observations")
        lines.extend(f"- {o}" for o in context.observations)
    lines.append("</user-context>")
    lines.append("")
    lines.append(
        "Follow the communication style above. Match the user's jargon level."
    )
    return "\n".join(lines)


def format_summaries(summaries: Sequence[AnchoredSummary]) -> str:
    """要約をコンテキスト挿入用に整形する"""
    lines = ["# Previous Context (Summarized)", ""]
    for summary in summaries:
        lines.append(f"_Summarized from {summary.message_count} messages_")
        lines.append("")
        lines.append(summary.summary_text)
    return "\n".join(lines)


def format_attachment_summaries(summaries: Sequence[AttachmentSummary]) -> str:
    """添付要約をシステムプロンプト用に整形する"""
    if not summaries:
        return ""
    lines = ["# Uploaded Documents", ""]
    for summary in summaries:
        lines.append(f"## {summary.filename or 'Attachment'}")
        lines.append("")
        lines.append(summary.summary_text)
        lines.append("")
    return "\n".join(lines)


def clip_to_tokens(text: str, max_tokens: int) -> str:
    """推定トークン数が max_tokens を超えないよう末尾を切り詰める"""
    limit = max_tokens * CHARS_PER_TOKEN
    if len(text) <= limit:
        return text
    return text[:limit]
