"""Pydantic models for strands-agents structured output."""

from pydantic import BaseModel, Field

from juicy.domain.entities.summary import StructuredSummary


class StructuredSummaryOutput(BaseModel):
    """Output model for conversation summaries.

    Every section is required so that an omitted section is a validation
    failure rather than lost information.
    """

    key_decisions: list[str] = Field(
        description=(
            "Every decision made, with who decided and the exact value chosen. "
            "Empty list if none in this segment."
        )
    )
    project_design: list[str] = Field(
        description=(
            "Concrete project parameters discussed (tiers, rates, chains, "
            "addresses, splits), including tentative values."
        )
    )
    artifact_references: list[str] = Field(
        description="Files, documents, links and images mentioned, with exact names."
    )
    pending_items: list[str] = Field(
        description="Unanswered questions and follow-ups, with who needs to answer."
    )
    context_summary: str = Field(
        description="2-3 sentence narrative of where the conversation left off."
    )

    def to_entity(self) -> StructuredSummary:
        return StructuredSummary(
            key_decisions=tuple(self.key_decisions),
            project_design=tuple(self.project_design),
            artifact_references=tuple(self.artifact_references),
            pending_items=tuple(self.pending_items),
            context_summary=self.context_summary,
        )
