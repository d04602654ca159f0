"""Domain service protocols."""

from collections.abc import AsyncIterator, Sequence
from typing import Any, Protocol

from juicy.domain.entities.context import ModularPromptInfo, OptimizedContext
from juicy.domain.entities.events import ProviderEvent
from juicy.domain.entities.intents import DetectedIntents
from juicy.domain.entities.message import StoredMessage
from juicy.domain.entities.request import ProviderRequest
from juicy.domain.entities.summary import AttachmentInput, GeneratedSummary


class LLMProvider(Protocol):
    """Streaming LLM backend abstraction.

    Exactly one provider is active at a time. It is resolved once from
    configuration and injected wherever a model call is made.
    """

    def stream(self, request: ProviderRequest) -> AsyncIterator[ProviderEvent]:
        """Stream one model turn.

        Yields zero or more TextDelta and ToolCallRequest events followed by
        exactly one TurnUsage event. Tool-call arguments are already parsed;
        calls whose arguments could not be parsed are dropped.

        Args:
            request: Provider request.

        Yields:
            Provider events in arrival order.

        Raises:
            LLMError: Network or upstream failure.
        """
        ...


class ToolExecutor(Protocol):
    """Tool execution dispatcher."""

    async def execute(self, name: str, tool_input: dict[str, Any]) -> Any:
        """Execute a tool.

        Args:
            name: Tool name.
            tool_input: Parsed tool arguments.

        Returns:
            Tool result (str or JSON-serializable value).

        Raises:
            Exception: Any failure. The caller converts it into an
                error-flagged tool result.
        """
        ...


class SummaryGenerator(Protocol):
    """Conversation summary generation abstraction."""

    async def generate(
        self,
        messages: Sequence[StoredMessage],
        existing_summary: str | None = None,
    ) -> GeneratedSummary:
        """Summarize a message batch, merging into an existing summary.

        Args:
            messages: Messages to summarize, oldest first.
            existing_summary: Latest summary text for anchored merge.

        Returns:
            Generated summary with all mandatory sections.
        """
        ...


class AttachmentAnalyzer(Protocol):
    """Attachment summary generation abstraction."""

    async def analyze(self, attachment: AttachmentInput) -> GeneratedSummary:
        """Summarize an uploaded image or document.

        Args:
            attachment: Attachment to analyze.

        Returns:
            Generated summary.
        """
        ...


class SystemPromptBuilder(Protocol):
    """System prompt rendering abstraction."""

    def modular_prompt_info(self, intents: DetectedIntents) -> ModularPromptInfo:
        """Describe the knowledge modules a prompt for the intents contains."""
        ...

    def build(
        self,
        intents: DetectedIntents,
        context: OptimizedContext | None = None,
        base_prompt: str | None = None,
        summary_in_messages: bool = False,
    ) -> str:
        """Render the system prompt.

        Args:
            intents: Detected intents for the turn.
            context: Orchestrated context, or None.
            base_prompt: Replacement for the base prompt.
            summary_in_messages: The summary was placed into the messages.

        Returns:
            System prompt text.
        """
        ...
