"""StrandsSummaryGenerator implementation."""

import logging
from collections.abc import Sequence

from strands import Agent
from strands.models.litellm import LiteLLMModel

from juicy.config.models import SummarizationConfig
from juicy.domain.entities.message import StoredMessage
from juicy.domain.entities.summary import GeneratedSummary
from juicy.infrastructure.llm.strands.exceptions import map_strands_exception
from juicy.infrastructure.llm.strands.models import StructuredSummaryOutput
from juicy.infrastructure.llm.strands.usage import output_tokens
from juicy.infrastructure.llm.templates import create_jinja_env

logger = logging.getLogger(__name__)


class StrandsSummaryGenerator:
    """strands-agents based SummaryGenerator implementation.

    Uses Structured Output so that every summary section is present.
    The Model is reused across requests; a new Agent is created per request.
    """

    def __init__(
        self,
        model: LiteLLMModel,
        config: SummarizationConfig | None = None,
        model_name: str | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            model: LiteLLMModel instance to be reused across requests.
            config: Summarization configuration.
            model_name: Model ID recorded on generated summaries.
        """
        self._model = model
        self._config = config or SummarizationConfig()
        self._model_name = model_name
        self._jinja_env = create_jinja_env()
        self._system_template = self._jinja_env.get_template("summary_system.j2")
        self._query_template = self._jinja_env.get_template("summary_query.j2")

    async def generate(
        self,
        messages: Sequence[StoredMessage],
        existing_summary: str | None = None,
    ) -> GeneratedSummary:
        """Summarize messages, merging into the existing summary if given.

        Args:
            messages: Messages to summarize, oldest first.
            existing_summary: Latest summary text for anchored merge.

        Returns:
            GeneratedSummary rendered as markdown with all sections.

        Raises:
            LLMError: If generation fails.
        """
        query_prompt = self.build_query_prompt(messages, existing_summary)
        agent = Agent(
            model=self._model,
            system_prompt=self._system_template.render(),
        )

        try:
            result = await agent.invoke_async(
                query_prompt,
                structured_output_model=StructuredSummaryOutput,
            )
            output = result.structured_output
            if not isinstance(output, StructuredSummaryOutput):
                raise ValueError(
                    f"Expected StructuredSummaryOutput but got {type(output).__name__}"
                )
        except Exception as e:
            raise map_strands_exception(e)

        text = output.to_entity().to_markdown()
        return GeneratedSummary(
            text=text,
            token_count=output_tokens(result),
            model=self._model_name,
        )

    def build_query_prompt(
        self,
        messages: Sequence[StoredMessage],
        existing_summary: str | None = None,
    ) -> str:
        """Build query prompt.

        Args:
            messages: Messages to summarize.
            existing_summary: Latest summary text, or None.

        Returns:
            Rendered query prompt string.
        """
        return self._query_template.render(
            messages=messages,
            existing_summary=existing_summary,
            max_message_chars=self._config.max_message_chars,
        )
