"""Invoke agent use case."""

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from dataclasses import dataclass, replace

from juicy.application.services.agentic_loop import AgenticLoop
from juicy.application.services.context_orchestrator import (
    ContextOrchestrator,
    format_messages_for_provider,
)
from juicy.application.services.summarization import SummarizationEngine
from juicy.domain.entities.content import ChatMessage
from juicy.domain.entities.context import OptimizedContext
from juicy.domain.entities.events import AgentEvent
from juicy.domain.entities.intents import DetectedIntents
from juicy.domain.entities.tool import ToolDefinition
from juicy.domain.repositories import UserContextRepository
from juicy.domain.services import (
    ModelTiers,
    SystemPromptBuilder,
    detect_intents,
    detect_intents_with_context,
    select_model,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvokeAgentRequest:
    """エージェント呼び出しリクエスト

    Attributes:
        messages: メッセージ列（空なら会話履歴から組み立てる）
        chat_id: 会話 ID（指定時はコンテキストを構築する）
        user_id: ユーザー ID
        system: ベースプロンプトの置き換え
        model: モデルの明示指定（"fast" / "strong" またはモデル ID）
        max_iterations: 反復上限の上書き
        api_key: 持ち込み API キー（指定時はレート制限を行わない）
    """

    messages: tuple[ChatMessage, ...] = ()
    chat_id: str | None = None
    user_id: str | None = None
    system: str | None = None
    model: str | None = None
    max_iterations: int | None = None
    api_key: str | None = None


class InvokeAgentUseCase:
    """Use case for one streaming agent invocation.

    Wires intent detection, context orchestration, prompt rendering and
    model selection into the agentic loop, then checks whether the
    conversation backlog needs summarizing.
    """

    def __init__(
        self,
        orchestrator: ContextOrchestrator,
        loop: AgenticLoop,
        prompt_builder: SystemPromptBuilder,
        summarization: SummarizationEngine,
        user_context_repository: UserContextRepository,
        tiers: ModelTiers,
        tools: tuple[ToolDefinition, ...] = (),
    ) -> None:
        """Initialize the use case.

        Args:
            orchestrator: Context orchestrator.
            loop: Agentic loop.
            prompt_builder: System prompt renderer.
            summarization: Summarization engine.
            user_context_repository: User context lookup (experience level).
            tiers: Fast and strong model IDs of the active provider.
            tools: Tools offered to the model.
        """
        self._orchestrator = orchestrator
        self._loop = loop
        self._prompt_builder = prompt_builder
        self._summarization = summarization
        self._user_contexts = user_context_repository
        self._tiers = tiers
        self._tools = tools

    async def _prepare(
        self,
        chat_id: str,
        user_id: str | None,
        messages: list[ChatMessage],
    ) -> tuple[OptimizedContext, DetectedIntents, list[ChatMessage], bool]:
        """Build the context and detect intents for a conversation."""
        context = await self._orchestrator.build(chat_id, user_id)

        summary_in_messages = False
        if not messages:
            messages, summary_in_messages = format_messages_for_provider(context)

        user_context = await self._user_contexts.get(user_id) if user_id else None
        intents = detect_intents_with_context(
            messages,
            context.entity_state,
            user_context.experience_level if user_context else None,
        )
        context = replace(
            context,
            metadata=replace(
                context.metadata,
                modular_prompt=self._prompt_builder.modular_prompt_info(intents),
            ),
        )
        return context, intents, messages, summary_in_messages

    async def preview(self, chat_id: str, user_id: str | None = None) -> OptimizedContext:
        """Build the context for a conversation without calling a model.

        Args:
            chat_id: Conversation ID.
            user_id: User ID.

        Returns:
            The context that the next invocation would use.
        """
        context, _, _, _ = await self._prepare(chat_id, user_id, [])
        return context

    async def execute(self, request: InvokeAgentRequest) -> AsyncIterator[AgentEvent]:
        """Execute the use case.

        Processing flow:
        1. Build the context and detect intents
        2. Render the system prompt
        3. Select the model
        4. Run the agentic loop, streaming its events
        5. Check the summarization trigger

        Args:
            request: Invocation request.

        Yields:
            Agent events.

        Raises:
            QuotaExceededError: The user is over quota.
        """
        # 1. Build the context and detect intents
        messages = list(request.messages)
        context: OptimizedContext | None = None
        summary_in_messages = False
        if request.chat_id:
            context, intents, messages, summary_in_messages = await self._prepare(
                request.chat_id, request.user_id, messages
            )
        else:
            intents = detect_intents(messages)
        logger.info("Detected intents: %s", ", ".join(intents.reasons) or "none")

        if not messages:
            logger.warning("No messages to send for chat %s", request.chat_id)
            return

        # 2. Render the system prompt
        system = self._prompt_builder.build(
            intents,
            context=context,
            base_prompt=request.system,
            summary_in_messages=summary_in_messages,
        )

        # 3. Select the model
        choice = select_model(messages, self._tools, self._tiers, request.model)
        logger.info("Selected model %s (%s)", choice.model, choice.reason)

        # 4. Run the agentic loop
        async with aclosing(
            self._loop.run(
                messages,
                model=choice.model,
                system=system,
                tools=self._tools,
                max_iterations=request.max_iterations,
                chat_id=request.chat_id,
                user_id=request.user_id,
                api_key=request.api_key,
            )
        ) as events:
            async for event in events:
                yield event

        # 5. Check the summarization trigger
        if request.chat_id:
            await self._check_summarization(request.chat_id)

    async def _check_summarization(self, chat_id: str) -> None:
        try:
            triggered = await self._summarization.check_and_trigger(chat_id)
        except Exception:
            logger.exception("Summarization check failed for chat %s", chat_id)
            return
        if triggered:
            logger.info("Summarization triggered for chat %s", chat_id)
