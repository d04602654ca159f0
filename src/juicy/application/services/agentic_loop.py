"""Provider-agnostic agentic loop with tool execution between turns."""

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from datetime import datetime, timezone
from typing import Any

from juicy.application.services.metrics import MetricsRecorder
from juicy.config.models import AgentConfig
from juicy.domain.entities.content import (
    ChatMessage,
    ContentBlock,
    Role,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from juicy.domain.entities.events import (
    AgentEvent,
    ErrorEvent,
    LoopState,
    StopReason,
    TextDelta,
    TextEvent,
    ToolCallRequest,
    ToolRequestedEvent,
    ToolResultEvent,
    ToolUseEvent,
    TurnUsage,
    UsageSummaryEvent,
)
from juicy.domain.entities.metrics import InvocationEvent, ToolUsageEvent
from juicy.domain.entities.request import ProviderRequest
from juicy.domain.entities.tool import ToolCall, ToolDefinition, ToolResult
from juicy.domain.exceptions import QuotaExceededError
from juicy.domain.repositories import QuotaStore
from juicy.domain.services.protocols import LLMProvider, ToolExecutor
from juicy.infrastructure.llm.exceptions import LLMError

logger = logging.getLogger(__name__)


def _stringify(output: Any) -> str:
    if isinstance(output, str):
        return output
    return json.dumps(output, default=str, ensure_ascii=False)


def _last_user_text(messages: Sequence[ChatMessage]) -> str:
    for message in reversed(messages):
        if message.role == Role.USER:
            return message.text()
    return ""


class AgenticLoop:
    """Drives provider turns and executes requested tools between them.

    One call to ``run`` is one invocation. Tools run sequentially in the
    order the model requested them and every tool failure is fed back to
    the model as an error-flagged result. The loop stops when a turn ends
    without tool calls or when the iteration cap is reached; neither
    raises.
    """

    def __init__(
        self,
        provider: LLMProvider,
        tool_executor: ToolExecutor,
        metrics: MetricsRecorder,
        quota_store: QuotaStore | None = None,
        config: AgentConfig | None = None,
    ) -> None:
        """Initialize the loop.

        Args:
            provider: Active LLM provider.
            tool_executor: Tool dispatcher.
            metrics: Metrics recorder.
            quota_store: Per-user quota store (None disables quota checks).
            config: Agent configuration.
        """
        self._provider = provider
        self._tools = tool_executor
        self._metrics = metrics
        self._quota = quota_store
        self._config = config or AgentConfig()

    async def run(
        self,
        messages: Sequence[ChatMessage],
        *,
        model: str,
        system: str | None = None,
        tools: Sequence[ToolDefinition] = (),
        max_iterations: int | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        chat_id: str | None = None,
        user_id: str | None = None,
        api_key: str | None = None,
    ) -> AsyncIterator[AgentEvent]:
        """Run one invocation as a live event stream.

        Args:
            messages: Conversation so far, oldest first.
            model: Model ID for every turn of this invocation.
            system: System prompt.
            tools: Tools offered to the model.
            max_iterations: Iteration cap override.
            max_tokens: Max output tokens per turn override.
            temperature: Sampling temperature override.
            chat_id: Conversation ID for metrics.
            user_id: User ID for quota and metrics.
            api_key: Caller-supplied key; skips the quota check.

        Yields:
            Agent events as they become available.

        Raises:
            QuotaExceededError: The user is over quota. Raised before any
                provider call and before any event.
        """
        quota_applies = self._quota is not None and user_id is not None and not api_key
        if quota_applies:
            status = await self._quota.check(user_id)
            if not status.allowed:
                logger.warning(
                    "Quota exceeded for user %s (requests left %d, tokens left %d)",
                    user_id,
                    status.remaining_requests,
                    status.remaining_tokens,
                )
                raise QuotaExceededError(user_id, status)

        limit = max_iterations or self._config.max_iterations
        working = list(messages)
        iterations = 0
        input_tokens = 0
        output_tokens = 0
        tools_used: list[str] = []
        emitted: list[str] = []
        success = False
        error_message: str | None = None
        started_at = datetime.now(timezone.utc)
        started = time.monotonic()

        try:
            while iterations < limit:
                iterations += 1
                turn_text: list[str] = []
                tool_calls: list[ToolCall] = []
                stop_reason = StopReason.END_TURN

                request = ProviderRequest(
                    model=model,
                    messages=tuple(working),
                    system=system,
                    tools=tuple(tools),
                    max_tokens=max_tokens or self._config.max_tokens,
                    temperature=(
                        temperature if temperature is not None else self._config.temperature
                    ),
                    api_key=api_key,
                )
                logger.debug(
                    "Iteration %d/%d: %d messages, model=%s",
                    iterations,
                    limit,
                    len(working),
                    model,
                )

                try:
                    async with aclosing(self._provider.stream(request)) as stream:
                        async for event in stream:
                            if isinstance(event, TextDelta):
                                if not event.text:
                                    continue
                                # Keep consecutive turns from running together
                                if (
                                    not turn_text
                                    and emitted
                                    and not emitted[-1][-1:].isspace()
                                    and not event.text[:1].isspace()
                                ):
                                    emitted.append(" ")
                                    yield TextEvent(text=" ")
                                turn_text.append(event.text)
                                emitted.append(event.text)
                                yield TextEvent(text=event.text)
                            elif isinstance(event, ToolCallRequest):
                                tool_calls.append(event.tool_call)
                                yield ToolUseEvent(tool_call=event.tool_call)
                            elif isinstance(event, TurnUsage):
                                input_tokens += event.input_tokens
                                output_tokens += event.output_tokens
                                stop_reason = event.stop_reason
                except LLMError as e:
                    error_message = str(e)
                    logger.error("Provider error on iteration %d: %s", iterations, e)
                    yield ErrorEvent(message=str(e), error_type=type(e).__name__)
                    return

                if stop_reason != StopReason.TOOL_USE or not tool_calls:
                    final_state = LoopState.DONE
                    break

                # EXECUTING_TOOLS
                assistant_blocks: list[ContentBlock] = []
                text = "".join(turn_text)
                if text:
                    assistant_blocks.append(TextBlock(text=text))
                assistant_blocks.extend(
                    ToolUseBlock(id=call.id, name=call.name, input=call.input)
                    for call in tool_calls
                )

                result_blocks: list[ContentBlock] = []
                for call in tool_calls:
                    yield ToolRequestedEvent(tool_name=call.name)
                    result = await self._execute_tool(call, chat_id, user_id)
                    tools_used.append(call.name)
                    result_blocks.append(
                        ToolResultBlock(
                            tool_use_id=result.tool_use_id,
                            content=result.content,
                            is_error=result.is_error,
                        )
                    )
                    yield ToolResultEvent(result=result)

                working.append(ChatMessage.assistant(tuple(assistant_blocks)))
                working.append(ChatMessage.user(tuple(result_blocks)))
            else:
                final_state = LoopState.MAX_ITERATIONS_REACHED
                logger.warning(
                    "Max iterations (%d) reached for chat %s", limit, chat_id
                )

            success = True
            yield UsageSummaryEvent(
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                iterations=iterations,
                final_state=final_state,
                model=model,
            )
        except (GeneratorExit, asyncio.CancelledError):
            success = False
            error_message = "cancelled"
            logger.info("Invocation cancelled after %d iteration(s)", iterations)
            raise
        finally:
            self._metrics.record_invocation(
                InvocationEvent(
                    timestamp=started_at,
                    prompt_length=len(_last_user_text(messages)),
                    response_length=sum(len(part) for part in emitted),
                    duration_ms=(time.monotonic() - started) * 1000,
                    tools_used=tuple(tools_used),
                    iterations=iterations,
                    success=success,
                    input_tokens=input_tokens,
                    output_tokens=output_tokens,
                    chat_id=chat_id,
                    user_id=user_id,
                    model=model,
                    error_message=error_message,
                )
            )
            if quota_applies and (input_tokens or output_tokens):
                await self._record_usage(user_id, input_tokens + output_tokens)

    async def _record_usage(self, user_id: str, tokens: int) -> None:
        try:
            await self._quota.record_usage(user_id, tokens)
        except Exception:
            logger.exception("Failed to record token usage for user %s", user_id)

    async def _execute_tool(
        self, call: ToolCall, chat_id: str | None, user_id: str | None
    ) -> ToolResult:
        """Execute one tool call; failures become error-flagged results."""
        started_at = datetime.now(timezone.utc)
        started = time.monotonic()
        try:
            output = await self._tools.execute(call.name, call.input)
        except Exception as e:
            logger.warning("Tool %s failed: %s", call.name, e)
            self._metrics.record_tool_usage(
                ToolUsageEvent(
                    timestamp=started_at,
                    tool_name=call.name,
                    success=False,
                    duration_ms=(time.monotonic() - started) * 1000,
                    chat_id=chat_id,
                    user_id=user_id,
                    error_message=str(e),
                )
            )
            return ToolResult(tool_use_id=call.id, content=f"Error: {e}", is_error=True)

        self._metrics.record_tool_usage(
            ToolUsageEvent(
                timestamp=started_at,
                tool_name=call.name,
                success=True,
                duration_ms=(time.monotonic() - started) * 1000,
                chat_id=chat_id,
                user_id=user_id,
            )
        )
        return ToolResult(tool_use_id=call.id, content=_stringify(output))
