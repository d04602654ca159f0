"""LiteLLM streaming provider."""

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import litellm
from litellm.exceptions import (
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    Timeout,
)

from juicy.config.models import ProviderConfig
from juicy.domain.entities.content import (
    ChatMessage,
    ContentBlock,
    DocumentBlock,
    ImageBlock,
    Role,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from juicy.domain.entities.events import (
    ProviderEvent,
    StopReason,
    TextDelta,
    ToolCallRequest,
    TurnUsage,
)
from juicy.domain.entities.request import ProviderRequest
from juicy.domain.entities.tool import ToolCall, ToolDefinition
from juicy.infrastructure.llm.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMModelNotFoundError,
    LLMRateLimitError,
    LLMTimeoutError,
)

logger = logging.getLogger(__name__)

_FINISH_REASONS = {
    "stop": StopReason.END_TURN,
    "end_turn": StopReason.END_TURN,
    "tool_calls": StopReason.TOOL_USE,
    "function_call": StopReason.TOOL_USE,
    "tool_use": StopReason.TOOL_USE,
    "length": StopReason.MAX_TOKENS,
    "max_tokens": StopReason.MAX_TOKENS,
    "stop_sequence": StopReason.STOP_SEQUENCE,
}


def _content_part(block: TextBlock | ImageBlock | DocumentBlock) -> dict[str, Any]:
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, ImageBlock):
        return {
            "type": "image_url",
            "image_url": {"url": f"data:{block.media_type};base64,{block.data}"},
        }
    file: dict[str, Any] = {"file_data": f"data:{block.media_type};base64,{block.data}"}
    if block.filename:
        file["filename"] = block.filename
    return {"type": "file", "file": file}


def _convert_message(message: ChatMessage) -> list[dict[str, Any]]:
    """Convert one message into OpenAI-format wire messages.

    Tool results become separate "tool" messages; tool-use blocks become the
    assistant message's tool_calls.
    """
    role = message.role.value
    if isinstance(message.content, str):
        return [{"role": role, "content": message.content}]

    parts: list[dict[str, Any]] = []
    tool_calls: list[dict[str, Any]] = []
    tool_messages: list[dict[str, Any]] = []
    block: ContentBlock
    for block in message.content:
        if isinstance(block, (TextBlock, ImageBlock, DocumentBlock)):
            parts.append(_content_part(block))
        elif isinstance(block, ToolUseBlock):
            tool_calls.append(
                {
                    "id": block.id,
                    "type": "function",
                    "function": {
                        "name": block.name,
                        "arguments": json.dumps(block.input),
                    },
                }
            )
        elif isinstance(block, ToolResultBlock):
            tool_messages.append(
                {
                    "role": "tool",
                    "tool_call_id": block.tool_use_id,
                    "content": block.content,
                }
            )
        else:
            raise TypeError(f"Unsupported content block: {type(block).__name__}")

    converted: list[dict[str, Any]] = list(tool_messages)
    if message.role == Role.ASSISTANT:
        text = "".join(p["text"] for p in parts if p["type"] == "text")
        if text or tool_calls:
            entry: dict[str, Any] = {"role": role, "content": text or None}
            if tool_calls:
                entry["tool_calls"] = tool_calls
            converted.append(entry)
    elif parts:
        converted.append({"role": role, "content": parts})
    return converted


def convert_messages(
    messages: tuple[ChatMessage, ...], system: str | None = None
) -> list[dict[str, Any]]:
    """Convert a conversation into OpenAI-format wire messages."""
    converted: list[dict[str, Any]] = []
    if system:
        converted.append({"role": "system", "content": system})
    for message in messages:
        converted.extend(_convert_message(message))
    return converted


def convert_tools(tools: tuple[ToolDefinition, ...]) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.input_schema,
            },
        }
        for tool in tools
    ]


@dataclass
class _PendingToolCall:
    id: str = ""
    name: str = ""
    arguments: list[str] = field(default_factory=list)


def _parse_tool_call(pending: _PendingToolCall) -> ToolCall | None:
    """Parse buffered arguments; None when they are not a JSON object."""
    raw = "".join(pending.arguments).strip() or "{}"
    try:
        arguments = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(
            "Dropping tool call %s (%s): invalid arguments: %s",
            pending.name,
            pending.id,
            e,
        )
        return None
    if not isinstance(arguments, dict):
        logger.warning(
            "Dropping tool call %s (%s): arguments are not an object",
            pending.name,
            pending.id,
        )
        return None
    return ToolCall(id=pending.id, name=pending.name, input=arguments)


class LiteLLMProvider:
    """LiteLLM-based LLMProvider implementation.

    Streams one turn with litellm.acompletion. Tool-call argument fragments
    are buffered per index and parsed once the stream has finished.
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        debug_llm_messages: bool = False,
    ) -> None:
        """Initialize the provider.

        Args:
            config: Provider configuration.
            debug_llm_messages: If True, log request sizes at INFO level.
        """
        self._config = config
        self._debug_llm_messages = debug_llm_messages

    def _build_params(self, request: ProviderRequest) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": request.model,
            "messages": convert_messages(request.messages, request.system),
            "max_tokens": request.max_tokens,
            "temperature": (
                request.temperature
                if request.temperature is not None
                else self._config.temperature
            ),
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        api_key = request.api_key or self._config.api_key
        if api_key:
            params["api_key"] = api_key
        if self._config.api_base:
            params["api_base"] = self._config.api_base
        if request.tools:
            params["tools"] = convert_tools(request.tools)
        return params

    async def stream(self, request: ProviderRequest) -> AsyncIterator[ProviderEvent]:
        """Stream one model turn.

        Args:
            request: Provider request.

        Yields:
            TextDelta and ToolCallRequest events, then one TurnUsage.

        Raises:
            LLMAuthenticationError: Invalid API key.
            LLMRateLimitError: Rate limit exceeded.
            LLMTimeoutError: Request timed out.
            LLMModelNotFoundError: Unknown model.
            LLMError: Other API errors.
        """
        params = self._build_params(request)
        self._log_request(params)

        pending: dict[int, _PendingToolCall] = {}
        finish_reason: str | None = None
        input_tokens = 0
        output_tokens = 0
        response = None

        try:
            response = await litellm.acompletion(**params)
            async for chunk in response:
                usage = getattr(chunk, "usage", None)
                if usage:
                    input_tokens = usage.prompt_tokens or input_tokens
                    output_tokens = usage.completion_tokens or output_tokens
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                if choice.finish_reason:
                    finish_reason = choice.finish_reason
                delta = choice.delta
                if delta is None:
                    continue
                if delta.content:
                    yield TextDelta(text=delta.content)
                for fragment in getattr(delta, "tool_calls", None) or []:
                    index = fragment.index if fragment.index is not None else 0
                    call = pending.setdefault(index, _PendingToolCall())
                    if fragment.id:
                        call.id = fragment.id
                    if fragment.function is not None:
                        if fragment.function.name:
                            call.name = fragment.function.name
                        if fragment.function.arguments:
                            call.arguments.append(fragment.function.arguments)
        except AuthenticationError as e:
            logger.error("LLM authentication error: %s", e)
            raise LLMAuthenticationError(str(e)) from e
        except RateLimitError as e:
            logger.warning("LLM rate limit exceeded: %s", e)
            raise LLMRateLimitError(str(e)) from e
        except Timeout as e:
            logger.warning("LLM request timed out: %s", e)
            raise LLMTimeoutError(str(e)) from e
        except NotFoundError as e:
            logger.error("LLM model not found: %s", e)
            raise LLMModelNotFoundError(str(e)) from e
        except Exception as e:
            logger.error("LLM error: %s", e)
            raise LLMError(str(e)) from e
        finally:
            # Release the HTTP stream when the consumer stops early
            close = getattr(response, "aclose", None)
            if close is not None:
                await close()

        parsed = 0
        for index in sorted(pending):
            tool_call = _parse_tool_call(pending[index])
            if tool_call is not None:
                parsed += 1
                yield ToolCallRequest(tool_call=tool_call)

        stop_reason = _FINISH_REASONS.get(finish_reason or "", StopReason.END_TURN)
        if parsed and stop_reason == StopReason.END_TURN:
            stop_reason = StopReason.TOOL_USE
        logger.debug(
            "LLM turn finished: finish_reason=%s tool_calls=%d/%d tokens=%d/%d",
            finish_reason,
            parsed,
            len(pending),
            input_tokens,
            output_tokens,
        )
        yield TurnUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            stop_reason=stop_reason,
        )

    def _log_request(self, params: dict[str, Any]) -> None:
        if not (self._debug_llm_messages or logger.isEnabledFor(logging.DEBUG)):
            return
        log_func = logger.info if self._debug_llm_messages else logger.debug
        log_func(
            "LLM request: model=%s messages=%d tools=%d system_chars=%d",
            params["model"],
            len(params["messages"]),
            len(params.get("tools", [])),
            sum(
                len(m["content"] or "")
                for m in params["messages"]
                if m["role"] == "system"
            ),
        )
