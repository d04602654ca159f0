"""In-process tool registry."""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from juicy.domain.entities.tool import ToolDefinition
from juicy.domain.exceptions import ToolNotFoundError

logger = logging.getLogger(__name__)

ToolHandler = Callable[..., Any | Awaitable[Any]]


class ToolRegistry:
    """ToolExecutor implementation holding definitions and handlers.

    Handlers receive the parsed tool arguments as keyword arguments and may
    be plain or async callables. Definitions are offered to the model in
    registration order.
    """

    def __init__(self) -> None:
        self._definitions: dict[str, ToolDefinition] = {}
        self._handlers: dict[str, ToolHandler] = {}

    def register(self, definition: ToolDefinition, handler: ToolHandler) -> None:
        """Register a tool.

        Args:
            definition: Tool definition shown to the model.
            handler: Callable invoked with the tool arguments.

        Raises:
            ValueError: A tool with the same name is already registered.
        """
        if definition.name in self._definitions:
            raise ValueError(f"Tool already registered: {definition.name}")
        self._definitions[definition.name] = definition
        self._handlers[definition.name] = handler
        logger.debug("Registered tool %s", definition.name)

    @property
    def definitions(self) -> tuple[ToolDefinition, ...]:
        return tuple(self._definitions.values())

    async def execute(self, name: str, tool_input: dict[str, Any]) -> Any:
        """Execute a registered tool.

        Args:
            name: Tool name.
            tool_input: Parsed tool arguments.

        Returns:
            The handler's result.

        Raises:
            ToolNotFoundError: No tool with the name is registered.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise ToolNotFoundError(name)
        logger.debug("Executing tool %s with %s", name, tool_input)
        result = handler(**tool_input)
        if inspect.isawaitable(result):
            result = await result
        return result
