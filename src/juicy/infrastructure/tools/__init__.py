"""Tool execution infrastructure."""

from juicy.infrastructure.tools.registry import ToolHandler, ToolRegistry

__all__ = ["ToolHandler", "ToolRegistry"]
