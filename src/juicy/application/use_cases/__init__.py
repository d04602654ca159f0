"""Use cases."""

from juicy.application.use_cases.invoke_agent import (
    InvokeAgentRequest,
    InvokeAgentUseCase,
)

__all__ = [
    "InvokeAgentRequest",
    "InvokeAgentUseCase",
]
