"""Application services."""

from juicy.application.services.agentic_loop import AgenticLoop
from juicy.application.services.background import BackgroundTaskRunner
from juicy.application.services.context_orchestrator import (
    ContextOrchestrator,
    format_messages_for_provider,
)
from juicy.application.services.metrics import MetricsRecorder
from juicy.application.services.summarization import (
    SummarizationEngine,
    extract_attachment_data,
)

__all__ = [
    "AgenticLoop",
    "BackgroundTaskRunner",
    "ContextOrchestrator",
    "MetricsRecorder",
    "SummarizationEngine",
    "extract_attachment_data",
    "format_messages_for_provider",
]
