"""Domain entities."""

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
from juicy.domain.entities.context import (
    ContextMetadata,
    ModularPromptInfo,
    OptimizedContext,
)
from juicy.domain.entities.entity_state import DesignPhase, EntityState
from juicy.domain.entities.events import (
    AgentEvent,
    ErrorEvent,
    LoopState,
    ProviderEvent,
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
from juicy.domain.entities.intents import DetectedIntents
from juicy.domain.entities.message import StoredMessage
from juicy.domain.entities.metrics import (
    ChatToolUsage,
    InvocationEvent,
    MetricsSummary,
    QuotaStatus,
    ToolUsageEvent,
)
from juicy.domain.entities.participant import (
    ExperienceLevel,
    Participant,
    UserContext,
)
from juicy.domain.entities.request import ProviderRequest
from juicy.domain.entities.summary import (
    AnchoredSummary,
    AttachmentInput,
    AttachmentSummary,
    GeneratedSummary,
    StructuredSummary,
)
from juicy.domain.entities.tool import ToolCall, ToolDefinition, ToolResult

__all__ = [
    "AgentEvent",
    "AnchoredSummary",
    "AttachmentInput",
    "AttachmentSummary",
    "ChatMessage",
    "ChatToolUsage",
    "ContentBlock",
    "ContextMetadata",
    "DesignPhase",
    "DetectedIntents",
    "DocumentBlock",
    "EntityState",
    "ErrorEvent",
    "ExperienceLevel",
    "GeneratedSummary",
    "ImageBlock",
    "InvocationEvent",
    "LoopState",
    "MetricsSummary",
    "ModularPromptInfo",
    "OptimizedContext",
    "Participant",
    "ProviderEvent",
    "ProviderRequest",
    "QuotaStatus",
    "Role",
    "StopReason",
    "StoredMessage",
    "StructuredSummary",
    "TextBlock",
    "TextDelta",
    "TextEvent",
    "ToolCall",
    "ToolCallRequest",
    "ToolDefinition",
    "ToolRequestedEvent",
    "ToolResult",
    "ToolResultBlock",
    "ToolResultEvent",
    "ToolUsageEvent",
    "ToolUseBlock",
    "ToolUseEvent",
    "TurnUsage",
    "UsageSummaryEvent",
    "UserContext",
]
