"""In-memory metrics for the agentic loop."""

import logging
import math
from collections import Counter, deque
from datetime import datetime, timedelta, timezone

from juicy.domain.entities.metrics import (
    ChatToolUsage,
    InvocationEvent,
    MetricsSummary,
    ToolUsageEvent,
)

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10000


def percentile_95(values: list[float]) -> float:
    """95th percentile at index floor(n * 0.95) of the ascending values.

    An index past the end yields the last element; an empty list yields 0.
    """
    if not values:
        return 0.0
    ordered = sorted(values)
    index = math.floor(len(ordered) * 0.95)
    return ordered[min(index, len(ordered) - 1)]


class MetricsRecorder:
    """Bounded ring buffers of tool-usage and invocation events.

    Appending past capacity evicts the oldest event. Nothing is persisted.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """Initialize the recorder.

        Args:
            capacity: Maximum number of events kept per buffer.
        """
        self._tool_events: deque[ToolUsageEvent] = deque(maxlen=capacity)
        self._invocations: deque[InvocationEvent] = deque(maxlen=capacity)

    def record_tool_usage(self, event: ToolUsageEvent) -> None:
        """Append a tool usage event."""
        self._tool_events.append(event)
        logger.info(
            "Tool used: chat=%s tool=%s success=%s duration_ms=%.1f error=%s",
            event.chat_id,
            event.tool_name,
            event.success,
            event.duration_ms,
            event.error_message,
        )

    def record_invocation(self, event: InvocationEvent) -> None:
        """Append an invocation event."""
        self._invocations.append(event)
        logger.info(
            "Invocation complete: chat=%s success=%s duration_ms=%.1f tools=%s "
            "iterations=%d input_tokens=%d output_tokens=%d",
            event.chat_id,
            event.success,
            event.duration_ms,
            list(event.tools_used),
            event.iterations,
            event.input_tokens,
            event.output_tokens,
        )

    def summary(self, hours_back: float = 24, now: datetime | None = None) -> MetricsSummary:
        """Aggregate the events of the trailing window.

        Args:
            hours_back: Window length in hours.
            now: End of the window (defaults to the current time).

        Returns:
            Aggregated metrics.
        """
        window_to = now or datetime.now(timezone.utc)
        window_from = window_to - timedelta(hours=hours_back)

        invocations = [e for e in self._invocations if e.timestamp >= window_from]
        tool_events = [e for e in self._tool_events if e.timestamp >= window_from]

        usage_counts: Counter[str] = Counter(e.tool_name for e in tool_events)
        success_counts: Counter[str] = Counter(
            e.tool_name for e in tool_events if e.success
        )
        success_rates = {
            name: (success_counts[name] / total if total else 0.0)
            for name, total in usage_counts.items()
        }

        count = len(invocations)
        successful = sum(1 for e in invocations if e.success)
        durations = [e.duration_ms for e in invocations]
        input_tokens = sum(e.input_tokens for e in invocations)
        output_tokens = sum(e.output_tokens for e in invocations)
        tools_used = sum(len(e.tools_used) for e in invocations)
        with_tools = sum(1 for e in invocations if e.tools_used)
        iterations = [e.iterations for e in invocations]

        return MetricsSummary(
            window_from=window_from,
            window_to=window_to,
            total_invocations=count,
            successful_invocations=successful,
            failed_invocations=count - successful,
            avg_response_time_ms=sum(durations) / count if count else 0.0,
            p95_response_time_ms=percentile_95(durations),
            total_input_tokens=input_tokens,
            total_output_tokens=output_tokens,
            avg_tokens_per_request=(input_tokens + output_tokens) / count if count else 0.0,
            tool_usage_counts=dict(usage_counts),
            tool_success_rates=success_rates,
            avg_tools_per_invocation=tools_used / count if count else 0.0,
            invocations_with_tools=with_tools,
            invocations_without_tools=count - with_tools,
            avg_iterations=sum(iterations) / count if count else 0.0,
            max_iterations=max(iterations, default=0),
        )

    def recent_tool_usage(self, limit: int = 100) -> list[ToolUsageEvent]:
        """Most recent tool usage events, newest first."""
        return list(reversed(self._tool_events))[:limit]

    def recent_invocations(self, limit: int = 100) -> list[InvocationEvent]:
        """Most recent invocation events, newest first."""
        return list(reversed(self._invocations))[:limit]

    def chat_tool_usage(self, chat_id: str) -> ChatToolUsage:
        """Tool usage breakdown for one conversation."""
        invocations = [e for e in self._invocations if e.chat_id == chat_id]
        tools: Counter[str] = Counter(
            name for e in invocations for name in e.tools_used
        )
        avg = (
            sum(e.duration_ms for e in invocations) / len(invocations)
            if invocations
            else 0.0
        )
        return ChatToolUsage(
            tools=dict(tools),
            total_invocations=len(invocations),
            avg_response_time_ms=avg,
        )
