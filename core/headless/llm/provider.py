"""Backend-facing data model and capability handles.

The backend and tool executor are never concrete objects here: the loop
only sees the callables bundled in ``AgentSession``, so tests plug in
scripted fakes.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from headless.llm.stream_events import StreamEvent
    from headless.runtime.cancellation import CancellationToken
    from headless.runtime.session_metrics import SessionMetrics
    from headless.runtime.telemetry_stream import TelemetryEvent

# Opaque content fragment owned by the backend ({"text": ...}, {"functionResponse": ...})
Part = dict[str, Any]


def text_part(text: str) -> Part:
    return {"text": text}


@dataclass
class ConversationMessage:
    """One message in the conversation."""

    role: Literal["user", "model"]
    parts: list[Part] = field(default_factory=list)

    def validate_for_send(self) -> None:
        if not self.parts:
            raise ValueError(f"Refusing to send a {self.role} message with no parts")


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool call requested by the backend mid-stream."""

    call_id: str
    name: str
    args: Mapping[str, Any] = field(default_factory=dict)
    prompt_id: str = ""


@dataclass
class ToolCallResult:
    """Result of executing a tool.

    Success carries ``response_parts``; failure populates ``error``. Both may
    be present when a tool failed but still produced display text or parts.
    """

    response_parts: list[Part] | None = None
    error: Exception | None = None
    error_type: str | None = None
    result_display: Any = None


@dataclass
class QueryExpansion:
    """Outcome of pre-processing the raw user query (e.g. @-includes)."""

    processed_query: list[Part] | str | None
    should_proceed: bool = True


SendMessageStream = Callable[
    [list[Part], "CancellationToken", str], AsyncIterator["StreamEvent"]
]
ToolExecutor = Callable[
    [ToolCallRequest, "CancellationToken"], ToolCallResult | Awaitable[ToolCallResult]
]
QueryExpander = Callable[
    [str, "CancellationToken"], QueryExpansion | Awaitable[QueryExpansion]
]
MetricsSource = Callable[[], "SessionMetrics | Mapping[str, Any]"]


def passthrough_expand_query(raw_query: str, cancellation: CancellationToken) -> QueryExpansion:
    """Default pre-processor: the raw query becomes a single text part."""
    return QueryExpansion(processed_query=[text_part(raw_query)], should_proceed=bool(raw_query))


def _empty_metrics() -> SessionMetrics:
    from headless.runtime.session_metrics import SessionMetrics

    return SessionMetrics()


@dataclass
class AgentSession:
    """Capability handles for the collaborators one run talks to.

    Attributes:
        send_message_stream: (parts, cancellation, prompt_id) -> async iterator
            of StreamEvents. Not restartable.
        execute_tool: (request, cancellation) -> ToolCallResult, sync or async.
        expand_query: (raw_query, cancellation) -> QueryExpansion, sync or async.
        get_metrics: synchronous SessionMetrics snapshot, read once at the end.
        set_history: seeds backend history from a resumed session.
        on_telemetry: always-on hook receiving every loop telemetry event.
        shutdown_telemetry: finalizer for external telemetry export.
    """

    send_message_stream: SendMessageStream
    execute_tool: ToolExecutor
    expand_query: QueryExpander = passthrough_expand_query
    get_metrics: MetricsSource = _empty_metrics
    set_history: Callable[[list[ConversationMessage]], Any] | None = None
    on_telemetry: Callable[[TelemetryEvent], None] | None = None
    shutdown_telemetry: Callable[[], Any] | None = None
