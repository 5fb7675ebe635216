"""Backend-facing data model and stream events."""

from headless.llm.provider import (
    AgentSession,
    ConversationMessage,
    Part,
    QueryExpansion,
    ToolCallRequest,
    ToolCallResult,
    passthrough_expand_query,
    text_part,
)
from headless.llm.stream_events import (
    ContentEvent,
    FinishedEvent,
    StreamErrorEvent,
    StreamEvent,
    ThoughtEvent,
    ToolCallRequestEvent,
)

__all__ = [
    "AgentSession",
    "ConversationMessage",
    "Part",
    "QueryExpansion",
    "ToolCallRequest",
    "ToolCallResult",
    "passthrough_expand_query",
    "text_part",
    "StreamEvent",
    "ContentEvent",
    "ToolCallRequestEvent",
    "ThoughtEvent",
    "FinishedEvent",
    "StreamErrorEvent",
]
