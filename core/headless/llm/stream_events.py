"""Stream event types for backend responses.

Defines a discriminated union of frozen dataclasses for every event a
backend response stream can yield. These types form the contract between
the backend collaborator and the TurnLoopController.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from headless.llm.provider import ToolCallRequest


@dataclass(frozen=True)
class ContentEvent:
    """A fragment of model-visible answer text."""

    type: Literal["content"] = "content"
    value: str = ""


@dataclass(frozen=True)
class ToolCallRequestEvent:
    """The backend has requested a tool call."""

    type: Literal["tool_call_request"] = "tool_call_request"
    value: ToolCallRequest = field(default_factory=lambda: ToolCallRequest(call_id="", name=""))


@dataclass(frozen=True)
class ThoughtEvent:
    """A chunk of model reasoning. Never written to the output sink."""

    type: Literal["thought"] = "thought"
    subject: str = ""
    description: str = ""


@dataclass(frozen=True)
class FinishedEvent:
    """The backend has finished generating this response."""

    type: Literal["finished"] = "finished"
    reason: str = ""


@dataclass(frozen=True)
class StreamErrorEvent:
    """An error occurred during streaming."""

    type: Literal["error"] = "error"
    error: str = ""
    recoverable: bool = False


# Discriminated union of all stream event types
StreamEvent = (
    ContentEvent | ToolCallRequestEvent | ThoughtEvent | FinishedEvent | StreamErrorEvent
)
