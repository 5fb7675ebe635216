"""Shared fakes and fixtures for the headless test suite.

The backend and tool executor are capability handles, so tests plug in
scripted fakes instead of a real model or tool runtime.
"""

from __future__ import annotations

import io
from collections.abc import AsyncIterator
from typing import Any

import pytest

from headless.llm.provider import AgentSession, Part, ToolCallRequest, ToolCallResult
from headless.llm.stream_events import ContentEvent, StreamEvent, ToolCallRequestEvent
from headless.observability.logging import clear_run_context
from headless.output.sink import OutputSink
from headless.runtime.cancellation import CancellationToken


def content(text: str) -> ContentEvent:
    return ContentEvent(value=text)


def tool_request(name: str, call_id: str | None = None, **args: Any) -> ToolCallRequestEvent:
    return ToolCallRequestEvent(
        value=ToolCallRequest(call_id=call_id or f"call_{name}", name=name, args=args)
    )


class ScriptedBackend:
    """Plays back one scripted event list per send.

    With ``repeat_last=True`` the final script is replayed forever, which
    models a backend that asks for a tool on every turn.
    """

    def __init__(self, scripts: list[list[StreamEvent]], repeat_last: bool = False):
        self.scripts = scripts
        self.repeat_last = repeat_last
        self.sent: list[list[Part]] = []
        self.prompt_ids: list[str] = []
        self.history: list | None = None

    async def send_message_stream(
        self, parts: list[Part], cancellation: CancellationToken, prompt_id: str
    ) -> AsyncIterator[StreamEvent]:
        self.sent.append(list(parts))
        self.prompt_ids.append(prompt_id)
        index = len(self.sent) - 1
        if self.repeat_last:
            index = min(index, len(self.scripts) - 1)
        for event in self.scripts[index]:
            yield event

    def set_history(self, history: list) -> None:
        self.history = history


class RecordingExecutor:
    """Tool executor returning ``<name>-result`` parts unless told otherwise."""

    def __init__(self, results: dict[str, ToolCallResult] | None = None):
        self.results = results or {}
        self.calls: list[ToolCallRequest] = []

    def __call__(self, request: ToolCallRequest, cancellation: CancellationToken) -> ToolCallResult:
        self.calls.append(request)
        if request.name in self.results:
            return self.results[request.name]
        return ToolCallResult(response_parts=[{"text": f"{request.name}-result"}])

    @property
    def names(self) -> list[str]:
        return [r.name for r in self.calls]


@pytest.fixture(autouse=True)
def _reset_run_context():
    yield
    clear_run_context()


@pytest.fixture
def stdout() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def stderr() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def sink(stdout, stderr) -> OutputSink:
    return OutputSink(stdout=stdout, stderr=stderr)


@pytest.fixture
def make_session():
    """Build an AgentSession around a ScriptedBackend and RecordingExecutor."""

    def _make(backend: ScriptedBackend, executor: RecordingExecutor | None = None, **kwargs):
        return AgentSession(
            send_message_stream=backend.send_message_stream,
            execute_tool=executor or RecordingExecutor(),
            **kwargs,
        )

    return _make
