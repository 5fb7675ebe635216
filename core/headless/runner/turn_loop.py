"""TurnLoopController: the non-interactive multi-turn loop.

One run drives the backend until it answers without requesting tools:

1. INIT            expand the raw query (@-includes) into the first message
2. SEND_TURN       count the turn and enforce the turn budget before sending
3. STREAM_RESPONSE consume the backend stream: content goes to the renderer
                   as it arrives, tool requests are collected
4. DISPATCH        no requests -> TERMINAL; otherwise run the tools and make
                   their parts the next user message -> SEND_TURN
5. TERMINAL/FAILED the single exit: render the final result, or raise

Cancellation is checked per stream event and again before each tool call;
a stream that ends after cancellation also fails the run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from headless.config import UNLIMITED_TURNS
from headless.errors import (
    BackendStreamError,
    FatalCancellationError,
    FatalInputError,
    FatalTurnLimitedError,
    handle_tool_error,
)
from headless.llm.provider import (
    AgentSession,
    ConversationMessage,
    Part,
    ToolCallRequest,
    ToolCallResult,
    text_part,
)
from headless.llm.stream_events import ContentEvent, StreamErrorEvent, ToolCallRequestEvent
from headless.observability.logging import set_run_context
from headless.output.renderers import OutputRenderer
from headless.runner.tool_dispatcher import ToolCallDispatcher
from headless.runtime.cancellation import CancellationToken
from headless.runtime.telemetry_stream import (
    TelemetryBroadcast,
    TelemetryEvent,
    TelemetryEventType,
)

logger = logging.getLogger(__name__)


class LoopState(StrEnum):
    INIT = "init"
    SEND_TURN = "send_turn"
    STREAM_RESPONSE = "stream_response"
    DISPATCH = "dispatch"
    TERMINAL = "terminal"
    FAILED = "failed"


@dataclass
class LoopOutcome:
    """What a successful run produced."""

    response_text: str
    turns: int
    stats: Any = None
    state: LoopState = LoopState.TERMINAL


@dataclass
class TurnResult:
    """Everything collected from one fully consumed backend stream."""

    text: str
    tool_requests: list[ToolCallRequest]


class TurnLoopController:
    """Owns the turn counter and the outgoing message; nothing else.

    The backend, executor, pre-processor and metrics source are reached
    only through the capability handles on ``AgentSession``.
    """

    def __init__(
        self,
        session: AgentSession,
        renderer: OutputRenderer,
        telemetry: TelemetryBroadcast | None = None,
        prompt_id: str = "",
    ) -> None:
        self._session = session
        self._renderer = renderer
        self._telemetry = telemetry
        self._prompt_id = prompt_id
        self._dispatcher = ToolCallDispatcher(
            execute_tool=session.execute_tool,
            on_tool_error=self._report_tool_error,
            on_tool_finished=self._record_tool_call,
        )
        self.turn_count = 0
        self.state = LoopState.INIT
        self._message: ConversationMessage | None = None

    @property
    def current_message(self) -> ConversationMessage | None:
        return self._message

    async def run(
        self,
        raw_query: str,
        max_turns: int = UNLIMITED_TURNS,
        cancellation: CancellationToken | None = None,
    ) -> LoopOutcome:
        """Run the loop to its single exit.

        Raises:
            FatalInputError: the query could not be expanded
            FatalTurnLimitedError: the turn budget ran out before a send
            FatalCancellationError: cancellation was observed
            Exception: any backend or executor failure, unchanged
        """
        cancellation = cancellation or CancellationToken()
        turn = TurnResult(text="", tool_requests=[])
        error: Exception | None = None

        self.state = LoopState.INIT
        while self.state not in (LoopState.TERMINAL, LoopState.FAILED):
            try:
                if self.state == LoopState.INIT:
                    parts = await self._expand_query(raw_query, cancellation)
                    self._message = ConversationMessage(role="user", parts=parts)
                    self._emit(TelemetryEventType.LOOP_STARTED, max_turns=max_turns)
                    self.state = LoopState.SEND_TURN

                elif self.state == LoopState.SEND_TURN:
                    self.turn_count += 1
                    if max_turns >= 0 and self.turn_count > max_turns:
                        raise FatalTurnLimitedError(max_turns)
                    set_run_context(turn=self.turn_count)
                    self._emit(TelemetryEventType.TURN_STARTED, turn=self.turn_count)
                    self.state = LoopState.STREAM_RESPONSE

                elif self.state == LoopState.STREAM_RESPONSE:
                    turn = await self._stream_turn(cancellation)
                    self._emit(
                        TelemetryEventType.TURN_COMPLETED,
                        turn=self.turn_count,
                        tool_calls=len(turn.tool_requests),
                    )
                    self.state = LoopState.DISPATCH

                elif self.state == LoopState.DISPATCH:
                    if not turn.tool_requests:
                        self.state = LoopState.TERMINAL
                        continue
                    parts = await self._dispatcher.dispatch(turn.tool_requests, cancellation)
                    if not parts:
                        parts = _placeholder_parts(turn.tool_requests)
                    self._message = ConversationMessage(role="user", parts=parts)
                    self.state = LoopState.SEND_TURN

            except Exception as e:
                error = e
                self.state = LoopState.FAILED

        if self.state == LoopState.FAILED:
            try:
                self._emit(
                    TelemetryEventType.LOOP_FAILED,
                    turns=self.turn_count,
                    error_type=error.__class__.__name__,
                )
            except Exception:
                logger.exception("Failed to emit loop_failed telemetry")
            raise error

        self._emit(TelemetryEventType.LOOP_COMPLETED, turns=self.turn_count)
        stats = self._session.get_metrics()
        self._renderer.complete(turn.text, stats)
        logger.info("Loop completed after %d turn(s)", self.turn_count)
        return LoopOutcome(response_text=turn.text, turns=self.turn_count, stats=stats)

    # -------------------------------------------------------------------
    # States
    # -------------------------------------------------------------------

    async def _expand_query(self, raw_query: str, cancellation: CancellationToken) -> list[Part]:
        expansion = self._session.expand_query(raw_query, cancellation)
        if asyncio.iscoroutine(expansion) or asyncio.isfuture(expansion):
            expansion = await expansion

        if not expansion.should_proceed or not expansion.processed_query:
            raise FatalInputError("Exiting due to an error processing the @ command.")
        if isinstance(expansion.processed_query, str):
            return [text_part(expansion.processed_query)]
        return list(expansion.processed_query)

    async def _stream_turn(self, cancellation: CancellationToken) -> TurnResult:
        """Consume one backend stream to its end.

        Content and tool requests may interleave, so both are accumulated
        over the whole stream before the next state is chosen.
        """
        message = self._message
        message.validate_for_send()

        chunks: list[str] = []
        tool_requests: list[ToolCallRequest] = []

        stream = self._session.send_message_stream(message.parts, cancellation, self._prompt_id)
        try:
            async for event in stream:
                if cancellation.is_cancelled:
                    raise FatalCancellationError()

                if isinstance(event, ContentEvent):
                    chunks.append(event.value)
                    self._renderer.on_content(event.value)

                elif isinstance(event, ToolCallRequestEvent):
                    tool_requests.append(event.value)

                elif isinstance(event, StreamErrorEvent):
                    if not event.recoverable:
                        raise BackendStreamError(f"Stream error: {event.error}")
                    logger.warning(f"Recoverable stream error: {event.error}")
            # a backend honoring the token may end its stream early
            cancellation.raise_if_cancelled()
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        text = "".join(chunks)
        logger.info(
            "Backend response: text=%r tool_calls=%s",
            text[:300] if text else "(empty)",
            [r.name for r in tool_requests] if tool_requests else "[]",
        )
        return TurnResult(text=text, tool_requests=tool_requests)

    # -------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------

    def _report_tool_error(
        self, tool_name: str, error: Any, error_type: str, result_display: str | None
    ) -> None:
        handle_tool_error(tool_name, error, self._renderer, error_type, result_display)

    def _record_tool_call(
        self, request: ToolCallRequest, result: ToolCallResult, duration_ms: int
    ) -> None:
        self._emit(
            TelemetryEventType.TOOL_CALL,
            function_name=request.name,
            call_id=request.call_id,
            success=result.error is None,
            duration_ms=duration_ms,
            error_type=result.error_type if result.error is not None else None,
        )

    def _emit(self, event_type: TelemetryEventType, **data: Any) -> None:
        event = TelemetryEvent(event_name=event_type, prompt_id=self._prompt_id, data=data)
        if self._session.on_telemetry is not None:
            self._session.on_telemetry(event)
        if self._telemetry is not None:
            self._telemetry.publish(event)


def _placeholder_parts(requests: list[ToolCallRequest]) -> list[Part]:
    """One empty function response per request, so the next message is never empty."""
    return [
        {"functionResponse": {"id": r.call_id, "name": r.name, "response": {}}} for r in requests
    ]
