"""Entry point for one non-interactive run.

Wires the pieces around a TurnLoopController: the output renderer for the
configured format, the telemetry listener that streams blocks in
stream-json mode, resumed-session history, the single top-level error
handler, and cleanup that runs on every exit path.

Usage::

    session = AgentSession(send_message_stream=backend.stream, execute_tool=tools.execute)
    try:
        await run_non_interactive(RunConfig(), "summarise @README.md", prompt_id, session)
    except HeadlessError as e:
        sys.exit(e.exit_code)
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, TextIO

from headless.config import RunConfig
from headless.errors import handle_error
from headless.llm.provider import AgentSession, ConversationMessage, Part, text_part
from headless.observability.logging import clear_run_context, set_run_context
from headless.output.renderers import create_renderer
from headless.output.sink import OutputSink
from headless.runner.turn_loop import TurnLoopController
from headless.runtime.cancellation import CancellationToken
from headless.runtime.telemetry_stream import TelemetryBroadcast

logger = logging.getLogger(__name__)


@dataclass
class ResumedSession:
    """Prior conversation supplied before the loop starts. Consumed once.

    Each message is ``{"type": "user" | <anything else>, "content": ...}``.
    """

    messages: list[dict[str, Any]] = field(default_factory=list)
    session_id: str = ""


def _content_to_parts(content: Any) -> list[Part]:
    if isinstance(content, list):
        return [text_part(item) if isinstance(item, str) else item for item in content]
    if isinstance(content, str):
        return [text_part(content)]
    return [text_part(json.dumps(content))]


def history_from_resumed(resumed: ResumedSession) -> list[ConversationMessage]:
    """Convert resumed messages into backend history (non-user messages are model turns)."""
    return [
        ConversationMessage(
            role="user" if message.get("type") == "user" else "model",
            parts=_content_to_parts(message.get("content")),
        )
        for message in resumed.messages
    ]


async def _maybe_await(value: Any) -> Any:
    if asyncio.iscoroutine(value) or asyncio.isfuture(value):
        return await value
    return value


async def run_non_interactive(
    config: RunConfig,
    raw_input: str,
    prompt_id: str,
    session: AgentSession,
    resumed_session: ResumedSession | None = None,
    telemetry: TelemetryBroadcast | None = None,
    cancellation: CancellationToken | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> None:
    """Run one query to completion.

    Returns None on success. Unrecoverable failures are reported once for the
    active output format and then re-raised; the caller maps
    ``exc.exit_code`` to the process exit status.
    """
    telemetry = telemetry or TelemetryBroadcast()
    cancellation = cancellation or CancellationToken()
    sink = OutputSink(stdout=stdout, stderr=stderr)
    renderer = create_renderer(config.output_format, sink)
    streams_telemetry = renderer.streams_telemetry
    subscription_id: str | None = None

    logging.getLogger("headless").setLevel(config.effective_log_level)
    set_run_context(prompt_id=prompt_id, output_format=str(config.output_format))
    try:
        if streams_telemetry:
            telemetry.enable()
            subscription_id = telemetry.subscribe(renderer.on_telemetry)

        if resumed_session is not None and resumed_session.messages:
            history = history_from_resumed(resumed_session)
            if session.set_history is None:
                logger.warning(
                    "Resumed session %s ignored: backend does not accept history",
                    resumed_session.session_id,
                )
            else:
                await _maybe_await(session.set_history(history))
                logger.info("Seeded backend history with %d resumed message(s)", len(history))

        controller = TurnLoopController(
            session=session,
            renderer=renderer,
            telemetry=telemetry,
            prompt_id=prompt_id,
        )
        await controller.run(raw_input, config.max_session_turns, cancellation)
    except Exception as e:
        handle_error(e, renderer)
        raise
    finally:
        if subscription_id is not None:
            telemetry.unsubscribe(subscription_id)
        if streams_telemetry:
            telemetry.disable()
        if session.shutdown_telemetry is not None:
            try:
                await _maybe_await(session.shutdown_telemetry())
            except Exception:
                logger.exception("Telemetry shutdown failed")
        clear_run_context()
