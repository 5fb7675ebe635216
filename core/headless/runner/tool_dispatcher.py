"""Sequential execution of the tool calls collected during one turn."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from headless.errors import TOOL_EXECUTION_ERROR
from headless.llm.provider import Part, ToolCallRequest, ToolCallResult, ToolExecutor
from headless.runtime.cancellation import CancellationToken

logger = logging.getLogger(__name__)

# (tool_name, error, error_type, result_display)
ToolErrorReporter = Callable[[str, Any, str, str | None], None]


class ToolCallDispatcher:
    """Runs tool calls one at a time, in request order.

    Calls are never run concurrently: the parts returned to the backend must
    line up with the order the requests arrived in. A failed call is
    reported and the rest of the batch still runs; an exception raised by
    the executor itself propagates.
    """

    def __init__(
        self,
        execute_tool: ToolExecutor,
        on_tool_error: ToolErrorReporter,
        on_tool_finished: Callable[[ToolCallRequest, ToolCallResult, int], None] | None = None,
    ) -> None:
        self._execute_tool = execute_tool
        self._on_tool_error = on_tool_error
        self._on_tool_finished = on_tool_finished

    async def dispatch(
        self,
        requests: list[ToolCallRequest],
        cancellation: CancellationToken,
    ) -> list[Part]:
        """Execute *requests* and return their response parts, concatenated in order."""
        response_parts: list[Part] = []

        for request in requests:
            cancellation.raise_if_cancelled()

            started = time.monotonic()
            result = await self._execute(request, cancellation)
            duration_ms = int((time.monotonic() - started) * 1000)

            if result.error is not None:
                display = result.result_display if isinstance(result.result_display, str) else None
                self._on_tool_error(
                    request.name,
                    result.error,
                    result.error_type or TOOL_EXECUTION_ERROR,
                    display,
                )
            else:
                logger.info(
                    "tool_call: %s completed in %dms",
                    request.name,
                    duration_ms,
                    extra={"tool_name": request.name},
                )

            if self._on_tool_finished is not None:
                self._on_tool_finished(request, result, duration_ms)

            if result.response_parts:
                response_parts.extend(result.response_parts)

        return response_parts

    async def _execute(
        self, request: ToolCallRequest, cancellation: CancellationToken
    ) -> ToolCallResult:
        """Execute a tool call, handling both sync and async executors."""
        result = self._execute_tool(request, cancellation)
        if asyncio.iscoroutine(result) or asyncio.isfuture(result):
            result = await result
        return result
