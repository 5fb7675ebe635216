"""Error taxonomy and user-visible error reporting for headless runs.

Only tool failures are handled locally (reported, then the batch goes on).
Everything else unwinds to ``handle_error`` in the run entry point, which
reports it once in the shape the active output format expects.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from headless.output.renderers import OutputRenderer

logger = logging.getLogger(__name__)

TOOL_EXECUTION_ERROR = "TOOL_EXECUTION_ERROR"


class HeadlessError(Exception):
    """Base class for errors that end a headless run."""

    exit_code: int = 1


class FatalInputError(HeadlessError):
    """The initial query could not be pre-processed; the backend was never called."""

    exit_code = 42


class FatalTurnLimitedError(HeadlessError):
    """The turn budget ran out before the next backend send."""

    exit_code = 53

    def __init__(self, max_turns: int) -> None:
        self.max_turns = max_turns
        super().__init__(
            "Reached max session turns for this session. Increase the number of "
            "turns by specifying max_session_turns in configuration."
        )


class FatalCancellationError(HeadlessError):
    """The cancellation token was observed mid-run."""

    exit_code = 130

    def __init__(self, message: str = "Operation cancelled.") -> None:
        super().__init__(message)


class BackendStreamError(HeadlessError):
    """The backend stream reported a non-recoverable error."""


def exit_code_for(error: BaseException) -> int:
    return getattr(error, "exit_code", 1)


def describe_error(error: BaseException) -> str:
    message = str(error)
    return message or error.__class__.__name__


def handle_error(error: BaseException, renderer: OutputRenderer) -> int:
    """Report a run-ending error once, shaped for the active output format.

    stream-json gets a ``final`` block carrying the error on stdout; text and
    json get a plain message on stderr. Returns the exit code for *error*.
    """
    code = exit_code_for(error)
    logger.error(
        "Run failed: %s",
        describe_error(error),
        extra={"event": "run_failed", "error_type": error.__class__.__name__},
    )
    renderer.fail(error, code)
    return code


def handle_tool_error(
    tool_name: str,
    error: Any,
    renderer: OutputRenderer,
    error_type: str = TOOL_EXECUTION_ERROR,
    result_display: str | None = None,
) -> None:
    """Report a failed tool call. Never raises; the dispatch batch continues."""
    if result_display:
        detail = result_display
    elif isinstance(error, BaseException):
        detail = describe_error(error)
    else:
        detail = str(error)
    logger.warning(
        "Error executing tool %s: %s",
        tool_name,
        detail,
        extra={"event": "tool_error", "tool_name": tool_name, "error_type": error_type},
    )
    renderer.report_tool_error(tool_name, detail)
