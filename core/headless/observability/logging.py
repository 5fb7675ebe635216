"""
Structured logging with automatic run context propagation.

Key Features:
- Standard logger.info() calls pick up the run context automatically
- ContextVar-based propagation: async-safe across the turn loop
- Dual output modes: JSON for production, human-readable for development
- Logs always go to stderr; stdout belongs to the output sink

Architecture:
    run_non_interactive() → sets prompt_id once
        ↓ (automatic propagation via ContextVar)
    TurnLoopController.run() → adds turn number per round trip
        ↓ (automatic propagation)
    ToolCallDispatcher / collaborators → logger.info("...") gets the context
"""

import json
import logging
import os
import re
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

run_context: ContextVar[dict[str, Any] | None] = ContextVar("run_context", default=None)

# CSI (colors, cursor movement), OSC (titles, hyperlinks; BEL or ST terminated)
# and two-character ESC sequences.
ANSI_ESCAPE_PATTERN = re.compile(
    r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|(?:\x1b\[|\x9b)[0-?]*[ -/]*[@-~]"
    r"|\x1b[@-Z\\-_]"
)


def strip_ansi_codes(text: str) -> str:
    """Remove ANSI escape sequences from text."""
    return ANSI_ESCAPE_PATTERN.sub("", text)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Produces machine-parseable log entries with:
    - Standard fields (timestamp, level, logger, message)
    - Run context (prompt_id, turn) - AUTOMATIC
    - Custom fields from extra dict
    """

    EXTRA_FIELDS = ("event", "tool_name", "error_type", "output_format")

    def format(self, record: logging.LogRecord) -> str:
        context = run_context.get() or {}

        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": strip_ansi_codes(record.getMessage()),
        }
        log_entry.update(context)

        for name in self.EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is None:
                continue
            log_entry[name] = strip_ansi_codes(value) if isinstance(value, str) else value

        if record.exc_info:
            log_entry["exception"] = strip_ansi_codes(self.formatException(record.exc_info))

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Human-readable formatter for development.

    Colorized level names with a short run-context prefix.
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        context = run_context.get() or {}
        prompt_id = context.get("prompt_id", "")
        turn = context.get("turn")

        prefix_parts = []
        if prompt_id:
            prefix_parts.append(f"prompt:{prompt_id[-8:]}")
        if turn is not None:
            prefix_parts.append(f"turn:{turn}")

        context_prefix = f"[{' | '.join(prefix_parts)}] " if prefix_parts else ""

        color = self.COLORS.get(record.levelname, "")
        level = f"{record.levelname:<8}"

        event = ""
        record_event = getattr(record, "event", None)
        if record_event is not None:
            event = f" [{record_event}]"

        message = f"{color}[{level}]{self.RESET} {context_prefix}{record.getMessage()}{event}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def configure_logging(
    level: str = "INFO",
    format: str = "auto",  # "json", "human", or "auto"
) -> None:
    """
    Configure logging for the application.

    Call ONCE at startup (entry point or test fixture).

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Output format:
            - "json": Machine-parseable JSON (for production)
            - "human": Human-readable with colors (for development)
            - "auto": JSON if LOG_FORMAT=json or ENV=production, else human
    """
    if format == "auto":
        log_format_env = os.getenv("LOG_FORMAT", "").lower()
        env = os.getenv("ENV", "development").lower()
        format = "json" if log_format_env == "json" or env == "production" else "human"

    formatter = StructuredFormatter() if format == "json" else HumanReadableFormatter()

    # stderr only: stdout carries text/json/stream-json output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())


def set_run_context(**kwargs: Any) -> None:
    """
    Merge fields into the run context for the current execution.

    Context lives in a ContextVar and propagates through awaits within
    the same task.

    Called by the runner at key points:
    - run_non_interactive(): prompt_id, output_format
    - TurnLoopController: turn

    Args:
        **kwargs: Context fields (prompt_id, turn, ...)
    """
    current = run_context.get() or {}
    run_context.set({**current, **kwargs})


def get_run_context() -> dict:
    """Return a copy of the current run context (empty dict if unset)."""
    context = run_context.get() or {}
    return context.copy()


def clear_run_context() -> None:
    """Clear the run context. Used at the end of a run and between tests."""
    run_context.set(None)
