"""
Observability module for run-scoped structured logging.

- Run context (prompt id, turn) propagated via ContextVar
- Structured JSON logging for production
- Human-readable logging for development
"""

from headless.observability.logging import (
    clear_run_context,
    configure_logging,
    get_run_context,
    set_run_context,
    strip_ansi_codes,
)

__all__ = [
    "configure_logging",
    "get_run_context",
    "set_run_context",
    "clear_run_context",
    "strip_ansi_codes",
]
