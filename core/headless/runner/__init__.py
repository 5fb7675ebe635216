"""Turn loop, tool dispatch and the non-interactive run entry point."""

from headless.runner.non_interactive import (
    ResumedSession,
    history_from_resumed,
    run_non_interactive,
)
from headless.runner.tool_dispatcher import ToolCallDispatcher
from headless.runner.turn_loop import LoopOutcome, LoopState, TurnLoopController

__all__ = [
    "LoopOutcome",
    "LoopState",
    "ResumedSession",
    "ToolCallDispatcher",
    "TurnLoopController",
    "history_from_resumed",
    "run_non_interactive",
]
