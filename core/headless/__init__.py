"""
headless - run one agent query to completion without a user in the loop.

The turn loop streams a backend response, runs the tool calls it asks for,
feeds the results back and stops at a final answer, the turn budget, or
cancellation. Output is rendered as text, json, or stream-json.
"""

from headless.config import OutputFormat, RunConfig
from headless.errors import (
    BackendStreamError,
    FatalCancellationError,
    FatalInputError,
    FatalTurnLimitedError,
    HeadlessError,
)
from headless.llm import AgentSession, QueryExpansion, ToolCallRequest, ToolCallResult
from headless.runner import ResumedSession, TurnLoopController, run_non_interactive
from headless.runtime import CancellationToken, TelemetryBroadcast

__all__ = [
    "AgentSession",
    "BackendStreamError",
    "CancellationToken",
    "FatalCancellationError",
    "FatalInputError",
    "FatalTurnLimitedError",
    "HeadlessError",
    "OutputFormat",
    "QueryExpansion",
    "ResumedSession",
    "RunConfig",
    "TelemetryBroadcast",
    "ToolCallRequest",
    "ToolCallResult",
    "TurnLoopController",
    "run_non_interactive",
]
