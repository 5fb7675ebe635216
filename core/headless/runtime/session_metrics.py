"""Session metrics: aggregate counters accumulated over a run.

The loop only reads a snapshot at its terminal step. ``SessionMetricsCollector``
is the in-process source used when the caller does not bring its own: it is
fed every telemetry event through ``AgentSession.on_telemetry``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from pydantic import BaseModel, Field

from headless.runtime.telemetry_stream import TelemetryEvent, TelemetryEventType

logger = logging.getLogger(__name__)


class ApiMetrics(BaseModel):
    total_requests: int = 0
    total_errors: int = 0
    total_latency_ms: int = 0


class TokenMetrics(BaseModel):
    prompt: int = 0
    candidates: int = 0
    total: int = 0
    cached: int = 0
    thoughts: int = 0
    tool: int = 0


class ModelMetrics(BaseModel):
    """Per-model API and token counters."""

    api: ApiMetrics = Field(default_factory=ApiMetrics)
    tokens: TokenMetrics = Field(default_factory=TokenMetrics)


class ToolCallStats(BaseModel):
    count: int = 0
    success: int = 0
    fail: int = 0
    duration_ms: int = 0


class ToolMetrics(BaseModel):
    total_calls: int = 0
    total_success: int = 0
    total_fail: int = 0
    total_duration_ms: int = 0
    by_name: dict[str, ToolCallStats] = Field(default_factory=dict)


class FileMetrics(BaseModel):
    total_lines_added: int = 0
    total_lines_removed: int = 0


class SessionMetrics(BaseModel):
    """Everything reported as ``stats`` in json and stream-json output."""

    models: dict[str, ModelMetrics] = Field(default_factory=dict)
    tools: ToolMetrics = Field(default_factory=ToolMetrics)
    files: FileMetrics = Field(default_factory=FileMetrics)


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class SessionMetricsCollector:
    """Accumulates SessionMetrics from telemetry events.

    Thread-safe: events may be recorded from tool threads while the loop
    reads the snapshot.
    """

    def __init__(self) -> None:
        self._metrics = SessionMetrics()
        self._lock = threading.Lock()

    def record(self, event: TelemetryEvent) -> None:
        with self._lock:
            if event.event_name == TelemetryEventType.TOOL_CALL:
                self._record_tool_call(event.data)
            elif event.event_name == TelemetryEventType.API_RESPONSE:
                self._record_api_response(event.data)
            elif event.event_name == TelemetryEventType.API_ERROR:
                self._record_api_error(event.data)

    def get_metrics(self) -> SessionMetrics:
        """Return a snapshot that later events will not mutate."""
        with self._lock:
            return self._metrics.model_copy(deep=True)

    def _model(self, data: dict[str, Any]) -> ModelMetrics:
        name = str(data.get("model") or "unknown")
        return self._metrics.models.setdefault(name, ModelMetrics())

    def _record_api_response(self, data: dict[str, Any]) -> None:
        model = self._model(data)
        model.api.total_requests += 1
        model.api.total_latency_ms += _as_int(data.get("duration_ms"))
        model.tokens.prompt += _as_int(data.get("input_token_count"))
        model.tokens.candidates += _as_int(data.get("output_token_count"))
        model.tokens.total += _as_int(data.get("total_token_count"))
        model.tokens.cached += _as_int(data.get("cached_content_token_count"))
        model.tokens.thoughts += _as_int(data.get("thoughts_token_count"))
        model.tokens.tool += _as_int(data.get("tool_token_count"))

    def _record_api_error(self, data: dict[str, Any]) -> None:
        model = self._model(data)
        model.api.total_requests += 1
        model.api.total_errors += 1
        model.api.total_latency_ms += _as_int(data.get("duration_ms"))

    def _record_tool_call(self, data: dict[str, Any]) -> None:
        tools = self._metrics.tools
        name = str(data.get("function_name") or "unknown")
        duration = _as_int(data.get("duration_ms"))
        success = bool(data.get("success"))

        stats = tools.by_name.setdefault(name, ToolCallStats())
        stats.count += 1
        stats.duration_ms += duration
        tools.total_calls += 1
        tools.total_duration_ms += duration
        if success:
            stats.success += 1
            tools.total_success += 1
        else:
            stats.fail += 1
            tools.total_fail += 1

        self._metrics.files.total_lines_added += _as_int(data.get("lines_added"))
        self._metrics.files.total_lines_removed += _as_int(data.get("lines_removed"))
