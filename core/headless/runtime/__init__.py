"""Runtime services shared by a run: cancellation, telemetry broadcast, metrics."""

from headless.runtime.cancellation import CancellationToken
from headless.runtime.session_metrics import SessionMetrics, SessionMetricsCollector
from headless.runtime.telemetry_stream import (
    TelemetryBroadcast,
    TelemetryEvent,
    TelemetryEventType,
)

__all__ = [
    "CancellationToken",
    "SessionMetrics",
    "SessionMetricsCollector",
    "TelemetryBroadcast",
    "TelemetryEvent",
    "TelemetryEventType",
]
