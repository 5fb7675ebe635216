"""
Telemetry Broadcast - gated pub/sub channel for structured telemetry events.

Allows a run to:
- Publish telemetry events as they happen (turns, tool calls, completion)
- Stream them to stdout in stream-json mode via a registered listener
- Drop them entirely while the channel is disabled

One instance is constructed per run (or per test) and injected into the
loop, so runs never share subscribers.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class TelemetryEventType(StrEnum):
    """Discriminant of a telemetry event."""

    # Loop lifecycle
    LOOP_STARTED = "loop_started"
    TURN_STARTED = "turn_started"
    TURN_COMPLETED = "turn_completed"
    LOOP_COMPLETED = "loop_completed"
    LOOP_FAILED = "loop_failed"

    # Tool lifecycle
    TOOL_CALL = "tool_call"

    # Backend
    API_RESPONSE = "api_response"
    API_ERROR = "api_error"

    # Custom events
    CUSTOM = "custom"


@dataclass
class TelemetryEvent:
    """A telemetry record. Created once by a producer, read-only afterwards."""

    event_name: TelemetryEventType
    prompt_id: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "event_name": self.event_name.value,
            "prompt_id": self.prompt_id,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


TelemetryListener = Callable[[TelemetryEvent], None]


@dataclass
class Subscription:
    """A registered telemetry listener."""

    id: str
    listener: TelemetryListener


class TelemetryBroadcast:
    """
    Gated, synchronous broadcast of telemetry events.

    Features:
    - Disabled channel drops events (no queueing, no replay)
    - Enabled channel delivers to every current subscriber in registration order
    - Subscribe/unsubscribe/enable/disable are safe from any thread

    Example:
        channel = TelemetryBroadcast()
        sub_id = channel.subscribe(lambda event: print(event.event_name))
        channel.enable()
        channel.publish(TelemetryEvent(event_name=TelemetryEventType.TURN_STARTED))
        channel.unsubscribe(sub_id)
    """

    def __init__(self) -> None:
        # dicts keep insertion order, which is the delivery order
        self._subscriptions: dict[str, Subscription] = {}
        self._subscription_counter = 0
        self._enabled = False
        self._lock = threading.Lock()

    def enable(self) -> None:
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        with self._lock:
            self._enabled = False

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def subscribe(self, listener: TelemetryListener) -> str:
        """
        Register a listener.

        Args:
            listener: Called synchronously with each delivered event

        Returns:
            Subscription ID (use to unsubscribe)
        """
        with self._lock:
            self._subscription_counter += 1
            sub_id = f"sub_{self._subscription_counter}"
            self._subscriptions[sub_id] = Subscription(id=sub_id, listener=listener)
        logger.debug(f"Telemetry subscription {sub_id} registered")
        return sub_id

    def unsubscribe(self, subscription: str | TelemetryListener) -> bool:
        """
        Remove a listener by subscription ID or by the listener itself.

        Returns:
            True if a subscription was found and removed
        """
        with self._lock:
            if isinstance(subscription, str):
                removed = self._subscriptions.pop(subscription, None)
            else:
                removed = None
                for sub_id, sub in self._subscriptions.items():
                    if sub.listener == subscription:
                        removed = self._subscriptions.pop(sub_id)
                        break
        if removed is not None:
            logger.debug(f"Telemetry subscription {removed.id} removed")
            return True
        return False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, event: TelemetryEvent) -> int:
        """
        Deliver an event to all current subscribers if the channel is enabled.

        Args:
            event: Event to publish

        Returns:
            Number of listeners the event was delivered to
        """
        with self._lock:
            if not self._enabled:
                return 0
            listeners = [sub.listener for sub in self._subscriptions.values()]

        delivered = 0
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Telemetry listener error for {event.event_name}: {e}")
                continue
            delivered += 1
        return delivered
