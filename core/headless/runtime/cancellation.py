"""Cooperative cancellation for a headless run."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from headless.errors import FatalCancellationError

logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe cancellation signal shared by the loop and its collaborators.

    The token is only a signal: the stream consumer and the tool dispatcher
    poll it at their suspension points, and collaborators that receive it are
    expected to unwind promptly on their own.

    Example:
        token = CancellationToken()
        signal.signal(signal.SIGINT, lambda *_: token.cancel())
        await run_non_interactive(..., cancellation=token)
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._reason = ""
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    def cancel(self, reason: str = "") -> None:
        """Request cancellation. Idempotent; callbacks fire once."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._reason = reason
            callbacks = list(self._callbacks)
            self._callbacks.clear()

        self._event.set()

        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancellation callback failed")

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str:
        return self._reason

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or *timeout* expires. True if cancelled."""
        return self._event.wait(timeout=timeout)

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Register *callback*; runs immediately if already cancelled."""
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return
        callback()

    def raise_if_cancelled(self) -> None:
        """Raise FatalCancellationError if cancellation has been requested."""
        if self._cancelled:
            raise FatalCancellationError()
