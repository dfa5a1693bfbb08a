"""Cooperative stop signals.

A ``KillSwitch`` is checked between evaluations (live) or between bars
(backtest). Tripping it never interrupts a computation midway; the next
check point observes it.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class KillSwitch:
    """Thread-safe, resettable stop flag with a reason."""

    def __init__(self, name: str = "trading"):
        self.name = name
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: str | None = None
        self._tripped_at: datetime | None = None

    def trip(self, reason: str = "manual stop") -> None:
        """Request a halt. Repeated trips keep the first reason."""
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._tripped_at = datetime.now(timezone.utc)
            self._event.set()
        logger.warning("Kill switch '%s' tripped: %s", self.name, reason)

    def reset(self) -> None:
        with self._lock:
            self._event.clear()
            self._reason = None
            self._tripped_at = None
        logger.info("Kill switch '%s' reset", self.name)

    @property
    def is_tripped(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    @property
    def tripped_at(self) -> datetime | None:
        return self._tripped_at


# Backtests use the same mechanism for cooperative cancellation.
CancelToken = KillSwitch
