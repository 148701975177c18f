"""
Rewatch Change Aggregator.

Collapses bursts of matching file system events into a single
settled change. Producers (watchdog threads) record changes; the
scheduler loop is the only consumer.
Requires Python 3.11+.
"""

import threading
import time
from dataclasses import dataclass, replace
from enum import Enum

from utils.logger import LoggerMixin

DEFAULT_DEBOUNCE_MS = 1000


def now_ms() -> int:
    """Current wall clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class AggregatorState(str, Enum):
    """Whether a change is waiting to settle."""

    IDLE = "idle"
    PENDING = "pending"


@dataclass
class ChangeRecord:
    """The most recent unconsumed change."""

    pending: bool = False
    last_event_time: int = 0
    last_path: str = ""


class ChangeAggregator(LoggerMixin):
    """
    Sliding-window debounce over file change events.

    Every recorded change moves the settle deadline to
    ``last_event_time + debounce_ms``. try_consume() fires once the
    deadline has passed and resets the record, so a burst of saves
    produces exactly one settled change carrying the last path.

    record_change() may be called from any thread. try_consume() must
    only be called from a single consumer.
    """

    def __init__(self, debounce_ms: int = DEFAULT_DEBOUNCE_MS) -> None:
        """
        Initialize the aggregator.

        Args:
            debounce_ms: Quiet period in milliseconds before a change settles
        """
        if debounce_ms < 0:
            raise ValueError(f"debounce_ms must be >= 0, got {debounce_ms}")
        self._debounce_ms = debounce_ms
        self._record = ChangeRecord()
        self._lock = threading.Lock()

    @property
    def debounce_ms(self) -> int:
        """Default debounce interval in milliseconds."""
        return self._debounce_ms

    @property
    def state(self) -> AggregatorState:
        """Current state of the record."""
        with self._lock:
            pending = self._record.pending
        return AggregatorState.PENDING if pending else AggregatorState.IDLE

    def record_change(self, path: str, now: int) -> None:
        """
        Record a matching change.

        Refreshes the event time when a change is already pending.

        Args:
            path: Root-relative path of the changed file
            now: Event time in milliseconds
        """
        with self._lock:
            self._record.pending = True
            self._record.last_event_time = now
            self._record.last_path = path

        self.log.debug("change_recorded", path=path, time=now)

    def try_consume(self, now: int, debounce_interval: int | None = None) -> str | None:
        """
        Consume the pending change if it has settled.

        Args:
            now: Current time in milliseconds
            debounce_interval: Overrides the configured debounce interval

        Returns:
            Path of the last recorded change, or None when idle or
            still settling
        """
        interval = self._debounce_ms if debounce_interval is None else debounce_interval

        with self._lock:
            if not self._record.pending:
                return None
            if now - self._record.last_event_time < interval:
                return None

            path = self._record.last_path
            self._record = ChangeRecord()

        self.log.debug("change_settled", path=path)
        return path

    def reset(self) -> None:
        """Drop any pending change without firing."""
        with self._lock:
            self._record = ChangeRecord()

    def snapshot(self) -> ChangeRecord:
        """Return a copy of the current record."""
        with self._lock:
            return replace(self._record)
