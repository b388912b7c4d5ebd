"""Thread-safe counters for the export pipeline and throughput reports."""

import threading
from dataclasses import dataclass


class LogCounter:
    """Counter with atomic increment and read-and-reset."""

    def __init__(self):
        self._lock = threading.Lock()
        self._value = 0

    def increment(self, n: int = 1):
        with self._lock:
            self._value += n

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def reset(self) -> int:
        """Zero the counter and return what it held."""
        with self._lock:
            value = self._value
            self._value = 0
            return value


@dataclass(frozen=True)
class ThroughputReport:
    count: int
    elapsed_seconds: float
    rate: float


def make_report(count: int, elapsed_seconds: float) -> ThroughputReport:
    rate = count / elapsed_seconds if elapsed_seconds > 0 else 0.0
    return ThroughputReport(count=count, elapsed_seconds=elapsed_seconds, rate=rate)


class PipelineMetrics:
    """Collects counters about records moving through the batch processor."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._enqueued: int = 0
        self._dropped: int = 0
        self._exported: int = 0
        self._batches_sent: int = 0
        self._batches_failed: int = 0
        self._flush_triggers: dict = {"size": 0, "timer": 0, "flush": 0, "shutdown": 0}

    def record_enqueued(self):
        with self._lock:
            self._enqueued += 1

    def record_dropped(self):
        with self._lock:
            self._dropped += 1

    def record_batch(self, batch_size: int, success: bool, trigger: str = "size"):
        """Record one export attempt.

        Args:
            batch_size: Number of records in the batch.
            success: Whether the collector accepted it.
            trigger: What caused the flush: "size", "timer", "flush" or "shutdown".
        """
        with self._lock:
            self._flush_triggers[trigger] = self._flush_triggers.get(trigger, 0) + 1
            if success:
                self._batches_sent += 1
                self._exported += batch_size
            else:
                self._batches_failed += 1

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "enqueued": self._enqueued,
                "dropped": self._dropped,
                "exported": self._exported,
                "batches_sent": self._batches_sent,
                "batches_failed": self._batches_failed,
                "flush_triggers": dict(self._flush_triggers),
            }
