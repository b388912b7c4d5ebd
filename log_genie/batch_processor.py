"""Batch processor — bounded queue drained to the exporter on size or time threshold."""

import logging
import threading
import time
from collections import deque

from log_genie.errors import DeliveryError, ShutdownTimeout
from log_genie.metrics import PipelineMetrics
from log_genie.models import LogRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_QUEUE_SIZE = 2048
DEFAULT_MAX_BATCH_SIZE = 10
DEFAULT_EXPORT_INTERVAL = 1.0
DEFAULT_EXPORT_TIMEOUT = 5.0
MIN_REQUEST_TIMEOUT = 0.01


class BatchProcessor:
    """Thread-safe bounded queue that hands batches to an exporter when
    either ``max_batch_size`` records are waiting or ``export_interval``
    has elapsed since the last export.

    Producers only ever touch the queue under a short lock. Exports run on
    the background worker thread (or on the caller of force_flush/shutdown),
    serialized by a separate export lock so batches leave in FIFO order.
    A full queue drops the incoming record instead of blocking.
    """

    def __init__(
        self,
        exporter,
        shutdown_event: threading.Event,
        max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        export_interval: float = DEFAULT_EXPORT_INTERVAL,
        export_timeout: float = DEFAULT_EXPORT_TIMEOUT,
        clock=time.monotonic,
        metrics: PipelineMetrics | None = None,
    ):
        if max_batch_size < 1 or max_queue_size < 1:
            raise ValueError("max_batch_size and max_queue_size must be positive")
        if max_batch_size > max_queue_size:
            raise ValueError(
                f"max_batch_size ({max_batch_size}) exceeds max_queue_size ({max_queue_size})"
            )
        if export_interval <= 0 or export_timeout <= 0:
            raise ValueError("export_interval and export_timeout must be positive")

        self._exporter = exporter
        self._shutdown = shutdown_event
        self._max_queue_size = max_queue_size
        self._max_batch_size = max_batch_size
        self._export_interval = export_interval
        self._export_timeout = export_timeout
        self._clock = clock
        self._metrics = metrics or PipelineMetrics()

        self._queue: deque[LogRecord] = deque()
        self._lock = threading.Lock()
        self._export_lock = threading.Lock()
        self._wakeup = threading.Event()
        self._stopped = False
        self._dropping = False
        self._last_export = clock()

        self._worker = threading.Thread(
            target=self._run, name="log-genie-batch", daemon=True
        )
        self._worker.start()

    # Public API

    def enqueue(self, record: LogRecord) -> bool:
        """Queue a record. Returns False if it was dropped (queue full or stopped)."""
        with self._lock:
            if self._stopped or len(self._queue) >= self._max_queue_size:
                first_drop = not self._dropping
                self._dropping = True
                accepted = False
            else:
                self._queue.append(record)
                self._dropping = False
                accepted = True
                batch_ready = len(self._queue) >= self._max_batch_size

        if not accepted:
            self._metrics.record_dropped()
            if first_drop:
                logger.warning(
                    "Export queue full (%d records), dropping new records",
                    self._max_queue_size,
                )
            return False

        self._metrics.record_enqueued()
        if batch_ready:
            self._wakeup.set()
        return True

    def export_due(self) -> int:
        """Export every batch the size/timer policy says is due.

        Returns the number of records handed to the exporter.
        """
        exported = 0
        with self._export_lock:
            while not self._stopped:
                with self._lock:
                    now = self._clock()
                    if len(self._queue) >= self._max_batch_size:
                        trigger = "size"
                    elif now - self._last_export >= self._export_interval:
                        trigger = "timer"
                    else:
                        break
                    self._last_export = now
                    batch = self._take_batch()

                if not batch:
                    break
                self._export(batch, trigger)
                exported += len(batch)
        return exported

    def force_flush(self) -> int:
        """Synchronously export everything currently queued."""
        exported = 0
        with self._export_lock:
            while True:
                with self._lock:
                    batch = self._take_batch()
                    self._last_export = self._clock()
                if not batch:
                    break
                self._export(batch, "flush")
                exported += len(batch)
        return exported

    def shutdown(self, timeout: float | None = None):
        """Stop accepting records, drain the queue within *timeout* seconds,
        then shut the exporter down.

        Idempotent. Raises ShutdownTimeout if records were left behind.
        """
        timeout = self._export_timeout if timeout is None else timeout
        with self._lock:
            if self._stopped:
                return
            self._stopped = True

        deadline = time.monotonic() + timeout
        self._wakeup.set()
        self._worker.join(timeout=timeout)

        try:
            remaining = self._drain(deadline)
        finally:
            self._exporter.shutdown()

        if remaining:
            raise ShutdownTimeout(remaining, timeout)
        logger.debug("Batch processor drained and stopped")

    @property
    def pending_count(self) -> int:
        """Number of records currently waiting in the queue."""
        with self._lock:
            return len(self._queue)

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    @property
    def metrics(self) -> PipelineMetrics:
        return self._metrics

    # Internal helpers

    def _run(self):
        """Worker loop: sleep until the next timer deadline or a size wakeup."""
        while not self._shutdown.is_set() and not self._stopped:
            self._wakeup.wait(timeout=self._time_to_next_export())
            self._wakeup.clear()
            if self._shutdown.is_set() or self._stopped:
                break
            self.export_due()

    def _time_to_next_export(self) -> float:
        with self._lock:
            elapsed = self._clock() - self._last_export
        return min(max(self._export_interval - elapsed, 0.0), self._export_interval)

    def _take_batch(self) -> list[LogRecord]:
        """Pop up to max_batch_size records. Caller holds self._lock."""
        count = min(len(self._queue), self._max_batch_size)
        return [self._queue.popleft() for _ in range(count)]

    def _drain(self, deadline: float) -> int:
        """Export leftovers until the deadline; discard and count the rest."""
        wait = max(deadline - time.monotonic(), 0.0)
        if self._export_lock.acquire(timeout=wait):
            try:
                while time.monotonic() < deadline:
                    with self._lock:
                        batch = self._take_batch()
                    if not batch:
                        break
                    remaining = max(deadline - time.monotonic(), MIN_REQUEST_TIMEOUT)
                    self._export(batch, "shutdown", timeout=remaining)
            finally:
                self._export_lock.release()

        with self._lock:
            remaining = len(self._queue)
            self._queue.clear()
        return remaining

    def _export(self, batch: list[LogRecord], trigger: str, timeout: float | None = None):
        """Hand a batch to the exporter. Failed batches are dropped, never retried."""
        try:
            self._exporter.export(batch, timeout=timeout)
        except DeliveryError as exc:
            self._metrics.record_batch(len(batch), success=False, trigger=trigger)
            logger.warning("Dropped batch of %d records: %s", len(batch), exc)
        except Exception:
            self._metrics.record_batch(len(batch), success=False, trigger=trigger)
            logger.exception("Exporter failed for batch of %d records", len(batch))
        else:
            self._metrics.record_batch(len(batch), success=True, trigger=trigger)
            logger.debug("Exported batch of %d records (%s)", len(batch), trigger)
