"""Telemetry provider — owns the exporter, batch processor and background loops."""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum

from log_genie.batch_processor import (
    DEFAULT_EXPORT_INTERVAL,
    DEFAULT_EXPORT_TIMEOUT,
    DEFAULT_MAX_BATCH_SIZE,
    DEFAULT_MAX_QUEUE_SIZE,
    BatchProcessor,
)
from log_genie.endpoint import resolve_endpoint
from log_genie.errors import ConstructionError, NotEnabledError, ShutdownTimeout
from log_genie.exporter import DEFAULT_SERVICE_NAME, OTLPLogExporter
from log_genie.metrics import LogCounter, ThroughputReport, make_report
from log_genie.models import create_log_record
from log_genie.prober import DiagnosticProber

logger = logging.getLogger(__name__)


class Lifecycle(Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


@dataclass(frozen=True)
class TelemetryConfig:
    enabled: bool = False
    endpoint: str = "collector:4318"
    show_responses: bool = False
    service_name: str = DEFAULT_SERVICE_NAME
    application_id: str = ""
    max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    export_interval: float = DEFAULT_EXPORT_INTERVAL
    export_timeout: float = DEFAULT_EXPORT_TIMEOUT
    report_interval: float = 60.0
    probe_interval: float = 10.0


class Provider:
    """Façade over the export pipeline.

    A disabled provider starts nothing and rejects every send_log call with
    NotEnabledError. An enabled one builds the exporter (unless one is
    injected), the batch processor, the self-report loop and, when
    show_responses is set, the diagnostic prober. All background threads
    share one cancellation event that shutdown() sets.

    Raises ConstructionError if the exporter cannot be built.
    """

    def __init__(
        self,
        config: TelemetryConfig,
        exporter=None,
        on_report=None,
        clock=time.monotonic,
    ):
        self._config = config
        self._enabled = config.enabled
        self._endpoint = resolve_endpoint(config.endpoint)
        self._on_report = on_report
        self._clock = clock
        self._counter = LogCounter()
        self._state_lock = threading.Lock()
        self._lifecycle = Lifecycle.UNINITIALIZED
        self._cancel = threading.Event()
        self._processor: BatchProcessor | None = None
        self._prober: DiagnosticProber | None = None
        self._reporter: threading.Thread | None = None
        self._last_report_time = clock()
        self._last_report: ThroughputReport | None = None

        if not self._enabled:
            return

        if exporter is None:
            resource = {}
            if config.application_id:
                resource["application_id"] = config.application_id
            exporter = OTLPLogExporter(
                self._endpoint,
                service_name=config.service_name,
                resource_attributes=resource,
                timeout=config.export_timeout,
            )

        if config.show_responses:
            logger.info("OTEL COLLECTOR CONFIG:")
            logger.info("  - Endpoint: %s", config.endpoint)
            logger.info("  - Host:Port: %s", self._endpoint.host_port)
            logger.info("  - Path: %s", self._endpoint.path)

        try:
            self._processor = BatchProcessor(
                exporter,
                self._cancel,
                max_queue_size=config.max_queue_size,
                max_batch_size=config.max_batch_size,
                export_interval=config.export_interval,
                export_timeout=config.export_timeout,
            )
        except ValueError as exc:
            exporter.shutdown()
            raise ConstructionError(f"invalid batch settings: {exc}") from exc

        self._reporter = threading.Thread(
            target=self._report_loop, name="log-genie-reporter", daemon=True
        )
        self._reporter.start()

        if config.show_responses:
            self._prober = DiagnosticProber(
                self._endpoint,
                self._cancel,
                interval=config.probe_interval,
                timeout=config.export_timeout,
            )
            self._prober.start()

        self._lifecycle = Lifecycle.RUNNING
        logger.debug("Telemetry provider running, exporting to %s", self._endpoint.logs_url)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def send_log(self, level, message: str, attributes: dict | None = None):
        """Queue one record for export. Never blocks on the network.

        Raises NotEnabledError if telemetry is disabled or not running.
        A record dropped by a full queue still counts as sent.
        """
        if not self._enabled or self._lifecycle is not Lifecycle.RUNNING:
            raise NotEnabledError()

        record = create_log_record(level, message, attributes)
        self._processor.enqueue(record)
        self._counter.increment()

    def shutdown(self):
        """Cancel background loops, drain the queue (bounded), stop.

        Safe to call any number of times.
        """
        with self._state_lock:
            if self._lifecycle is not Lifecycle.RUNNING:
                return
            self._lifecycle = Lifecycle.SHUTTING_DOWN

        deadline = time.monotonic() + self._config.export_timeout
        self._cancel.set()

        try:
            self._processor.shutdown(timeout=max(deadline - time.monotonic(), 0.0))
        except ShutdownTimeout as exc:
            logger.warning("Telemetry shutdown incomplete: %s", exc)

        # Whatever is left of the bound goes to the loops, which already saw the cancel.
        if self._reporter is not None:
            self._reporter.join(timeout=max(deadline - time.monotonic(), 0.0))
        if self._prober is not None:
            self._prober.stop(timeout=max(deadline - time.monotonic(), 0.0))

        self._lifecycle = Lifecycle.STOPPED
        logger.debug("Telemetry provider stopped: %s", self._processor.metrics.snapshot())

    def report(self) -> ThroughputReport:
        """Read and reset the counter and publish a throughput report."""
        count = self._counter.reset()
        now = self._clock()
        elapsed = now - self._last_report_time
        self._last_report_time = now

        report = make_report(count, elapsed)
        self._last_report = report
        logger.info(
            "TELEMETRY: Sent %d logs in the last %.1f seconds (%.1f logs/sec)",
            report.count,
            report.elapsed_seconds,
            report.rate,
        )
        if self._on_report is not None:
            self._on_report(report)
        return report

    def is_enabled(self) -> bool:
        return self._enabled

    def get_log_count(self) -> int:
        return self._counter.value

    @property
    def lifecycle(self) -> Lifecycle:
        return self._lifecycle

    @property
    def last_report(self) -> ThroughputReport | None:
        return self._last_report

    @property
    def metrics(self) -> dict:
        """Pipeline counters; empty when telemetry is disabled."""
        return self._processor.metrics.snapshot() if self._processor else {}

    # ------------------------------------------------------------------
    # Background loops
    # ------------------------------------------------------------------

    def _report_loop(self):
        while not self._cancel.wait(self._config.report_interval):
            self.report()
