"""Diagnostic prober — posts a test record straight to the collector and logs the reply."""

import logging
import threading
from dataclasses import dataclass

import requests

from log_genie.endpoint import Endpoint
from log_genie.models import LogLevel, LogRecord, severity_for
from log_genie.serializer import serialize_batch

logger = logging.getLogger(__name__)

PROBE_SERVICE_NAME = "log-genie-test"
PROBE_TIMESTAMP_NS = 1715777777000000000


@dataclass(frozen=True)
class ProbeResult:
    url: str
    status_code: int | None = None
    body: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code is not None and 200 <= self.status_code < 300


def build_probe_payload() -> bytes:
    severity, _ = severity_for(LogLevel.INFO)
    record = LogRecord(
        timestamp_ns=PROBE_TIMESTAMP_NS,
        severity=severity,
        severity_text="INFO",
        body="Test log message",
        attributes={"test": "value"},
    )
    return serialize_batch([record], PROBE_SERVICE_NAME)


class DiagnosticProber:
    """Periodically POSTs a synthetic record to the logs endpoint.

    Works outside the batch pipeline and never touches the log counter.
    Every outcome, including failures, is reported as a diagnostic log line.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        shutdown_event: threading.Event,
        interval: float = 10.0,
        timeout: float = 5.0,
        on_result=None,
        session: requests.Session | None = None,
    ):
        self._endpoint = endpoint
        self._shutdown = shutdown_event
        self._interval = interval
        self._timeout = timeout
        self._on_result = on_result
        self._session = session or requests.Session()
        self._payload = build_probe_payload()
        self._last_result: ProbeResult | None = None
        self._thread: threading.Thread | None = None

    @property
    def last_result(self) -> ProbeResult | None:
        return self._last_result

    def start(self):
        """Probe once immediately, then every interval until cancelled."""
        self._thread = threading.Thread(
            target=self._probe_loop, name="log-genie-prober", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0):
        """Wait up to *timeout* for the background thread to exit.

        The thread closes its own session on exit, so a request still waiting
        on the collector is left to finish on its own daemon thread.
        """
        if self._thread is None:
            self._session.close()
            return
        self._thread.join(timeout=max(timeout, 0.0))
        if self._thread.is_alive():
            logger.debug("Diagnostic request still in flight at shutdown, not waiting for it")

    def probe(self) -> ProbeResult:
        """Send one test POST and report what came back."""
        url = self._endpoint.logs_url
        logger.debug("Testing direct POST to %s", url)
        try:
            resp = self._session.post(
                url,
                data=self._payload,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            result = ProbeResult(url=url, error=str(exc))
            logger.warning("Error sending test POST request to %s: %s", url, exc)
        else:
            result = ProbeResult(url=url, status_code=resp.status_code, body=resp.text)
            if not result.ok:
                logger.warning(
                    "OTEL collector rejected test POST with status %d: %s",
                    resp.status_code,
                    resp.text,
                )
            elif resp.text:
                logger.info("OTEL COLLECTOR DIRECT POST RESPONSE: %s", resp.text)
            else:
                logger.info(
                    "OTLP collector returned empty response with status: %d",
                    resp.status_code,
                )

        self._last_result = result
        if self._on_result is not None:
            self._on_result(result)
        return result

    def _probe_loop(self):
        try:
            while not self._shutdown.is_set():
                self.probe()
                self._shutdown.wait(self._interval)
        finally:
            self._session.close()
