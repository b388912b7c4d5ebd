"""OTLP/HTTP log exporter — POSTs JSON-encoded batches to the collector."""

import logging
import threading

import requests

from log_genie.endpoint import Endpoint
from log_genie.errors import ConstructionError, DeliveryError
from log_genie.models import LogRecord
from log_genie.serializer import serialize_batch

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "log-genie"
REQUEST_TIMEOUT = 5.0


def _validate_host_port(host_port: str):
    if not host_port:
        raise ConstructionError("collector endpoint has no host")
    host, sep, port = host_port.rpartition(":")
    if not sep:
        return
    if not host:
        raise ConstructionError(f"collector endpoint {host_port!r} has no host")
    try:
        port_num = int(port)
    except ValueError:
        raise ConstructionError(
            f"invalid port {port!r} in collector endpoint {host_port!r}"
        ) from None
    if not 0 < port_num < 65536:
        raise ConstructionError(
            f"port {port_num} out of range in collector endpoint {host_port!r}"
        )


class OTLPLogExporter:
    """Delivers batches over plaintext HTTP. One attempt per batch, no retry."""

    def __init__(
        self,
        endpoint: Endpoint,
        service_name: str = DEFAULT_SERVICE_NAME,
        resource_attributes: dict | None = None,
        timeout: float = REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ):
        _validate_host_port(endpoint.host_port)
        self._endpoint = endpoint
        self._service_name = service_name
        self._resource_attributes = dict(resource_attributes or {})
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        self._lock = threading.Lock()
        self._closed = False

    @property
    def url(self) -> str:
        return self._endpoint.logs_url

    def export(self, batch: list[LogRecord], timeout: float | None = None):
        """POST one batch. Raises DeliveryError on any failure.

        *timeout* caps the request below the configured timeout, e.g. during
        a bounded shutdown drain.
        """
        if self._closed:
            raise DeliveryError("exporter is shut down")

        body = serialize_batch(batch, self._service_name, self._resource_attributes)
        timeout = self._timeout if timeout is None else min(timeout, self._timeout)
        try:
            resp = self._session.post(self.url, data=body, timeout=timeout)
        except requests.Timeout as exc:
            raise DeliveryError(f"timed out posting to {self.url}: {exc}") from exc
        except requests.RequestException as exc:
            raise DeliveryError(f"error posting to {self.url}: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise DeliveryError(
                f"collector returned HTTP {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        logger.debug("Exported %d records (%d bytes) to %s", len(batch), len(body), self.url)

    def shutdown(self):
        """Close the HTTP session. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._session.close()
