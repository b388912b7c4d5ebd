"""Shared fixtures: local HTTP collectors, a fake exporter, a fake clock and a poller."""

import json
import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from log_genie.errors import DeliveryError


class FakeCollector:
    """Records every POST and answers with a configurable status/body."""

    def __init__(self):
        self.requests: list[dict] = []
        self.status = 200
        self.response_body = b"{}"
        self.received = threading.Event()
        self.host_port = ""

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r["body"]) for r in self.requests]


def _make_handler(collector: FakeCollector):
    class Handler(BaseHTTPRequestHandler):
        def do_POST(self):
            length = int(self.headers.get("Content-Length", 0))
            body = self.rfile.read(length)
            collector.requests.append({
                "path": self.path,
                "content_type": self.headers.get("Content-Type"),
                "body": body,
            })
            self.send_response(collector.status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(collector.response_body)))
            self.end_headers()
            self.wfile.write(collector.response_body)
            collector.received.set()

        def log_message(self, format, *args):
            pass

    return Handler


@pytest.fixture
def collector():
    """Start a real HTTP server on an ephemeral port, yield its recorder."""
    state = FakeCollector()
    server = ThreadingHTTPServer(("127.0.0.1", 0), _make_handler(state))
    host, port = server.server_address[:2]
    state.host_port = f"{host}:{port}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield state
    server.shutdown()
    server.server_close()


@pytest.fixture
def stalled_collector():
    """A listening socket that never accepts, so requests hang until timeout.

    Yields its host:port.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(16)
    host, port = sock.getsockname()
    yield f"{host}:{port}"
    sock.close()


class FakeExporter:
    """In-memory exporter.

    fail=True makes every export raise. delay=N holds each export for N
    seconds, or until the per-call timeout if that is shorter, in which
    case the export raises as a timed-out request would.
    """

    def __init__(self, fail: bool = False, delay: float = 0.0):
        self.batches: list[list] = []
        self.timeouts: list = []
        self.fail = fail
        self.delay = delay
        self.shutdown_calls = 0
        self.exported = threading.Event()
        self._lock = threading.Lock()

    def export(self, batch, timeout=None):
        self.timeouts.append(timeout)
        if self.delay:
            if timeout is not None and timeout < self.delay:
                threading.Event().wait(timeout)
                raise DeliveryError(f"request timed out after {timeout:.2f}s")
            threading.Event().wait(self.delay)
        if self.fail:
            raise DeliveryError("collector unavailable", status_code=503)
        with self._lock:
            self.batches.append(list(batch))
        self.exported.set()

    def shutdown(self):
        self.shutdown_calls += 1

    @property
    def records(self) -> list:
        with self._lock:
            return [r for batch in self.batches for r in batch]


class FakeClock:
    """Monotonic clock stand-in that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def _wait_for(predicate, timeout: float = 3.0, interval: float = 0.02) -> bool:
    """Poll *predicate* until it returns truthy or *timeout* expires."""
    waiter = threading.Event()
    elapsed = 0.0
    while elapsed < timeout:
        if predicate():
            return True
        waiter.wait(interval)
        elapsed += interval
    return bool(predicate())


@pytest.fixture
def make_exporter():
    """Factory for FakeExporter instances with custom fail/delay settings."""
    return FakeExporter


@pytest.fixture
def fake_exporter():
    return FakeExporter()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def wait_for():
    return _wait_for
