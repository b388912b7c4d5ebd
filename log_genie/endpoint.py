"""Endpoint resolver — splits a collector endpoint into host:port and path."""

from dataclasses import dataclass

DEFAULT_LOGS_PATH = "/v1/logs"
_SCHEMES = ("http://", "https://")


@dataclass(frozen=True)
class Endpoint:
    host_port: str
    path: str = ""

    @property
    def logs_url(self) -> str:
        """Plaintext URL the exporter and prober POST to."""
        return f"http://{self.host_port}{self.path or DEFAULT_LOGS_PATH}"


def resolve_endpoint(raw: str) -> Endpoint:
    """Parse ``host:port``, ``http://host:port/path`` or ``https://...``.

    Never raises: anything unrecognised ends up in host_port with no path.
    """
    for scheme in _SCHEMES:
        if raw.startswith(scheme):
            raw = raw[len(scheme):]
            break

    host_port, sep, rest = raw.partition("/")
    path = "/" + rest if sep else ""
    return Endpoint(host_port=host_port, path=path)
