"""Error taxonomy for the telemetry export pipeline."""


class TelemetryError(Exception):
    """Base class for all telemetry failures. Never fatal to the process."""


class ConstructionError(TelemetryError):
    """The exporter or its transport could not be built at startup."""


class NotEnabledError(TelemetryError):
    """send_log was called while telemetry is disabled or not running."""

    def __init__(self, message: str = "telemetry is not enabled or logger is not initialized"):
        super().__init__(message)


class DeliveryError(TelemetryError):
    """A batch could not be delivered to the collector."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ShutdownTimeout(TelemetryError):
    """The final drain did not finish within its time bound."""

    def __init__(self, remaining: int, timeout: float):
        super().__init__(
            f"{remaining} record(s) still queued after {timeout:.1f}s shutdown drain"
        )
        self.remaining = remaining
        self.timeout = timeout
