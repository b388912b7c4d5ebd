"""Logger — local JSON output plus optional telemetry export."""

import json
import logging
import sys
from datetime import datetime, timezone

from log_genie.errors import ConstructionError, TelemetryError
from log_genie.events import LogEvent, random_error_event, random_event
from log_genie.models import LogLevel
from log_genie.provider import Provider, TelemetryConfig

logger = logging.getLogger(__name__)

OUTPUT_LOGGER_NAME = "log-genie.output"

_PYTHON_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}
_LEVEL_NAMES = {v: k.value for k, v in _PYTHON_LEVELS.items()}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record: level, msg, time and the event fields."""

    def format(self, record: logging.LogRecord) -> str:
        doc = {
            "level": _LEVEL_NAMES.get(record.levelno, record.levelname.lower()),
            "msg": record.getMessage(),
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
        }
        doc.update(getattr(record, "fields", {}))
        return json.dumps(doc, default=str)


def build_output_logger(verbosity: str, stream=None) -> logging.Logger:
    """Dedicated stdout logger for generated records, isolated from diagnostics."""
    out = logging.getLogger(OUTPUT_LOGGER_NAME)
    out.handlers.clear()
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonLineFormatter())
    out.addHandler(handler)
    out.propagate = False
    try:
        level = _PYTHON_LEVELS[LogLevel(verbosity.lower())]
    except ValueError:
        level = logging.INFO
    out.setLevel(level)
    return out


class Logger:
    """Composes a local writer and, when telemetry is on, a Provider.

    If the provider cannot be built the logger keeps going with local
    output only; construction_error holds the reason.
    """

    def __init__(
        self,
        telemetry: TelemetryConfig,
        verbosity: str = "info",
        local_logs: bool = False,
        stream=None,
        provider: Provider | None = None,
    ):
        self._local = build_output_logger(verbosity, stream)
        self._telemetry: Provider | None = None
        self._local_enabled = local_logs or not telemetry.enabled
        self.construction_error: ConstructionError | None = None

        if provider is not None:
            self._telemetry = provider
        elif telemetry.enabled:
            try:
                self._telemetry = Provider(telemetry)
            except ConstructionError as exc:
                logger.error(
                    "Failed to initialize telemetry provider, falling back to local logging: %s",
                    exc,
                )
                self.construction_error = exc
                self._local_enabled = True
            else:
                logger.info("Telemetry provider initialized successfully")

    @property
    def telemetry_enabled(self) -> bool:
        return self._telemetry is not None and self._telemetry.is_enabled()

    @property
    def local_enabled(self) -> bool:
        return self._local_enabled

    @property
    def provider(self) -> Provider | None:
        return self._telemetry

    def emit(self, event: LogEvent):
        """Send an event to telemetry and/or write it locally."""
        if self.telemetry_enabled:
            try:
                self._telemetry.send_log(event.level, event.message, event.attributes)
            except TelemetryError as exc:
                logger.error("Failed to send log to telemetry endpoint: %s", exc)

        if self._local_enabled:
            self._local.log(
                _PYTHON_LEVELS[event.level],
                event.message,
                extra={"fields": event.attributes},
            )

    def generate_random_log(self):
        self.emit(random_event())

    def generate_random_error_log(self):
        self.emit(random_error_event())

    def shutdown(self):
        if self._telemetry is not None:
            self._telemetry.shutdown()
