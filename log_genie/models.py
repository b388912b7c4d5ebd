"""Log record model, levels and OTLP severity mapping."""

import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class Severity(IntEnum):
    """OTLP severity numbers for the four levels the generator emits."""

    UNSPECIFIED = 0
    DEBUG = 5
    INFO = 9
    WARN = 13
    ERROR = 17


_LEVEL_SEVERITY = {
    LogLevel.DEBUG: Severity.DEBUG,
    LogLevel.INFO: Severity.INFO,
    LogLevel.WARN: Severity.WARN,
    LogLevel.ERROR: Severity.ERROR,
}


@dataclass
class LogRecord:
    timestamp_ns: int
    severity: Severity
    severity_text: str
    body: str
    attributes: dict = field(default_factory=dict)


def severity_for(level) -> tuple[Severity, str]:
    """Map a LogLevel (or its string value) to (severity, severity_text).

    Unknown levels keep their text and get UNSPECIFIED severity.
    """
    text = level.value if isinstance(level, LogLevel) else str(level).lower()
    try:
        return _LEVEL_SEVERITY[LogLevel(text)], text
    except ValueError:
        return Severity.UNSPECIFIED, text


def coerce_attribute(value):
    """Keep str/int/float/bool as-is, stringify everything else."""
    if isinstance(value, (str, bool, int, float)):
        return value
    return str(value)


def create_log_record(level, message: str, attributes: dict | None = None) -> LogRecord:
    """Factory that stamps the current time and normalises attributes."""
    severity, text = severity_for(level)
    return LogRecord(
        timestamp_ns=time.time_ns(),
        severity=severity,
        severity_text=text,
        body=message,
        attributes={
            str(k): coerce_attribute(v) for k, v in (attributes or {}).items()
        },
    )
