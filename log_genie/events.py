"""Random log events fed to the logger on every tick."""

import random
import time
import uuid
from dataclasses import dataclass, field

from log_genie.models import LogLevel

LEVELS = [LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARN, LogLevel.ERROR]
SERVICES = [
    "user-service",
    "payment-service",
    "inventory-service",
    "notification-service",
    "auth-service",
]
HTTP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]
HTTP_STATUS_CODES = [200, 201, 204, 301, 304, 400, 401, 403, 404, 409, 429, 500, 502, 503]
WORDS = (
    "request user cache query service timeout payment order session token "
    "upstream database retry connection handler latency queue worker config"
).split()
ERROR_MESSAGES = [
    "Connection refused by upstream",
    "Database deadlock detected",
    "Payment gateway timeout",
    "Null reference in request handler",
    "Failed to acquire lock",
]


@dataclass
class LogEvent:
    level: LogLevel
    message: str
    attributes: dict = field(default_factory=dict)


def _sentence(min_words: int = 5, max_words: int = 15) -> str:
    words = random.choices(WORDS, k=random.randint(min_words, max_words))
    return " ".join(words).capitalize() + "."


def _ipv4() -> str:
    return ".".join(str(random.randint(1, 254)) for _ in range(4))


def random_event() -> LogEvent:
    """A request-style event at a random level."""
    return LogEvent(
        level=random.choice(LEVELS),
        message=_sentence(),
        attributes={
            "service": random.choice(SERVICES),
            "user_id": str(uuid.uuid4()),
            "http_method": random.choice(HTTP_METHODS),
            "status_code": random.choice(HTTP_STATUS_CODES),
            "latency_ms": random.randint(1, 500),
            "ip_address": _ipv4(),
            "timestamp": time.time_ns(),
        },
    )


def random_error_event() -> LogEvent:
    return LogEvent(
        level=LogLevel.ERROR,
        message=random.choice(ERROR_MESSAGES),
        attributes={
            "service": random.choice(SERVICES),
            "request_id": str(uuid.uuid4()),
            "error_code": random.randint(400, 599),
            "stack_trace": _sentence(5, 5),
            "timestamp": time.time_ns(),
        },
    )
