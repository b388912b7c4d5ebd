"""Configuration — dataclass defaults, optional YAML file, CLI flags, then env vars."""

import argparse
import logging
import os
from dataclasses import dataclass, field, replace

import yaml

from log_genie.provider import TelemetryConfig

logger = logging.getLogger(__name__)

VALID_VERBOSITY = ("debug", "info", "warn", "error")
_BATCH_KEYS = ("max_queue_size", "max_batch_size", "export_interval", "export_timeout")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _to_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return _parse_bool(value)
    raise TypeError(f"expected a boolean, got {type(value).__name__}")


_YAML_TYPES = {
    "rate": int,
    "local_logs": _to_bool,
    "enabled": _to_bool,
    "show_responses": _to_bool,
    "max_queue_size": int,
    "max_batch_size": int,
    "export_interval": float,
    "export_timeout": float,
}


@dataclass(frozen=True)
class AppConfig:
    rate: int = 10
    verbosity: str = "info"
    local_logs: bool = False
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as exc:
        logger.warning("Config file %s is not valid YAML, using defaults: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Config file %s must hold a mapping, got %s; using defaults",
            path, type(data).__name__,
        )
        return {}
    logger.info("Loaded YAML config from %s", path)
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="log-genie synthetic log generator")
    parser.add_argument("--config", type=str, default=None, help="Optional YAML config file")
    parser.add_argument("--rate", type=int, default=None, help="Number of logs per second")
    parser.add_argument(
        "--verbosity", type=str, default=None,
        help="Log verbosity level: debug, info, warn, error",
    )
    parser.add_argument(
        "--telemetry", action="store_true", default=None,
        help="Enable OpenTelemetry logs export",
    )
    parser.add_argument(
        "--telemetry-endpoint", type=str, default=None,
        help="OpenTelemetry collector endpoint",
    )
    parser.add_argument(
        "--local-logs", action="store_true", default=None,
        help="Enable local logs to stdout even when telemetry is enabled",
    )
    parser.add_argument(
        "--show-responses", action="store_true", default=None,
        help="Show responses from the OTEL collector",
    )
    parser.add_argument("--application-id", type=str, default=None)
    return parser


def _set_from_yaml(values: dict, key: str, raw):
    """Store a YAML value, converted to the setting's type.

    A value that does not convert is logged and the previous one kept.
    """
    convert = _YAML_TYPES.get(key)
    if convert is None:
        values[key] = raw
        return
    try:
        values[key] = convert(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid YAML value %r for %s, keeping %r", raw, key, values[key])


def _section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        logger.warning("YAML section %r must be a mapping, ignoring it", name)
        return {}
    return section


def _apply_yaml(values: dict, data: dict):
    for key in ("rate", "verbosity", "local_logs"):
        if key in data:
            _set_from_yaml(values, key, data[key])
    telemetry = _section(data, "telemetry")
    for key in ("enabled", "endpoint", "show_responses", "application_id", "service_name"):
        if key in telemetry:
            _set_from_yaml(values, key, telemetry[key])
    batch = _section(data, "batch")
    for key in _BATCH_KEYS:
        if key in batch:
            _set_from_yaml(values, key, batch[key])


def _apply_cli(values: dict, args: argparse.Namespace):
    mapping = {
        "rate": args.rate,
        "verbosity": args.verbosity,
        "enabled": args.telemetry,
        "endpoint": args.telemetry_endpoint,
        "local_logs": args.local_logs,
        "show_responses": args.show_responses,
        "application_id": args.application_id,
    }
    for key, value in mapping.items():
        if value is not None:
            values[key] = value


def _apply_env(values: dict, environ):
    env_rate = environ.get("LOG_GENIE_RATE")
    if env_rate:
        try:
            values["rate"] = int(env_rate)
        except ValueError:
            logger.warning("Invalid LOG_GENIE_RATE %r, keeping %s", env_rate, values["rate"])

    if environ.get("LOG_GENIE_VERBOSITY"):
        values["verbosity"] = environ["LOG_GENIE_VERBOSITY"]
    if environ.get("LOG_GENIE_TELEMETRY_ENDPOINT"):
        values["endpoint"] = environ["LOG_GENIE_TELEMETRY_ENDPOINT"]
    if environ.get("LOG_GENIE_APPLICATION_ID"):
        values["application_id"] = environ["LOG_GENIE_APPLICATION_ID"]

    for env_name, key in (
        ("LOG_GENIE_TELEMETRY", "enabled"),
        ("LOG_GENIE_LOCAL_LOGS", "local_logs"),
        ("LOG_GENIE_SHOW_RESPONSES", "show_responses"),
    ):
        raw = environ.get(env_name)
        if raw:
            values[key] = _parse_bool(raw)


def load_config(argv=None, environ=None) -> AppConfig:
    """Build AppConfig. Environment variables override CLI flags, which
    override the YAML file, which overrides the dataclass defaults.

    Pass argv/environ for testability; when None, sys.argv and os.environ
    are used.
    """
    environ = os.environ if environ is None else environ
    args = build_parser().parse_args(argv)

    defaults = TelemetryConfig()
    values = {
        "rate": AppConfig.rate,
        "verbosity": AppConfig.verbosity,
        "local_logs": AppConfig.local_logs,
        "enabled": defaults.enabled,
        "endpoint": defaults.endpoint,
        "show_responses": defaults.show_responses,
        "application_id": defaults.application_id,
        "service_name": defaults.service_name,
    }
    for key in _BATCH_KEYS:
        values[key] = getattr(defaults, key)

    _apply_yaml(values, load_yaml_config(args.config or environ.get("LOG_GENIE_CONFIG")))
    _apply_cli(values, args)
    _apply_env(values, environ)

    rate = int(values["rate"])
    if rate < 1:
        logger.warning("Rate must be at least 1 (got %d), using %d", rate, AppConfig.rate)
        rate = AppConfig.rate

    verbosity = str(values["verbosity"]).strip().lower()
    if verbosity not in VALID_VERBOSITY:
        logger.warning("Invalid verbosity '%s', falling back to 'info'", verbosity)
        verbosity = "info"

    telemetry = replace(
        defaults,
        enabled=bool(values["enabled"]),
        endpoint=str(values["endpoint"]),
        show_responses=bool(values["show_responses"]),
        application_id=str(values["application_id"] or ""),
        service_name=str(values["service_name"]),
        max_queue_size=int(values["max_queue_size"]),
        max_batch_size=int(values["max_batch_size"]),
        export_interval=float(values["export_interval"]),
        export_timeout=float(values["export_timeout"]),
    )
    return AppConfig(
        rate=rate,
        verbosity=verbosity,
        local_logs=bool(values["local_logs"]),
        telemetry=telemetry,
    )
