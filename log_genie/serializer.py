"""OTLP encoding of log record batches using the opentelemetry-proto messages."""

import time

from google.protobuf import json_format
from opentelemetry.proto.collector.logs.v1.logs_service_pb2 import ExportLogsServiceRequest
from opentelemetry.proto.common.v1.common_pb2 import AnyValue, InstrumentationScope, KeyValue
from opentelemetry.proto.logs.v1.logs_pb2 import LogRecord as OTLPLogRecord
from opentelemetry.proto.logs.v1.logs_pb2 import ResourceLogs, ScopeLogs
from opentelemetry.proto.resource.v1.resource_pb2 import Resource

from log_genie.models import LogRecord

SCOPE_NAME = "log-genie"

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def make_value(value) -> AnyValue:
    """Wrap a scalar in an AnyValue.

    bool is checked before int because bool is an int subclass. Integers
    outside the int64 range travel as strings.
    """
    if isinstance(value, bool):
        return AnyValue(bool_value=value)
    if isinstance(value, int):
        if _INT64_MIN <= value <= _INT64_MAX:
            return AnyValue(int_value=value)
        return AnyValue(string_value=str(value))
    if isinstance(value, float):
        return AnyValue(double_value=value)
    return AnyValue(string_value=str(value))


def make_attributes(attributes: dict) -> list[KeyValue]:
    return [KeyValue(key=k, value=make_value(v)) for k, v in attributes.items()]


def make_record(record: LogRecord, observed_ns: int | None = None) -> OTLPLogRecord:
    return OTLPLogRecord(
        time_unix_nano=record.timestamp_ns,
        observed_time_unix_nano=observed_ns or record.timestamp_ns,
        severity_number=int(record.severity),
        severity_text=record.severity_text,
        body=AnyValue(string_value=record.body),
        attributes=make_attributes(record.attributes),
    )


def build_request(
    records: list[LogRecord],
    service_name: str,
    resource_attributes: dict | None = None,
) -> ExportLogsServiceRequest:
    """Build the ExportLogsServiceRequest for one batch."""
    resource = {"service.name": service_name}
    resource.update(resource_attributes or {})
    observed = time.time_ns()

    return ExportLogsServiceRequest(
        resource_logs=[
            ResourceLogs(
                resource=Resource(attributes=make_attributes(resource)),
                scope_logs=[
                    ScopeLogs(
                        scope=InstrumentationScope(name=SCOPE_NAME),
                        log_records=[make_record(r, observed) for r in records],
                    )
                ],
            )
        ]
    )


def serialize_batch(
    records: list[LogRecord],
    service_name: str,
    resource_attributes: dict | None = None,
) -> bytes:
    """Serialize a batch to OTLP/JSON bytes (camelCase fields, numeric enums)."""
    request = build_request(records, service_name, resource_attributes)
    body = json_format.MessageToJson(request, use_integers_for_enums=True, indent=None)
    return body.encode("utf-8")
