"""Conversions between plain Python values and protobuf messages."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from google.protobuf import json_format
from google.protobuf.struct_pb2 import Struct, Value
from google.protobuf.timestamp_pb2 import Timestamp

from viam.gen.common.v1.common_pb2 import DoCommandRequest, GeoPoint

logger = logging.getLogger(__name__)


def dict_to_struct(obj: Optional[Mapping[str, Any]]) -> Struct:
    """Encode a JSON-like mapping as ``google.protobuf.Struct``.

    ``None`` and ``{}`` encode identically.
    """
    struct = Struct()
    if obj:
        struct.update(obj)
    return struct


def struct_to_dict(struct: Struct) -> dict[str, Any]:
    return json_format.MessageToDict(struct)


def value_to_python(value: Value) -> Any:
    return json_format.MessageToDict(value)


def message_to_dict(message) -> dict[str, Any]:
    """Snake-case dict form of a response message, defaults included."""
    return json_format.MessageToDict(
        message,
        preserving_proto_field_name=True,
        always_print_fields_with_no_presence=True,
    )


def datetime_to_timestamp(value: datetime) -> Timestamp:
    ts = Timestamp()
    ts.FromDatetime(value)
    return ts


def timestamp_to_datetime(ts: Timestamp) -> datetime:
    return ts.ToDatetime(tzinfo=timezone.utc)


def is_valid_geo_point(point: GeoPoint) -> bool:
    return all(
        isinstance(v, float) and not math.isnan(v)
        for v in (point.latitude, point.longitude)
    )


async def do_command_from_client(
    stub,
    name: str,
    command: Mapping[str, Any],
    request_logger: Optional[Callable[[Any], None]] = None,
) -> dict[str, Any]:
    """Send *command* through a resource's ``DoCommand`` and unwrap the result.

    Every resource adapter funnels its ``do_command`` through here so the
    envelope, the request hook and the empty-result case behave the same
    for every resource type.
    """
    request = DoCommandRequest(name=name, command=dict_to_struct(command))
    if request_logger is not None:
        request_logger(request)
    logger.debug("DoCommand -> %s", name)
    response = await stub.DoCommand(request)
    if not response.HasField("result"):
        return {}
    return struct_to_dict(response.result)


def readings_to_dict(readings: Mapping[str, Value]) -> dict[str, Any]:
    """Unwrap a ``map<string, Value>`` of sensor readings."""
    return {key: value_to_python(value) for key, value in readings.items()}
