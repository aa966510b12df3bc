"""Generic sensor client."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from viam.gen.component.sensor.v1 import sensor_pb2 as sensor_pb

from ..resource import ResourceClient
from ..schema import service
from ..utils import readings_to_dict


class SensorClient(ResourceClient):
    SERVICE = service(sensor_pb, "SensorService")
    SUBTYPE = "sensor"

    async def get_readings(self, extra: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        """Current readings keyed by reading name, as plain Python values."""
        response = await self._call("GetReadings", extra=extra)
        return readings_to_dict(response.readings)
