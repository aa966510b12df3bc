"""Power sensor client."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from viam.gen.component.powersensor.v1 import powersensor_pb2 as power_pb

from ..resource import ResourceClient
from ..schema import service
from ..utils import readings_to_dict


class PowerSensorClient(ResourceClient):
    SERVICE = service(power_pb, "PowerSensorService")
    SUBTYPE = "power_sensor"

    async def get_voltage(
        self, extra: Optional[Mapping[str, Any]] = None
    ) -> tuple[float, bool]:
        response = await self._call("GetVoltage", extra=extra)
        return response.volts, response.is_ac

    async def get_current(
        self, extra: Optional[Mapping[str, Any]] = None
    ) -> tuple[float, bool]:
        response = await self._call("GetCurrent", extra=extra)
        return response.amperes, response.is_ac

    async def get_power(self, extra: Optional[Mapping[str, Any]] = None) -> float:
        return (await self._call("GetPower", extra=extra)).watts

    async def get_readings(self, extra: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        response = await self._call("GetReadings", extra=extra)
        return readings_to_dict(response.readings)
