"""Motor client."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from viam.gen.component.motor.v1 import motor_pb2 as motor_pb

from ..resource import ResourceClient
from ..schema import service


class MotorClient(ResourceClient):
    SERVICE = service(motor_pb, "MotorService")
    SUBTYPE = "motor"

    async def set_power(self, power: float, extra: Optional[Mapping[str, Any]] = None) -> None:
        """Set power as a fraction in ``[-1, 1]``; the sign selects direction."""
        await self._call("SetPower", power_pct=power, extra=extra)

    async def go_for(
        self, rpm: float, revolutions: float, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        await self._call("GoFor", rpm=rpm, revolutions=revolutions, extra=extra)

    async def go_to(
        self,
        rpm: float,
        position_revolutions: float,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        await self._call(
            "GoTo", rpm=rpm, position_revolutions=position_revolutions, extra=extra
        )

    async def set_rpm(self, rpm: float, extra: Optional[Mapping[str, Any]] = None) -> None:
        await self._call("SetRPM", rpm=rpm, extra=extra)

    async def reset_zero_position(
        self, offset: float, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        await self._call("ResetZeroPosition", offset=offset, extra=extra)

    async def stop(self, extra: Optional[Mapping[str, Any]] = None) -> None:
        await self._call("Stop", extra=extra)

    async def get_properties(self, extra: Optional[Mapping[str, Any]] = None) -> dict[str, bool]:
        response = await self._call("GetProperties", extra=extra)
        return {"position_reporting": response.position_reporting}

    async def get_position(self, extra: Optional[Mapping[str, Any]] = None) -> float:
        return (await self._call("GetPosition", extra=extra)).position

    async def is_powered(
        self, extra: Optional[Mapping[str, Any]] = None
    ) -> tuple[bool, float]:
        response = await self._call("IsPowered", extra=extra)
        return response.is_on, response.power_pct

    async def is_moving(self) -> bool:
        return (await self._call("IsMoving")).is_moving
