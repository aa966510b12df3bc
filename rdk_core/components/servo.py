"""Servo client."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from viam.gen.component.servo.v1 import servo_pb2 as servo_pb

from ..resource import ResourceClient
from ..schema import service


class ServoClient(ResourceClient):
    SERVICE = service(servo_pb, "ServoService")
    SUBTYPE = "servo"

    async def move(self, angle_deg: int, extra: Optional[Mapping[str, Any]] = None) -> None:
        await self._call("Move", angle_deg=angle_deg, extra=extra)

    async def get_position(self, extra: Optional[Mapping[str, Any]] = None) -> int:
        return (await self._call("GetPosition", extra=extra)).position_deg

    async def stop(self, extra: Optional[Mapping[str, Any]] = None) -> None:
        await self._call("Stop", extra=extra)

    async def is_moving(self) -> bool:
        return (await self._call("IsMoving")).is_moving
