"""Mobile base client."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from viam.gen.common.v1.common_pb2 import Vector3
from viam.gen.component.base.v1 import base_pb2 as base_pb

from ..resource import ResourceClient
from ..schema import service


class BaseClient(ResourceClient):
    SERVICE = service(base_pb, "BaseService")
    SUBTYPE = "base"

    async def move_straight(
        self, distance_mm: int, mm_per_sec: float, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        await self._call(
            "MoveStraight", distance_mm=distance_mm, mm_per_sec=mm_per_sec, extra=extra
        )

    async def spin(
        self, angle_deg: float, degs_per_sec: float, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        await self._call("Spin", angle_deg=angle_deg, degs_per_sec=degs_per_sec, extra=extra)

    async def set_power(
        self, linear: Vector3, angular: Vector3, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        """Set linear and angular power, each component in ``[-1, 1]``."""
        await self._call("SetPower", linear=linear, angular=angular, extra=extra)

    async def set_velocity(
        self, linear: Vector3, angular: Vector3, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        """Set linear (mm/s) and angular (deg/s) velocity."""
        await self._call("SetVelocity", linear=linear, angular=angular, extra=extra)

    async def stop(self, extra: Optional[Mapping[str, Any]] = None) -> None:
        await self._call("Stop", extra=extra)

    async def is_moving(self) -> bool:
        return (await self._call("IsMoving")).is_moving

    async def get_properties(
        self, extra: Optional[Mapping[str, Any]] = None
    ) -> base_pb.GetPropertiesResponse:
        return await self._call("GetProperties", extra=extra)
