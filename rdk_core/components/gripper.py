"""Gripper client."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from viam.gen.component.gripper.v1 import gripper_pb2 as gripper_pb

from ..resource import ResourceClient
from ..schema import service


class GripperClient(ResourceClient):
    SERVICE = service(gripper_pb, "GripperService")
    SUBTYPE = "gripper"

    async def open(self, extra: Optional[Mapping[str, Any]] = None) -> None:
        await self._call("Open", extra=extra)

    async def grab(self, extra: Optional[Mapping[str, Any]] = None) -> bool:
        """Close the gripper; True if it reports holding something."""
        return (await self._call("Grab", extra=extra)).success

    async def stop(self, extra: Optional[Mapping[str, Any]] = None) -> None:
        await self._call("Stop", extra=extra)

    async def is_moving(self) -> bool:
        return (await self._call("IsMoving")).is_moving
