"""Gantry client."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from viam.gen.component.gantry.v1 import gantry_pb2 as gantry_pb

from ..resource import ResourceClient
from ..schema import service


class GantryClient(ResourceClient):
    SERVICE = service(gantry_pb, "GantryService")
    SUBTYPE = "gantry"

    async def get_position(self, extra: Optional[Mapping[str, Any]] = None) -> list[float]:
        return list((await self._call("GetPosition", extra=extra)).positions_mm)

    async def move_to_position(
        self,
        positions_mm: list[float],
        speeds_mm_per_sec: list[float],
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        await self._call(
            "MoveToPosition",
            positions_mm=positions_mm,
            speeds_mm_per_sec=speeds_mm_per_sec,
            extra=extra,
        )

    async def home(self, extra: Optional[Mapping[str, Any]] = None) -> bool:
        return (await self._call("Home", extra=extra)).homed

    async def get_lengths(self, extra: Optional[Mapping[str, Any]] = None) -> list[float]:
        return list((await self._call("GetLengths", extra=extra)).lengths_mm)

    async def stop(self, extra: Optional[Mapping[str, Any]] = None) -> None:
        await self._call("Stop", extra=extra)

    async def is_moving(self) -> bool:
        return (await self._call("IsMoving")).is_moving
