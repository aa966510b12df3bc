"""Encoder client."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from viam.gen.component.encoder.v1 import encoder_pb2 as encoder_pb

from ..resource import ResourceClient
from ..schema import service

PositionType = encoder_pb.PositionType


class EncoderClient(ResourceClient):
    SERVICE = service(encoder_pb, "EncoderService")
    SUBTYPE = "encoder"

    async def reset_position(self, extra: Optional[Mapping[str, Any]] = None) -> None:
        await self._call("ResetPosition", extra=extra)

    async def get_properties(
        self, extra: Optional[Mapping[str, Any]] = None
    ) -> encoder_pb.GetPropertiesResponse:
        return await self._call("GetProperties", extra=extra)

    async def get_position(
        self,
        position_type: int = encoder_pb.POSITION_TYPE_UNSPECIFIED,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> tuple[float, int]:
        """Current position and the unit the encoder reported it in.

        The unit is a :data:`PositionType` value, e.g.
        ``PositionType.POSITION_TYPE_TICKS_COUNT``.
        """
        response = await self._call("GetPosition", position_type=position_type, extra=extra)
        return response.value, response.position_type
