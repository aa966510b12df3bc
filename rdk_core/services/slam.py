"""SLAM service client."""

from __future__ import annotations

import asyncio
from typing import Optional

from viam.gen.common.v1.common_pb2 import Pose
from viam.gen.service.slam.v1 import slam_pb2 as slam_pb

from ..resource import ResourceClient
from ..schema import service


class SlamClient(ResourceClient):
    SERVICE = service(slam_pb, "SLAMService")
    SUBTYPE = "slam"

    async def get_position(self) -> Pose:
        return (await self._call("GetPosition")).pose

    async def get_point_cloud_map(
        self,
        return_edited_map: Optional[bool] = None,
        *,
        stop_event: Optional[asyncio.Event] = None,
    ) -> bytes:
        """The current map as PCD bytes, reassembled from the chunk stream."""
        chunks = []
        async for response in self._stream(
            "GetPointCloudMap", return_edited_map=return_edited_map, stop_event=stop_event
        ):
            chunks.append(response.point_cloud_pcd_chunk)
        return b"".join(chunks)

    async def get_internal_state(
        self, *, stop_event: Optional[asyncio.Event] = None
    ) -> bytes:
        chunks = []
        async for response in self._stream("GetInternalState", stop_event=stop_event):
            chunks.append(response.internal_state_chunk)
        return b"".join(chunks)

    async def get_properties(self) -> slam_pb.GetPropertiesResponse:
        return await self._call("GetProperties")
