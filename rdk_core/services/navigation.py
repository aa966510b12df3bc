"""Navigation service client (GPS waypoints and obstacles)."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from viam.gen.common.v1.common_pb2 import GeoGeometry, GeoPoint
from viam.gen.service.navigation.v1 import navigation_pb2 as navigation_pb

from ..error_handling import ResponseValidationError
from ..resource import ResourceClient
from ..schema import service
from ..utils import is_valid_geo_point

logger = logging.getLogger(__name__)

Mode = navigation_pb.Mode
MapType = navigation_pb.MapType


class NavigationClient(ResourceClient):
    SERVICE = service(navigation_pb, "NavigationService")
    SUBTYPE = "navigation"

    async def get_mode(self, extra: Optional[Mapping[str, Any]] = None) -> int:
        """Current :data:`Mode` value, e.g. ``Mode.MODE_WAYPOINT``."""
        return (await self._call("GetMode", extra=extra)).mode

    async def set_mode(self, mode: int, extra: Optional[Mapping[str, Any]] = None) -> None:
        await self._call("SetMode", mode=mode, extra=extra)

    async def get_location(
        self, extra: Optional[Mapping[str, Any]] = None
    ) -> navigation_pb.GetLocationResponse:
        """Current geo position and compass heading.

        Raises:
            ResponseValidationError: the response has no location, or its
                latitude or longitude is NaN.
        """
        response = await self._call("GetLocation", extra=extra)
        if not response.HasField("location"):
            raise ResponseValidationError("no location")
        if not is_valid_geo_point(response.location):
            logger.warning(
                "Navigation %s returned location (%s, %s)",
                self.name,
                response.location.latitude,
                response.location.longitude,
            )
            raise ResponseValidationError("invalid location")
        return response

    async def get_waypoints(
        self, extra: Optional[Mapping[str, Any]] = None
    ) -> list[navigation_pb.Waypoint]:
        return list((await self._call("GetWaypoints", extra=extra)).waypoints)

    async def add_waypoint(
        self, point: GeoPoint, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        await self._call("AddWaypoint", location=point, extra=extra)

    async def remove_waypoint(
        self, waypoint_id: str, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        await self._call("RemoveWaypoint", id=waypoint_id, extra=extra)

    async def get_obstacles(
        self, extra: Optional[Mapping[str, Any]] = None
    ) -> list[GeoGeometry]:
        return list((await self._call("GetObstacles", extra=extra)).obstacles)

    async def get_paths(
        self, extra: Optional[Mapping[str, Any]] = None
    ) -> list[navigation_pb.Path]:
        return list((await self._call("GetPaths", extra=extra)).paths)

    async def get_properties(self) -> int:
        """The :data:`MapType` the service navigates on."""
        return (await self._call("GetProperties")).map_type
