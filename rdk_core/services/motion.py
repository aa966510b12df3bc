"""Motion planning service client.

Resources the motion service acts on may be given as a short name or as a
full :class:`ResourceName`.  A ``ResourceName`` is sent in the request's
``*_deprecated`` field as well, so servers that still read that field
resolve the same resource.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Union

from viam.gen.common.v1.common_pb2 import (
    GeoGeometry,
    GeoPoint,
    Geometry,
    Pose,
    PoseInFrame,
    ResourceName,
    Transform,
    WorldState,
)
from viam.gen.service.motion.v1 import motion_pb2 as motion_pb

from ..error_handling import ResponseValidationError
from ..resource import ResourceClient
from ..schema import service

Constraints = motion_pb.Constraints
MotionConfiguration = motion_pb.MotionConfiguration
PlanState = motion_pb.PlanState

ResourceRef = Union[ResourceName, str]


def _resource_fields(field: str, resource: ResourceRef) -> dict[str, Any]:
    if isinstance(resource, ResourceName):
        return {field: resource.name, f"{field}_deprecated": resource}
    return {field: resource}


def obstacle_detector(vision_service: ResourceRef, camera: ResourceRef) -> motion_pb.ObstacleDetector:
    """An ``ObstacleDetector`` for :class:`MotionConfiguration`."""
    return motion_pb.ObstacleDetector(
        **_resource_fields("vision_service", vision_service),
        **_resource_fields("camera", camera),
    )


class MotionClient(ResourceClient):
    SERVICE = service(motion_pb, "MotionService")
    SUBTYPE = "motion"

    async def move(
        self,
        component_name: ResourceRef,
        destination: PoseInFrame,
        world_state: Optional[WorldState] = None,
        constraints: Optional[Constraints] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Plan and execute a move of *component_name* to *destination*.

        Blocks until the motion finishes; returns whether it succeeded.
        """
        response = await self._call(
            "Move",
            **_resource_fields("component_name", component_name),
            destination=destination,
            world_state=world_state,
            constraints=constraints,
            extra=extra,
        )
        return response.success

    async def move_on_map(
        self,
        component_name: ResourceRef,
        destination: Pose,
        slam_service_name: ResourceRef,
        configuration: Optional[MotionConfiguration] = None,
        obstacles: Optional[Sequence[Geometry]] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Start a move within a SLAM map; returns the execution ID."""
        response = await self._call(
            "MoveOnMap",
            **_resource_fields("component_name", component_name),
            destination=destination,
            **_resource_fields("slam_service_name", slam_service_name),
            motion_configuration=configuration,
            obstacles=obstacles,
            extra=extra,
        )
        return response.execution_id

    async def move_on_globe(
        self,
        component_name: ResourceRef,
        destination: GeoPoint,
        movement_sensor_name: ResourceRef,
        obstacles: Optional[Sequence[GeoGeometry]] = None,
        heading: Optional[float] = None,
        configuration: Optional[MotionConfiguration] = None,
        bounding_regions: Optional[Sequence[GeoGeometry]] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Start a move to a GPS destination; returns the execution ID."""
        response = await self._call(
            "MoveOnGlobe",
            **_resource_fields("component_name", component_name),
            destination=destination,
            **_resource_fields("movement_sensor_name", movement_sensor_name),
            obstacles=obstacles,
            heading=heading,
            motion_configuration=configuration,
            bounding_regions=bounding_regions,
            extra=extra,
        )
        return response.execution_id

    async def stop_plan(
        self, component_name: ResourceRef, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        await self._call(
            "StopPlan", **_resource_fields("component_name", component_name), extra=extra
        )

    async def get_plan(
        self,
        component_name: ResourceRef,
        last_plan_only: bool = False,
        execution_id: Optional[str] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> motion_pb.GetPlanResponse:
        return await self._call(
            "GetPlan",
            **_resource_fields("component_name", component_name),
            last_plan_only=last_plan_only,
            execution_id=execution_id,
            extra=extra,
        )

    async def list_plan_statuses(
        self, only_active_plans: bool = False, extra: Optional[Mapping[str, Any]] = None
    ) -> list[motion_pb.PlanStatusWithID]:
        response = await self._call(
            "ListPlanStatuses", only_active_plans=only_active_plans, extra=extra
        )
        return list(response.plan_statuses_with_ids)

    async def get_pose(
        self,
        component_name: ResourceRef,
        destination_frame: str,
        supplemental_transforms: Optional[Sequence[Transform]] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> PoseInFrame:
        response = await self._call(
            "GetPose",
            **_resource_fields("component_name", component_name),
            destination_frame=destination_frame,
            supplemental_transforms=supplemental_transforms,
            extra=extra,
        )
        if not response.HasField("pose"):
            raise ResponseValidationError("no pose")
        return response.pose
