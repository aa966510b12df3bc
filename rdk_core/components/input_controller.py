"""Input controller client (joysticks, gamepads, button boxes)."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from viam.gen.component.inputcontroller.v1 import input_controller_pb2 as input_pb

from ..resource import ResourceClient
from ..schema import service

Event = input_pb.Event


class InputControllerClient(ResourceClient):
    SERVICE = service(input_pb, "InputControllerService")
    SUBTYPE = "input_controller"
    NAME_FIELD = "controller"

    async def get_controls(self, extra: Optional[Mapping[str, Any]] = None) -> list[str]:
        return list((await self._call("GetControls", extra=extra)).controls)

    async def get_events(self, extra: Optional[Mapping[str, Any]] = None) -> list[Event]:
        """Most recent event for each control."""
        return list((await self._call("GetEvents", extra=extra)).events)

    async def trigger_event(
        self, event: Event, extra: Optional[Mapping[str, Any]] = None
    ) -> None:
        await self._call("TriggerEvent", event=event, extra=extra)
