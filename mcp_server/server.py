"""MCP Server for robots: thin wrapper around rdk_core.

Each tool delegates to an ``rdk_core`` adapter over a pooled connection.
Run with: ``rdk-mcp``, ``python -m mcp_server.server``,
or ``python mcp_server/server.py``

Transport: stdio (default for Claude Desktop / Claude Code).
"""

from __future__ import annotations

import base64
import logging

from mcp.server.fastmcp import FastMCP

from rdk_core.components import (
    BaseClient,
    BoardClient,
    CameraClient,
    EncoderClient,
    GantryClient,
    GenericClient,
    GripperClient,
    InputControllerClient,
    MotorClient,
    PowerSensorClient,
    SensorClient,
    ServoClient,
)
from rdk_core.connection import RobotConnection
from rdk_core.error_handling import with_retry
from rdk_core.services import MotionClient, NavigationClient, SlamClient, VisionClient
from rdk_core.services.vision import annotate_detections, detection_to_dict

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "rdk-robot",
    instructions=(
        "Robot control tools. All tools require an ``address`` parameter "
        "(e.g. '192.168.1.50' or 'robot.local:8080'). "
        "Port 8080 is appended automatically when omitted. "
        "Use ``list_resources`` to discover component and service names."
    ),
)

# Resource subtype -> adapter, for tools that work on any resource.
_CLIENTS = {
    cls.SUBTYPE: cls
    for cls in (
        BaseClient,
        BoardClient,
        CameraClient,
        EncoderClient,
        GantryClient,
        GenericClient,
        GripperClient,
        InputControllerClient,
        MotorClient,
        PowerSensorClient,
        SensorClient,
        ServoClient,
        MotionClient,
        NavigationClient,
        SlamClient,
        VisionClient,
    )
}


# ── Connection ───────────────────────────────────────────────────────

@mcp.tool()
async def ping_robot(address: str) -> dict:
    """Test gRPC connectivity and return the number of resources."""
    return await RobotConnection.get(address).ping()


@mcp.tool()
async def disconnect_robot(address: str) -> dict:
    """Close the channel and remove the robot from the connection pool."""
    conn = RobotConnection.remove(address)
    if conn is not None:
        await conn.close()
    return {"ok": True, "message": f"Removed {address} from pool"}


@mcp.tool()
@with_retry()
async def list_resources(address: str) -> dict:
    """All components and services on the robot (namespace, type, subtype, name)."""
    names = await RobotConnection.get(address).resource_names()
    return {
        "ok": True,
        "resources": [
            {
                "namespace": r.namespace,
                "type": r.type,
                "subtype": r.subtype,
                "name": r.name,
            }
            for r in names
        ],
    }


# ── Generic ──────────────────────────────────────────────────────────

@mcp.tool()
@with_retry()
async def do_command(address: str, subtype: str, name: str, command: dict) -> dict:
    """Send a free-form command to any resource.

    ``subtype`` is the resource subtype from ``list_resources`` (e.g. "motor",
    "generic", "vision").
    """
    client_cls = _CLIENTS.get(subtype)
    if client_cls is None:
        return {"ok": False, "error": f"Unsupported subtype: {subtype!r}"}
    result = await client_cls(RobotConnection.get(address), name).do_command(command)
    return {"ok": True, "result": result}


@mcp.tool()
@with_retry()
async def get_readings(address: str, sensor: str, subtype: str = "sensor") -> dict:
    """Current readings of a sensor (``subtype`` "sensor" or "power_sensor")."""
    if subtype not in ("sensor", "power_sensor"):
        return {"ok": False, "error": f"Not a sensor subtype: {subtype!r}"}
    client = _CLIENTS[subtype](RobotConnection.get(address), sensor)
    return {"ok": True, "readings": await client.get_readings()}


# ── Motion ───────────────────────────────────────────────────────────

@mcp.tool()
@with_retry()
async def motor_set_power(address: str, motor: str, power: float) -> dict:
    """Set motor power in [-1, 1]. Negative runs backwards."""
    await MotorClient(RobotConnection.get(address), motor).set_power(power)
    return {"ok": True}


@mcp.tool()
@with_retry()
async def motor_stop(address: str, motor: str) -> dict:
    """Stop a motor."""
    await MotorClient(RobotConnection.get(address), motor).stop()
    return {"ok": True}


@mcp.tool()
@with_retry()
async def base_stop(address: str, base: str) -> dict:
    """Immediately stop a mobile base."""
    await BaseClient(RobotConnection.get(address), base).stop()
    return {"ok": True}


@mcp.tool()
@with_retry()
async def navigation_get_location(address: str, navigation: str) -> dict:
    """Current GPS location and compass heading from a navigation service."""
    response = await NavigationClient(RobotConnection.get(address), navigation).get_location()
    return {
        "ok": True,
        "latitude": response.location.latitude,
        "longitude": response.location.longitude,
        "compass_heading": response.compass_heading,
    }


# ── Camera / vision ──────────────────────────────────────────────────


def _save_image(image: bytes, save_path: str) -> dict:
    """Write image bytes to disk. Returns path + size."""
    with open(save_path, "wb") as f:
        f.write(image)
    return {"ok": True, "path": save_path, "size_bytes": len(image)}


@mcp.tool()
@with_retry()
async def capture_image(
    address: str, camera: str, mime_type: str = "image/jpeg", save_path: str = ""
) -> dict:
    """Capture a frame from a camera (returned as base64).

    If save_path is provided, the image is saved to that path and only the
    file path + size are returned (avoids large base64 output).
    """
    client = CameraClient(RobotConnection.get(address), camera)
    image, actual_mime = await client.get_image_with_mime_type(mime_type)
    if save_path:
        return _save_image(image, save_path)
    return {
        "ok": True,
        "image_base64": base64.b64encode(image).decode(),
        "mime_type": actual_mime or mime_type,
    }


@mcp.tool()
@with_retry()
async def get_detections_from_camera(address: str, vision: str, camera: str) -> dict:
    """Run a vision service's detector on the latest frame of a camera."""
    client = VisionClient(RobotConnection.get(address), vision)
    detections = await client.get_detections_from_camera(camera)
    return {"ok": True, "detections": [detection_to_dict(d) for d in detections]}


@mcp.tool()
@with_retry()
async def capture_with_detections(
    address: str, vision: str, camera: str, annotate: bool = False, save_path: str = ""
) -> dict:
    """Capture a frame and its detections in one call.

    Set annotate=True to draw bounding boxes on the returned JPEG.
    """
    client = VisionClient(RobotConnection.get(address), vision)
    capture = await client.capture_all_from_camera(
        camera, return_image=True, return_detections=True
    )
    if capture["image"] is None:
        return {"ok": False, "error": f"Camera {camera!r} returned no image"}
    image = capture["image"].image
    if annotate:
        image = annotate_detections(image, capture["detections"])
    result = {
        "ok": True,
        "detections": [detection_to_dict(d) for d in capture["detections"]],
        "annotated": annotate,
    }
    if save_path:
        result.update(_save_image(image, save_path))
    else:
        result["image_base64"] = base64.b64encode(image).decode()
    return result


# ── Entry point ──────────────────────────────────────────────────────


def main():
    """Console entry point for ``rdk-mcp`` command."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
