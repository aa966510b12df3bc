"""Camera client.

Frames come from ``GetImages``; a camera may return one image per source.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from viam.gen.component.camera.v1 import camera_pb2 as camera_pb

from ..error_handling import ResponseValidationError
from ..resource import ResourceClient
from ..schema import service
from ..utils import message_to_dict

MIME_TYPE_PCD = "pointcloud/pcd"


class CameraClient(ResourceClient):
    SERVICE = service(camera_pb, "CameraService")
    SUBTYPE = "camera"

    async def get_images(
        self,
        filter_source_names: Optional[list[str]] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> tuple[list[camera_pb.Image], Any]:
        """Every image the camera returned, plus the response metadata."""
        response = await self._call(
            "GetImages", filter_source_names=filter_source_names, extra=extra
        )
        return list(response.images), response.response_metadata

    async def _pick_image(
        self, mime_type: str, extra: Optional[Mapping[str, Any]]
    ) -> camera_pb.Image:
        images, _ = await self.get_images(extra=extra)
        if not images:
            raise ResponseValidationError("no image")
        for image in images:
            if image.mime_type == mime_type:
                return image
        return images[0]

    async def get_image(
        self, mime_type: str = "", extra: Optional[Mapping[str, Any]] = None
    ) -> bytes:
        """Encoded frame bytes.

        The first image whose MIME type equals *mime_type* is returned,
        otherwise the first image.  An empty *mime_type* lets the camera choose.
        """
        return (await self._pick_image(mime_type, extra)).image

    async def get_image_with_mime_type(
        self, mime_type: str = "", extra: Optional[Mapping[str, Any]] = None
    ) -> tuple[bytes, str]:
        image = await self._pick_image(mime_type, extra)
        return image.image, image.mime_type

    async def render_frame(
        self, mime_type: str = "", extra: Optional[Mapping[str, Any]] = None
    ) -> dict[str, Any]:
        """Frame bytes labelled with the requested *mime_type*.

        Falls back to the camera's own label when *mime_type* is empty.
        """
        image = await self._pick_image(mime_type, extra)
        return {"data": image.image, "mime_type": mime_type or image.mime_type}

    async def get_point_cloud(self, extra: Optional[Mapping[str, Any]] = None) -> bytes:
        response = await self._call("GetPointCloud", mime_type=MIME_TYPE_PCD, extra=extra)
        return response.point_cloud

    async def get_properties(self) -> dict[str, Any]:
        return message_to_dict(await self._call("GetProperties"))
