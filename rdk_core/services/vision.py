"""Vision service client, plus bounding-box annotation of camera frames."""

from __future__ import annotations

import io
import logging
import zlib
from typing import Any, Mapping, Optional, Sequence

from PIL import Image, ImageDraw, ImageFont
from viam.gen.common.v1.common_pb2 import PointCloudObject
from viam.gen.service.vision.v1 import vision_pb2 as vision_pb

from ..resource import ResourceClient
from ..schema import service
from ..utils import struct_to_dict

logger = logging.getLogger(__name__)

Detection = vision_pb.Detection
Classification = vision_pb.Classification

# Colors for bbox drawing (RGB), picked per class name
_PALETTE = [
    (0, 200, 0),      # green
    (0, 100, 255),    # blue
    (0, 220, 220),    # cyan
    (220, 0, 0),      # red
    (220, 100, 200),  # pink
    (240, 160, 0),    # orange
]


class VisionClient(ResourceClient):
    SERVICE = service(vision_pb, "VisionService")
    SUBTYPE = "vision"

    # ── Detections ───────────────────────────────────────────────────

    async def get_detections_from_camera(
        self, camera_name: str, extra: Optional[Mapping[str, Any]] = None
    ) -> list[Detection]:
        response = await self._call(
            "GetDetectionsFromCamera", camera_name=camera_name, extra=extra
        )
        return list(response.detections)

    async def get_detections(
        self,
        image: bytes,
        width: int,
        height: int,
        mime_type: str,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> list[Detection]:
        """Detect objects in an already-captured, encoded image."""
        response = await self._call(
            "GetDetections",
            image=image,
            width=width,
            height=height,
            mime_type=mime_type,
            extra=extra,
        )
        return list(response.detections)

    # ── Classifications ──────────────────────────────────────────────

    async def get_classifications_from_camera(
        self, camera_name: str, count: int, extra: Optional[Mapping[str, Any]] = None
    ) -> list[Classification]:
        response = await self._call(
            "GetClassificationsFromCamera", camera_name=camera_name, n=count, extra=extra
        )
        return list(response.classifications)

    async def get_classifications(
        self,
        image: bytes,
        width: int,
        height: int,
        mime_type: str,
        count: int,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> list[Classification]:
        response = await self._call(
            "GetClassifications",
            image=image,
            width=width,
            height=height,
            mime_type=mime_type,
            n=count,
            extra=extra,
        )
        return list(response.classifications)

    # ── Point clouds / capabilities ──────────────────────────────────

    async def get_object_point_clouds(
        self,
        camera_name: str,
        mime_type: str = "pointcloud/pcd",
        extra: Optional[Mapping[str, Any]] = None,
    ) -> list[PointCloudObject]:
        response = await self._call(
            "GetObjectPointClouds", camera_name=camera_name, mime_type=mime_type, extra=extra
        )
        return list(response.objects)

    async def get_properties(self, extra: Optional[Mapping[str, Any]] = None) -> dict[str, bool]:
        response = await self._call("GetProperties", extra=extra)
        return {
            "classifications_supported": response.classifications_supported,
            "detections_supported": response.detections_supported,
            "object_point_clouds_supported": response.object_point_clouds_supported,
        }

    async def capture_all_from_camera(
        self,
        camera_name: str,
        return_image: bool = False,
        return_classifications: bool = False,
        return_detections: bool = False,
        return_object_point_clouds: bool = False,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        """Frame, detections, classifications and point clouds in one call.

        Returns:
            {"image": camera Image | None, "detections": [...],
             "classifications": [...], "objects": [...], "extra": {...}}
        """
        response = await self._call(
            "CaptureAllFromCamera",
            camera_name=camera_name,
            return_image=return_image,
            return_classifications=return_classifications,
            return_detections=return_detections,
            return_object_point_clouds=return_object_point_clouds,
            extra=extra,
        )
        return {
            "image": response.image if response.HasField("image") else None,
            "detections": list(response.detections),
            "classifications": list(response.classifications),
            "objects": list(response.objects),
            "extra": struct_to_dict(response.extra),
        }


def detection_to_dict(detection: Detection) -> dict[str, Any]:
    """Plain-dict form of a detection; ``box`` is None when bounds are absent."""
    box = None
    if detection.HasField("x_min") and detection.HasField("y_min"):
        box = {
            "x_min": detection.x_min,
            "y_min": detection.y_min,
            "x_max": detection.x_max,
            "y_max": detection.y_max,
        }
    return {
        "class_name": detection.class_name,
        "confidence": round(detection.confidence, 4),
        "box": box,
    }


def annotate_detections(image_bytes: bytes, detections: Sequence[Detection]) -> bytes:
    """Draw bounding boxes on an encoded image.

    Args:
        image_bytes: raw JPEG or PNG bytes (not base64).
        detections: detections in that image's pixel coordinates.  Those
            without bounds are skipped.

    Returns:
        Annotated JPEG bytes.

    Rectangle 4 px, label text at top-left: ``"class, score=0.95"``.
    """
    img = Image.open(io.BytesIO(image_bytes)).convert("RGB")
    draw = ImageDraw.Draw(img)

    try:
        font = ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", 16)
    except (IOError, OSError):
        font = ImageFont.load_default()

    for det in detections:
        if not (det.HasField("x_min") and det.HasField("y_min")):
            continue
        x0, y0, x1, y1 = det.x_min, det.y_min, det.x_max, det.y_max
        color = _PALETTE[zlib.crc32(det.class_name.encode()) % len(_PALETTE)]

        for i in range(4):
            draw.rectangle([x0 - i, y0 - i, x1 + i, y1 + i], outline=color)

        text = f"{det.class_name}, score={det.confidence:.2f}"
        bbox = draw.textbbox((x0, y0 - 20), text, font=font)
        draw.rectangle(bbox, fill=color)
        draw.text((x0, y0 - 20), text, fill=(255, 255, 255), font=font)

    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=90)
    return buf.getvalue()
