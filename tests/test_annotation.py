"""Tests for rdk_core.services.vision.annotate_detections."""

from __future__ import annotations

import io

from PIL import Image
from viam.gen.service.vision.v1.vision_pb2 import Detection

from rdk_core.services.vision import annotate_detections


# ── Helpers ───────────────────────────────────────────────────────────


def _make_test_image(width: int = 640, height: int = 480, fmt: str = "JPEG") -> bytes:
    """Create a small real image for testing."""
    img = Image.new("RGB", (width, height), color=(128, 128, 128))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


class TestAnnotateDetections:
    def test_annotate_empty_detections(self):
        """No detections: still a valid JPEG of the same size."""
        jpeg_out = annotate_detections(_make_test_image(), [])

        img = Image.open(io.BytesIO(jpeg_out))
        assert img.format == "JPEG"
        assert img.size == (640, 480)

    def test_annotate_single_detection(self):
        jpeg_in = _make_test_image()
        det = Detection(x_min=10, y_min=40, x_max=110, y_max=240, confidence=0.95, class_name="person")

        jpeg_out = annotate_detections(jpeg_in, [det])

        assert jpeg_out != jpeg_in
        img = Image.open(io.BytesIO(jpeg_out)).convert("RGB")
        # Box edge is drawn in a saturated palette color, not the gray background.
        r, g, b = img.getpixel((60, 242))
        assert max(r, g, b) - min(r, g, b) > 60

    def test_detection_without_bounds_is_skipped(self):
        jpeg_in = _make_test_image()
        unbounded = Detection(confidence=0.5, class_name="scene")

        with_unbounded = annotate_detections(jpeg_in, [unbounded])
        without = annotate_detections(jpeg_in, [])

        assert with_unbounded == without

    def test_png_input_returns_jpeg(self):
        det = Detection(x_min=5, y_min=30, x_max=50, y_max=60, confidence=0.7, class_name="cup")
        out = annotate_detections(_make_test_image(120, 90, fmt="PNG"), [det])
        assert out[:2] == b"\xff\xd8"

    def test_rgba_input(self):
        img = Image.new("RGBA", (64, 64), color=(0, 0, 0, 0))
        buf = io.BytesIO()
        img.save(buf, format="PNG")

        out = annotate_detections(buf.getvalue(), [])

        assert Image.open(io.BytesIO(out)).mode == "RGB"
