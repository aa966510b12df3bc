"""Service adapters."""

from .motion import MotionClient
from .navigation import NavigationClient
from .slam import SlamClient
from .vision import VisionClient, annotate_detections

__all__ = ["MotionClient", "NavigationClient", "SlamClient", "VisionClient", "annotate_detections"]
