"""Component adapters, one per component API."""

from .base import BaseClient
from .board import BoardClient
from .camera import CameraClient
from .encoder import EncoderClient
from .gantry import GantryClient
from .generic import GenericClient
from .gripper import GripperClient
from .input_controller import InputControllerClient
from .motor import MotorClient
from .power_sensor import PowerSensorClient
from .sensor import SensorClient
from .servo import ServoClient

__all__ = [
    "BaseClient",
    "BoardClient",
    "CameraClient",
    "EncoderClient",
    "GantryClient",
    "GenericClient",
    "GripperClient",
    "InputControllerClient",
    "MotorClient",
    "PowerSensorClient",
    "SensorClient",
    "ServoClient",
]
