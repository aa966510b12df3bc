"""rdk_core: typed async clients for a robot's components and services.

Shared by the MCP server and application code.  Every adapter takes a
channel (normally a pooled :class:`RobotConnection`) and a resource name.
"""

from .connection import SDK_VERSION, RobotConnection
from .error_handling import (
    RDKClientError,
    RequestValidationError,
    ResourceNotFoundError,
    ResponseValidationError,
)
from .resource import AppServiceClient, Options, ResourceClient, log_requests

__version__ = SDK_VERSION

__all__ = [
    "AppServiceClient",
    "Options",
    "RDKClientError",
    "RequestValidationError",
    "ResourceClient",
    "ResourceNotFoundError",
    "ResponseValidationError",
    "RobotConnection",
    "log_requests",
]
