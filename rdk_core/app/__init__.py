"""Cloud app API clients.

These take a channel to the app service rather than to a robot, and carry
no resource name.
"""

from .app import AppClient, create_auth, create_auth_for_new_api_key, create_permission
from .billing import BillingClient
from .data import DataClient
from .ml_training import MLTrainingClient
from .provisioning import ProvisioningClient

__all__ = [
    "AppClient",
    "BillingClient",
    "DataClient",
    "MLTrainingClient",
    "ProvisioningClient",
    "create_auth",
    "create_auth_for_new_api_key",
    "create_permission",
]
