"""
Error taxonomy for the pinned checkout provisioner.
"""

from .exceptions import (
    ProvisionError, RemovalError, FetchError, ConfigurationError
)

__all__ = [
    "ProvisionError",
    "RemovalError",
    "FetchError",
    "ConfigurationError"
]
