"""
Data models for the pinned checkout provisioner.
"""

from .provision_target import ProvisionTarget, ProvisionAction, ProvisionResult

__all__ = [
    "ProvisionTarget",
    "ProvisionAction",
    "ProvisionResult"
]
