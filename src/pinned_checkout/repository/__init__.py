"""
Provisioning of pinned repository checkouts.
"""

from .provisioner import RepositoryProvisioner, provision

__all__ = [
    "RepositoryProvisioner",
    "provision"
]
