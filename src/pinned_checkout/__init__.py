"""
Pinned checkout provisioner

Ensures a working directory holds a shallow checkout of one pinned
repository reference, fetching it only when no checkout is present.
"""

__version__ = "0.1.0"
__description__ = "Idempotent shallow checkout of a pinned repository reference"
