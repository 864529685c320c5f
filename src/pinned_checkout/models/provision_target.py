"""
Data models describing what to provision and what happened.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, Union


@dataclass(frozen=True)
class ProvisionTarget:
    """
    A pinned reference and the directory it should be checked out into.

    Targets are rebuilt on every run; nothing about them is persisted
    except the directory itself.
    """

    path: Path
    repository_url: str
    reference: str
    depth: int = 1
    marker: str = ".git"

    @classmethod
    def create(
        cls,
        path: Union[str, Path],
        repository_url: str,
        reference: str,
        depth: int = 1,
        marker: str = ".git"
    ) -> 'ProvisionTarget':
        """Build a target with ``path`` expanded and made absolute."""
        return cls(
            path=Path(os.path.abspath(Path(path).expanduser())),
            repository_url=repository_url,
            reference=reference,
            depth=depth,
            marker=marker
        )

    @property
    def marker_path(self) -> Path:
        """Location of the VCS metadata directory."""
        return self.path / self.marker

    def has_marker(self) -> bool:
        """
        Check whether the target already looks like a checkout.

        Presence only: a bare marker directory with nothing else counts.
        """
        return self.path.is_dir() and self.marker_path.is_dir()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "repository_url": self.repository_url,
            "reference": self.reference,
            "depth": self.depth,
            "marker": self.marker
        }


class ProvisionAction(Enum):
    """What a provisioning run did."""
    SKIPPED = "skipped"
    FETCHED = "fetched"


@dataclass
class ProvisionResult:
    """Outcome of a successful provisioning run."""

    target: ProvisionTarget
    action: ProvisionAction
    commit_sha: Optional[str] = None
    removed_existing: bool = False

    @property
    def fetched(self) -> bool:
        return self.action is ProvisionAction.FETCHED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target.to_dict(),
            "action": self.action.value,
            "commit_sha": self.commit_sha,
            "removed_existing": self.removed_existing
        }
