"""
Repository provisioner: make sure a directory holds a shallow checkout of a pinned reference.
"""

import os
import shutil
import tempfile
import logging
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from git import Repo
from git.exc import GitError, InvalidGitRepositoryError, NoSuchPathError

from ..config import SourceConfig
from ..error_handling import RemovalError, FetchError
from ..models import ProvisionTarget, ProvisionAction, ProvisionResult

logger = logging.getLogger(__name__)

CloneFunc = Callable[..., Repo]


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class RepositoryProvisioner:
    """
    Ensures a target directory contains a checkout of one pinned reference.

    The decision is a single presence check on the VCS marker directory:
    a target that has it is left alone; anything else is replaced by a
    fresh shallow, single-branch clone. The clone is made in a temporary
    sibling directory and renamed into place only once it has succeeded,
    so a failed fetch never destroys what was there before.
    """

    def __init__(
        self,
        depth: int = 1,
        marker: str = ".git",
        verify_existing: bool = False,
        clone_func: Optional[CloneFunc] = None
    ):
        """
        Initialize the provisioner.

        Args:
            depth: History depth of fresh clones
            marker: Name of the metadata directory that marks a checkout
            verify_existing: Rebuild existing checkouts whose origin or HEAD
                do not match the requested reference
            clone_func: Replacement for ``Repo.clone_from``
        """
        self.depth = depth
        self.marker = marker
        self.verify_existing = verify_existing
        self._clone = clone_func or Repo.clone_from

    @classmethod
    def from_config(cls, source: SourceConfig, clone_func: Optional[CloneFunc] = None) -> 'RepositoryProvisioner':
        return cls(
            depth=source.depth,
            marker=source.marker,
            verify_existing=source.verify_existing,
            clone_func=clone_func
        )

    def provision(
        self,
        path: Union[str, Path],
        repository_url: str,
        reference: str
    ) -> ProvisionResult:
        """
        Make ``path`` hold a checkout of ``reference`` from ``repository_url``.

        Args:
            path: Target directory; may or may not exist
            repository_url: Repository to clone from
            reference: Tag or branch to check out

        Returns:
            What the run did

        Raises:
            FetchError: If the clone fails; ``path`` is left untouched
            RemovalError: If existing content at ``path`` cannot be replaced
        """
        target = ProvisionTarget.create(
            path,
            repository_url,
            reference,
            depth=self.depth,
            marker=self.marker
        )

        if target.has_marker():
            if not self.verify_existing or self._matches_reference(target):
                logger.info(
                    f"{target.path} already provisioned, skipping fetch",
                    extra={"path": str(target.path), "action": ProvisionAction.SKIPPED.value}
                )
                return ProvisionResult(target=target, action=ProvisionAction.SKIPPED)
            logger.warning(
                f"Existing checkout at {target.path} does not match "
                f"{target.repository_url}@{target.reference}, rebuilding"
            )

        if target.path.parent == target.path:
            raise RemovalError(f"Refusing to provision filesystem root {target.path}", path=str(target.path))

        staging, commit_sha = self._fetch(target)
        try:
            removed = self._remove(target.path)
            self._install(staging, target.path)
        except RemovalError:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        logger.info(
            f"Provisioned {target.repository_url}@{target.reference} into {target.path}",
            extra={
                "path": str(target.path),
                "repository_url": target.repository_url,
                "reference": target.reference,
                "action": ProvisionAction.FETCHED.value,
                "commit_sha": commit_sha,
            }
        )
        return ProvisionResult(
            target=target,
            action=ProvisionAction.FETCHED,
            commit_sha=commit_sha,
            removed_existing=removed
        )

    def _fetch(self, target: ProvisionTarget) -> Tuple[Path, Optional[str]]:
        """Clone into a fresh sibling directory; returns ``(staging_path, head_sha)``."""
        try:
            target.path.parent.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(
                prefix=f".{target.path.name}.provision-",
                dir=str(target.path.parent)
            ))
        except OSError as e:
            logger.error(f"Cannot prepare a staging directory next to {target.path}: {e}")
            if os.path.lexists(target.path):
                # the parent refuses writes, so the old content could not be cleared either
                raise RemovalError(
                    f"Cannot replace {target.path}: its parent directory is not writable",
                    path=str(target.path),
                    cause=e
                ) from e
            raise FetchError(
                f"Cannot prepare a staging directory next to {target.path}",
                repository_url=target.repository_url,
                reference=target.reference,
                cause=e
            ) from e

        logger.info(
            f"Cloning {target.repository_url} (reference: {target.reference}, "
            f"depth: {target.depth}) into {staging}"
        )
        try:
            # mkdtemp creates 0700; give the checkout the mode git clone would
            os.chmod(staging, 0o777 & ~_current_umask())
            repo = self._clone(
                target.repository_url,
                str(staging),
                branch=target.reference,
                depth=target.depth,
                single_branch=True
            )
        except (GitError, OSError) as e:
            shutil.rmtree(staging, ignore_errors=True)
            logger.error(f"Git clone failed for {target.repository_url}@{target.reference}: {e}")
            raise FetchError(
                f"Git clone failed for {target.repository_url}@{target.reference}",
                repository_url=target.repository_url,
                reference=target.reference,
                cause=e
            ) from e

        try:
            return staging, self._head_sha(repo)
        finally:
            repo.close()

    def _remove(self, path: Path) -> bool:
        """Forcibly remove whatever is at ``path``; returns whether anything was there."""
        if not os.path.lexists(path):
            return False

        logger.info(f"Removing existing content at {path}")
        try:
            if path.is_symlink() or not path.is_dir():
                path.unlink()
            else:
                shutil.rmtree(path)
        except OSError as e:
            logger.error(f"Failed to remove {path}: {e}")
            raise RemovalError(f"Failed to remove {path}", path=str(path), cause=e) from e
        return True

    def _install(self, staging: Path, path: Path) -> None:
        try:
            os.replace(staging, path)
        except OSError as e:
            logger.error(f"Failed to move checkout into {path}: {e}")
            raise RemovalError(f"Failed to move checkout into {path}", path=str(path), cause=e) from e

    def _head_sha(self, repo: Repo) -> Optional[str]:
        try:
            return repo.head.commit.hexsha
        except ValueError:
            # unborn HEAD
            return None

    def _matches_reference(self, target: ProvisionTarget) -> bool:
        """Check origin URL and HEAD of an existing checkout against the target."""
        try:
            repo = Repo(target.path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            logger.warning(f"{target.path} has a marker but is not a readable repository: {e}")
            return False

        try:
            try:
                origin_urls = set(repo.remote("origin").urls)
            except ValueError:
                origin_urls = set()
            if target.repository_url not in origin_urls:
                logger.debug(f"origin of {target.path} is {sorted(origin_urls)}")
                return False

            head_sha = repo.head.commit.hexsha
            for tag in repo.tags:
                if tag.name == target.reference:
                    return tag.commit.hexsha == head_sha

            return not repo.head.is_detached and repo.active_branch.name == target.reference
        except (GitError, ValueError) as e:
            logger.warning(f"Could not inspect checkout at {target.path}: {e}")
            return False
        finally:
            repo.close()


def provision(
    path: Union[str, Path],
    repository_url: str,
    reference: str,
    depth: int = 1
) -> ProvisionResult:
    """
    Provision ``path`` with a shallow checkout of ``reference``.

    Convenience wrapper around :class:`RepositoryProvisioner` using the
    presence-only marker check.
    """
    return RepositoryProvisioner(depth=depth).provision(path, repository_url, reference)
