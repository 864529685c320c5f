from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

import pytest
from git import Actor, Repo

from pinned_checkout.config.config_manager import ENV_SETTINGS
from pinned_checkout.logging import close_logging


@dataclass
class Origin:
    """A local repository to clone from over file://."""

    path: Path
    url: str
    commits: List[str]


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch):
    for name in ENV_SETTINGS:
        monkeypatch.delenv(name, raising=False)
    yield
    close_logging()


@pytest.fixture
def origin(tmp_path: Path) -> Origin:
    """Three commits on the default branch; v0.9 and v1.0 tags, a release branch."""
    root = tmp_path / "origin"
    repo = Repo.init(root)
    actor = Actor("Test Author", "author@example.com")

    commits = []
    for index in range(3):
        (root / "README.md").write_text(f"revision {index}\n", encoding="utf-8")
        (root / f"file{index}.txt").write_text(f"content {index}\n", encoding="utf-8")
        repo.index.add(["README.md", f"file{index}.txt"])
        commit = repo.index.commit(f"revision {index}", author=actor, committer=actor)
        commits.append(commit.hexsha)

    repo.create_tag("v0.9", ref=commits[0])
    repo.create_tag("v1.0", ref=commits[2])
    repo.create_head("release", commits[1])
    repo.close()

    return Origin(path=root, url=root.as_uri(), commits=commits)


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    work = tmp_path / "work"
    work.mkdir()
    return work
