"""Shared fixtures building throwaway git repositories."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping, Optional

import git
import pytest

ACTOR = git.Actor("Changelog Tester", "tester@example.com")


@dataclass
class RepoBuilder:
    """Small helper committing files into a fresh repository."""

    path: Path
    repo: git.Repo

    def commit(self, files: Mapping[str, Optional[str]], message: str) -> str:
        """Write (or delete, for ``None``) files and commit them."""
        for relative, content in files.items():
            target = self.path / relative
            if content is None:
                self.repo.index.remove([relative], working_tree=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            # Entry names may contain glob characters.
            self.repo.git.add("--", f":(literal){relative}")
        commit = self.repo.index.commit(message, author=ACTOR, committer=ACTOR)
        return commit.hexsha

    def tag(self, name: str, message: Optional[str] = None) -> None:
        if message is None:
            self.repo.create_tag(name)
        else:
            self.repo.create_tag(name, message=message)


@pytest.fixture
def git_repo(tmp_path: Path) -> Iterator[RepoBuilder]:
    path = tmp_path / "repo"
    path.mkdir()
    repo = git.Repo.init(path)
    with repo.config_writer() as writer:
        writer.set_value("user", "name", ACTOR.name)
        writer.set_value("user", "email", ACTOR.email)
        writer.set_value("commit", "gpgsign", "false")
        writer.set_value("tag", "gpgsign", "false")
    builder = RepoBuilder(path=path, repo=repo)
    yield builder
    repo.close()


@dataclass
class ReleaseRepo:
    """A repository with two tagged releases of changelog entries."""

    path: Path
    builder: RepoBuilder
    first_commit: str
    second_commit: str


@pytest.fixture
def release_repo(git_repo: RepoBuilder) -> ReleaseRepo:
    first = git_repo.commit(
        {
            "README.md": "# Project\n",
            "changelog/10.txt": "```release-note:bug\nFixed a crash on startup.\n```\n",
        },
        "Initial release",
    )
    git_repo.tag("v0.1.0")
    second = git_repo.commit(
        {
            "changelog/2.txt": "[feature] Added JSON export.\n[bug] Fixed a typo in the help.\n",
            "changelog/30.txt": "```release-note:improvement\nFaster diffs.\n```\n",
        },
        "Add entries for the next release",
    )
    git_repo.tag("v0.2.0", message="Release v0.2.0")
    return ReleaseRepo(
        path=git_repo.path,
        builder=git_repo,
        first_commit=first,
        second_commit=second,
    )
