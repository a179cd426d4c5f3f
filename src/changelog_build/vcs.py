"""Revision-control access used by the entry differ."""

from __future__ import annotations

import io
import tempfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Iterator, Optional, Protocol

import git

from .errors import EntryReadError, RevisionError
from .utils import log_debug, log_warning


@dataclass(frozen=True)
class FileInfo:
    """A single item of a directory listing."""

    name: str
    is_dir: bool = False


class RevisionControl(Protocol):
    """Operations the entry differ needs from a repository."""

    def resolve_revision(self, ref: str) -> str: ...

    def checkout(self, revision: str) -> None: ...

    def list_directory(self, path: str) -> list[FileInfo]: ...

    def open_file(self, path: str) -> BinaryIO: ...

    def commit_history(self, path: str) -> Iterator[str]: ...


def normalize_repo_path(path: str) -> str:
    """Return a repository-relative POSIX path without leading ``./``."""
    normalized = PurePosixPath(path.replace("\\", "/")).as_posix()
    if normalized in (".", "/"):
        return ""
    return normalized.lstrip("/")


def join_repo_path(directory: str, name: str) -> str:
    """Join a directory and a file name into a repository-relative path."""
    directory = normalize_repo_path(directory)
    if not directory:
        return name
    return f"{directory}/{name}"


def _is_remote_location(location: str) -> bool:
    return "://" in location or location.startswith("git@")


class GitRepository:
    """A git repository whose working view is a commit tree.

    Checking out a revision only swaps the tree that listings and reads are
    served from, so the files of a local clone are never modified. Remote
    locations are cloned bare into a temporary directory that lives until
    :meth:`close`.
    """

    def __init__(self, location: str | Path) -> None:
        self.location = str(location)
        self._tempdir: Optional[tempfile.TemporaryDirectory[str]] = None
        try:
            if _is_remote_location(self.location):
                self._tempdir = tempfile.TemporaryDirectory(prefix="changelog-build-")
                log_debug(f"cloning {self.location} into {self._tempdir.name}")
                self._repo = git.Repo.clone_from(self.location, self._tempdir.name, bare=True)
            else:
                self._repo = git.Repo(self.location)
        except (git.GitCommandError, git.InvalidGitRepositoryError, git.NoSuchPathError) as exc:
            self._cleanup_tempdir()
            raise EntryReadError(self.location, f"not a usable git repository ({exc})") from exc
        self._commit: Optional[git.Commit] = None

    def __enter__(self) -> "GitRepository":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._repo.close()
        self._cleanup_tempdir()

    def _cleanup_tempdir(self) -> None:
        if self._tempdir is not None:
            self._tempdir.cleanup()
            self._tempdir = None

    def remote_url(self, name: str = "origin") -> Optional[str]:
        """Return the URL of a remote, if configured."""
        for remote in self._repo.remotes:
            if remote.name == name:
                return next(iter(remote.urls), None)
        if _is_remote_location(self.location):
            return self.location
        return None

    def resolve_revision(self, ref: str) -> str:
        try:
            commit = self._repo.commit(ref)
        except (git.BadName, git.BadObject, ValueError) as exc:
            raise RevisionError(ref, exc) from exc
        return commit.hexsha

    def checkout(self, revision: str) -> None:
        try:
            self._commit = self._repo.commit(revision)
        except (git.BadName, git.BadObject, ValueError) as exc:
            raise RevisionError(revision, exc) from exc
        log_debug(f"checked out {self._commit.hexsha}")

    def _require_commit(self) -> git.Commit:
        if self._commit is None:
            raise RuntimeError("no revision checked out")
        return self._commit

    def _lookup(self, path: str) -> Optional[git.objects.base.IndexObject]:
        tree = self._require_commit().tree
        normalized = normalize_repo_path(path)
        if not normalized:
            return tree
        try:
            return tree / normalized
        except KeyError:
            return None

    def list_directory(self, path: str) -> list[FileInfo]:
        item = self._lookup(path)
        if item is None:
            # Git does not track empty directories, so an absent directory is
            # the same as an empty one.
            log_warning(
                f"directory '{path}' does not exist at {self._require_commit().hexsha[:12]}."
            )
            return []
        if item.type != "tree":
            raise EntryReadError(path, "not a directory")
        return [FileInfo(name=child.name, is_dir=child.type != "blob") for child in item]

    def open_file(self, path: str) -> BinaryIO:
        item = self._lookup(path)
        if item is None:
            raise EntryReadError(path, "no such file")
        if item.type != "blob":
            raise EntryReadError(path, "not a regular file")
        try:
            data = item.data_stream.read()
        except (git.GitCommandError, OSError, ValueError) as exc:
            raise EntryReadError(path, exc) from exc
        return io.BytesIO(data)

    def commit_history(self, path: str) -> Iterator[str]:
        commit = self._require_commit()
        try:
            # Entry names may contain glob characters.
            hashes = [
                entry.hexsha
                for entry in self._repo.iter_commits(
                    commit.hexsha, paths=f":(literal){normalize_repo_path(path)}"
                )
            ]
        except git.GitCommandError as exc:
            raise EntryReadError(path, exc) from exc
        return iter(hashes)
