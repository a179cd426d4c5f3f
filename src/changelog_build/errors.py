"""Error kinds raised while computing a changelog."""

from __future__ import annotations


class ChangelogError(RuntimeError):
    """Base class for failures that abort a changelog build."""


class RevisionError(ChangelogError):
    """A revision could not be resolved to a commit."""

    def __init__(self, ref: str, reason: object | None = None) -> None:
        self.ref = ref
        message = f"cannot resolve revision '{ref}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MissingHistoryError(ChangelogError):
    """An entry file has no commit that introduced it."""

    def __init__(self, path: str, reason: object | None = None) -> None:
        self.path = path
        message = f"found no commits for '{path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class IssueResolutionError(ChangelogError):
    """A commit could not be mapped to a pull request."""

    def __init__(self, commit: str, reason: object | None = None) -> None:
        self.commit = commit
        message = f"could not determine pull request for commit {commit}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class EntryReadError(ChangelogError):
    """Reading an entry file or listing the entries directory failed."""

    def __init__(self, path: str, reason: object | None = None) -> None:
        self.path = path
        message = f"failed to read '{path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class TemplateError(ChangelogError):
    """A changelog template could not be loaded or rendered."""
