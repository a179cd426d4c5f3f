"""Changelog entries introduced between two revisions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .errors import EntryReadError, IssueResolutionError, MissingHistoryError
from .github import IssueResolver
from .utils import log_debug
from .vcs import RevisionControl, join_repo_path

NO_PREVIOUS_RELEASE = "-"
ENTRY_FILE_SUFFIX = ".txt"


@dataclass(frozen=True)
class Entry:
    """A changelog entry file resolved to its issue identifier."""

    issue: str
    body: str


@dataclass(frozen=True)
class EntryFile:
    """Contents of an entry file and the commit that last touched it."""

    contents: bytes
    commit: str


def issue_from_filename(filename: str) -> str:
    """Return the issue identifier encoded in an entry filename."""
    return filename.removesuffix(ENTRY_FILE_SUFFIX)


def _read_entry_file(repository: RevisionControl, path: str) -> bytes:
    try:
        with repository.open_file(path) as handle:
            return handle.read()
    except OSError as exc:
        raise EntryReadError(path, exc) from exc


def _latest_commit(repository: RevisionControl, path: str) -> str:
    latest = next(iter(repository.commit_history(path)), None)
    if not latest:
        raise MissingHistoryError(path)
    return latest


def _collect_entry_files(repository: RevisionControl, entries_dir: str) -> dict[str, EntryFile]:
    collected: dict[str, EntryFile] = {}
    for info in repository.list_directory(entries_dir):
        if info.is_dir:
            continue
        path = join_repo_path(entries_dir, info.name)
        contents = _read_entry_file(repository, path)
        commit = _latest_commit(repository, path)
        log_debug(f"found entry {path} introduced in {commit[:12]}")
        collected[info.name] = EntryFile(contents=contents, commit=commit)
    return collected


def _diff(
    repository: RevisionControl,
    old_revision: Optional[str],
    new_revision: str,
    entries_dir: str,
    issue_for: Callable[[str, EntryFile], str],
) -> list[Entry]:
    new_hash = repository.resolve_revision(new_revision)
    old_hash: Optional[str] = None
    if old_revision is not None and old_revision != NO_PREVIOUS_RELEASE:
        old_hash = repository.resolve_revision(old_revision)
    log_debug(f"resolved {new_revision} to {new_hash[:12]}")
    if old_hash is not None:
        log_debug(f"resolved {old_revision} to {old_hash[:12]}")

    repository.checkout(new_hash)
    entry_files = _collect_entry_files(repository, entries_dir)

    if old_hash is not None:
        repository.checkout(old_hash)
        for info in repository.list_directory(entries_dir):
            entry_files.pop(info.name, None)
        log_debug(
            f"{len(entry_files)} entries added between {old_revision} and {new_revision}"
        )

    entries = [
        Entry(
            issue=issue_for(filename, record),
            body=record.contents.decode("utf-8", errors="replace"),
        )
        for filename, record in entry_files.items()
    ]
    entries.sort(key=lambda entry: entry.issue)
    return entries


def diff(
    repository: RevisionControl,
    old_revision: Optional[str],
    new_revision: str,
    entries_dir: str,
) -> list[Entry]:
    """Return entries added after ``old_revision`` up to ``new_revision``.

    Issue identifiers are taken from the entry filenames (``123.txt`` becomes
    ``123``). Pass ``"-"`` or ``None`` as ``old_revision`` to include every
    entry present at ``new_revision``.
    """

    return _diff(
        repository,
        old_revision,
        new_revision,
        entries_dir,
        lambda filename, _record: issue_from_filename(filename),
    )


def diff_with_issue_resolution(
    repository: RevisionControl,
    old_revision: Optional[str],
    new_revision: str,
    entries_dir: str,
    repo_owner: str,
    repo_name: str,
    resolver: IssueResolver,
) -> list[Entry]:
    """Like :func:`diff`, but derive issues from the introducing commits.

    Each entry's most recent commit is mapped to its pull request through
    ``resolver``. The first lookup failure aborts the whole diff.
    """

    def issue_for(_filename: str, record: EntryFile) -> str:
        try:
            number = resolver.find_associated_pull_request(record.commit, repo_owner, repo_name)
        except IssueResolutionError:
            raise
        except Exception as exc:
            raise IssueResolutionError(record.commit, exc) from exc
        return str(number)

    return _diff(repository, old_revision, new_revision, entries_dir, issue_for)
