"""Python-friendly facade for building changelogs."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .config import parse_repository_slug
from .entries import Entry, diff, diff_with_issue_resolution
from .github import IssueResolver
from .notes import NoteCollection, collect_notes
from .render import render_changelog
from .vcs import GitRepository


class Changelog:
    """High-level helper that mirrors the CLI commands for Python callers.

    Without a ``resolver`` issue identifiers come from entry filenames. With
    one, each entry's introducing commit is mapped to its pull request, which
    requires ``repository`` as ``owner/name``.
    """

    def __init__(
        self,
        git_dir: Path | str,
        entries_dir: str,
        *,
        repository: Optional[str] = None,
        resolver: Optional[IssueResolver] = None,
    ) -> None:
        if resolver is not None and not repository:
            raise ValueError("A 'repository' is required when a resolver is given.")
        self.git_dir = Path(git_dir)
        self.entries_dir = entries_dir
        self._slug = parse_repository_slug(repository) if repository else None
        self._resolver = resolver

    def entries(self, last_release: Optional[str], this_release: str) -> list[Entry]:
        """Return the entries added after ``last_release`` up to ``this_release``."""

        with GitRepository(self.git_dir) as repository:
            if self._resolver is None or self._slug is None:
                return diff(repository, last_release, this_release, self.entries_dir)
            owner, name = self._slug
            return diff_with_issue_resolution(
                repository,
                last_release,
                this_release,
                self.entries_dir,
                owner,
                name,
                self._resolver,
            )

    def notes(self, last_release: Optional[str], this_release: str) -> NoteCollection:
        """Return the ordered and grouped notes of a release."""

        return collect_notes(self.entries(last_release, this_release))

    def render(
        self,
        last_release: Optional[str],
        this_release: str,
        *,
        note_template: Path | str | None = None,
        changelog_template: Path | str | None = None,
    ) -> str:
        """Render the changelog of a release, like ``changelog-build build``."""

        return render_changelog(
            self.notes(last_release, this_release),
            note_template=Path(note_template) if note_template is not None else None,
            changelog_template=Path(changelog_template) if changelog_template is not None else None,
            extra_context={"last_release": last_release, "this_release": this_release},
        )
