"""Tests for the GitPython-backed repository adapter."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from changelog_build.entries import NO_PREVIOUS_RELEASE, diff
from changelog_build.errors import EntryReadError, RevisionError
from changelog_build.vcs import FileInfo, GitRepository, join_repo_path, normalize_repo_path

if TYPE_CHECKING:
    from conftest import ReleaseRepo, RepoBuilder


def test_diff_between_tagged_releases(release_repo: ReleaseRepo) -> None:
    with GitRepository(release_repo.path) as repository:
        entries = diff(repository, "v0.1.0", "v0.2.0", "changelog")

    assert [entry.issue for entry in entries] == ["2", "30"]
    assert entries[1].body == "```release-note:improvement\nFaster diffs.\n```\n"


def test_diff_without_previous_release(release_repo: ReleaseRepo) -> None:
    with GitRepository(release_repo.path) as repository:
        entries = diff(repository, NO_PREVIOUS_RELEASE, "v0.2.0", "changelog")

    assert [entry.issue for entry in entries] == ["10", "2", "30"]


def test_diff_leaves_working_tree_untouched(release_repo: ReleaseRepo) -> None:
    with GitRepository(release_repo.path) as repository:
        diff(repository, "v0.1.0", "v0.2.0", "changelog")

    assert (release_repo.path / "changelog" / "30.txt").exists()
    assert not release_repo.builder.repo.is_dirty(untracked_files=True)
    assert release_repo.builder.repo.head.commit.hexsha == release_repo.second_commit


def test_resolve_revision_peels_annotated_tags(release_repo: ReleaseRepo) -> None:
    with GitRepository(release_repo.path) as repository:
        assert repository.resolve_revision("v0.2.0") == release_repo.second_commit
        assert repository.resolve_revision("v0.1.0") == release_repo.first_commit
        assert repository.resolve_revision("HEAD~1") == release_repo.first_commit


def test_resolve_revision_rejects_unknown_refs(release_repo: ReleaseRepo) -> None:
    with GitRepository(release_repo.path) as repository:
        with pytest.raises(RevisionError, match="v9.9.9") as excinfo:
            repository.resolve_revision("v9.9.9")

    assert excinfo.value.ref == "v9.9.9"


def test_commit_history_is_most_recent_first(git_repo: RepoBuilder) -> None:
    first = git_repo.commit({"changelog/1.txt": "[bug] Fix.\n"}, "Add entry")
    git_repo.commit({"README.md": "# Project\n"}, "Unrelated change")
    third = git_repo.commit({"changelog/1.txt": "[bug] Fixed.\n"}, "Reword entry")

    with GitRepository(git_repo.path) as repository:
        repository.checkout(third)
        assert list(repository.commit_history("changelog/1.txt")) == [third, first]

        repository.checkout(first)
        assert list(repository.commit_history("changelog/1.txt")) == [first]


def test_open_file_reads_from_checked_out_revision(release_repo: ReleaseRepo) -> None:
    release_repo.builder.commit(
        {"changelog/10.txt": "[bug] Reworded.\n"}, "Reword after release"
    )

    with GitRepository(release_repo.path) as repository:
        repository.checkout(release_repo.first_commit)
        with repository.open_file("changelog/10.txt") as handle:
            contents = handle.read()

    assert contents == b"```release-note:bug\nFixed a crash on startup.\n```\n"


def test_open_file_rejects_missing_paths(release_repo: ReleaseRepo) -> None:
    with GitRepository(release_repo.path) as repository:
        repository.checkout("v0.1.0")
        with pytest.raises(EntryReadError, match="no such file"):
            repository.open_file("changelog/2.txt")
        with pytest.raises(EntryReadError, match="not a regular file"):
            repository.open_file("changelog")


def test_list_directory_reports_subdirectories(git_repo: RepoBuilder) -> None:
    git_repo.commit(
        {"changelog/1.txt": "[bug] Fix.\n", "changelog/drafts/2.txt": "[bug] Draft.\n"},
        "Add entries",
    )

    with GitRepository(git_repo.path) as repository:
        repository.checkout("HEAD")
        listing = repository.list_directory("changelog")

    assert sorted(listing, key=lambda info: info.name) == [
        FileInfo(name="1.txt"),
        FileInfo(name="drafts", is_dir=True),
    ]


def test_list_directory_of_file_is_an_error(release_repo: ReleaseRepo) -> None:
    with GitRepository(release_repo.path) as repository:
        repository.checkout("v0.2.0")
        with pytest.raises(EntryReadError, match="not a directory"):
            repository.list_directory("README.md")


def test_entries_directory_absent_at_old_revision(git_repo: RepoBuilder) -> None:
    git_repo.commit({"README.md": "# Project\n"}, "Initial commit")
    git_repo.tag("v1")
    git_repo.commit({"changelog/5.txt": "[feature] New.\n"}, "Add entry")
    git_repo.tag("v2")

    with GitRepository(git_repo.path) as repository:
        entries = diff(repository, "v1", "v2", "changelog")

    assert [entry.issue for entry in entries] == ["5"]


def test_removed_entries_are_not_reported(git_repo: RepoBuilder) -> None:
    git_repo.commit({"changelog/1.txt": "[bug] Fix.\n"}, "Add entry")
    git_repo.tag("v1")
    git_repo.commit({"changelog/1.txt": None}, "Drop entry")
    git_repo.tag("v2")

    with GitRepository(git_repo.path) as repository:
        assert diff(repository, "v1", "v2", "changelog") == []


def test_opening_a_non_repository_fails(tmp_path: Path) -> None:
    with pytest.raises(EntryReadError, match="not a usable git repository"):
        GitRepository(tmp_path)


def test_remote_url_of_local_repository(release_repo: ReleaseRepo) -> None:
    release_repo.builder.repo.create_remote("origin", "git@github.com:acme/widgets.git")

    with GitRepository(release_repo.path) as repository:
        assert repository.remote_url() == "git@github.com:acme/widgets.git"
        assert repository.remote_url("upstream") is None


def test_repo_path_helpers() -> None:
    assert normalize_repo_path("./changelog/") == "changelog"
    assert normalize_repo_path(".") == ""
    assert normalize_repo_path("docs\\changes") == "docs/changes"
    assert join_repo_path("changelog", "1.txt") == "changelog/1.txt"
    assert join_repo_path(".", "1.txt") == "1.txt"


def test_commit_history_treats_paths_literally(git_repo: RepoBuilder) -> None:
    git_repo.commit({"changelog/12.txt": "[bug] Plain.\n"}, "Add plain entry")
    bracketed = git_repo.commit({"changelog/1[2].txt": "[bug] Bracketed.\n"}, "Add bracketed entry")
    touched = git_repo.commit({"changelog/12.txt": "[bug] Plain, reworded.\n"}, "Reword")

    with GitRepository(git_repo.path) as repository:
        repository.checkout(touched)
        assert list(repository.commit_history("changelog/1[2].txt")) == [bracketed]
        assert next(repository.commit_history("changelog/12.txt")) == touched


def test_remote_location_is_cloned_and_cleaned_up(release_repo: ReleaseRepo) -> None:
    with GitRepository(f"file://{release_repo.path}") as repository:
        clone_dir = Path(repository._repo.git_dir)
        assert clone_dir.is_dir()
        assert clone_dir != release_repo.path
        entries = diff(repository, "v0.1.0", "v0.2.0", "changelog")

    assert [entry.issue for entry in entries] == ["2", "30"]
    assert not clone_dir.exists()
