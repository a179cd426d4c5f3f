"""Build command rendering the changelog for a release."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..errors import ChangelogError
from ..notes import collect_notes
from ..render import render_changelog
from ..utils import emit_output, log_debug
from ._core import CLIContext, collect_entries, diff_options

__all__ = [
    "run_build",
    "build",
]


def run_build(
    ctx: CLIContext,
    *,
    last_release: str,
    this_release: str,
    entries_dir: Optional[str] = None,
    filename_format: Optional[str] = None,
    repository: Optional[str] = None,
    note_template: Optional[Path] = None,
    changelog_template: Optional[Path] = None,
) -> str:
    """Render the changelog between two releases and return it."""

    config = ctx.ensure_config()
    entries = collect_entries(
        ctx,
        last_release=last_release,
        this_release=this_release,
        entries_dir=entries_dir,
        filename_format=filename_format,
        repository=repository,
    )
    collection = collect_notes(entries)
    log_debug(f"collected {len(collection.notes)} notes from {len(entries)} entries")
    try:
        return render_changelog(
            collection,
            note_template=note_template or config.note_template,
            changelog_template=changelog_template or config.changelog_template,
            extra_context={"last_release": last_release, "this_release": this_release},
        )
    except ChangelogError as exc:
        raise click.ClickException(str(exc)) from exc


@click.command("build")
@diff_options()
@click.option(
    "--note-template",
    type=click.Path(path_type=Path, dir_okay=False, exists=True),
    help="File holding the template to use for each item in the changelog.",
)
@click.option(
    "--changelog-template",
    type=click.Path(path_type=Path, dir_okay=False, exists=True),
    help="File holding the template to use for the entire changelog.",
)
@click.pass_obj
def build(
    ctx: CLIContext,
    last_release: str,
    this_release: str,
    entries_dir: Optional[str],
    filename_format: Optional[str],
    repository: Optional[str],
    note_template: Optional[Path],
    changelog_template: Optional[Path],
) -> None:
    """Render the changelog for the entries added since the last release."""

    rendered = run_build(
        ctx,
        last_release=last_release,
        this_release=this_release,
        entries_dir=entries_dir,
        filename_format=filename_format,
        repository=repository,
        note_template=note_template,
        changelog_template=changelog_template,
    )
    emit_output(rendered, newline=False)
