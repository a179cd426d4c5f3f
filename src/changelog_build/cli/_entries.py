"""Entries command for inspecting what a release would contain."""

from __future__ import annotations

import json
from typing import Any, Optional

import click
from rich.table import Table
from rich.text import Text

from ..entries import Entry
from ..notes import notes_from_entry
from ..utils import console, emit_output, log_info
from ._core import CLIContext, collect_entries, diff_options

__all__ = [
    "run_show_entries",
    "entries_cmd",
]


def _entry_to_dict(entry: Entry) -> dict[str, Any]:
    return {
        "issue": entry.issue,
        "body": entry.body,
        "notes": [{"type": note.type, "body": note.body} for note in notes_from_entry(entry)],
    }


def _entries_table(entries: list[Entry]) -> Table:
    table = Table(box=None, padding=(0, 2, 0, 0), show_header=True)
    table.add_column("ISSUE", style="note.issue", no_wrap=True)
    table.add_column("TYPE", style="note.type", no_wrap=True)
    table.add_column("NOTE", overflow="fold")
    for entry in entries:
        notes = notes_from_entry(entry)
        if not notes:
            table.add_row(entry.issue, "", "[dim]no notes[/dim]")
            continue
        for note in notes:
            table.add_row(entry.issue, note.type, Text(note.body))
    return table


def run_show_entries(
    ctx: CLIContext,
    *,
    last_release: str,
    this_release: str,
    entries_dir: Optional[str] = None,
    filename_format: Optional[str] = None,
    repository: Optional[str] = None,
    as_json: bool = False,
) -> None:
    """Python wrapper for listing the entries added between two releases."""

    entries = collect_entries(
        ctx,
        last_release=last_release,
        this_release=this_release,
        entries_dir=entries_dir,
        filename_format=filename_format,
        repository=repository,
    )
    if as_json:
        emit_output(json.dumps([_entry_to_dict(entry) for entry in entries], indent=2))
        return
    if not entries:
        log_info(f"no changelog entries between {last_release} and {this_release}.")
        return
    console.print(_entries_table(entries))


@click.command("entries")
@diff_options()
@click.option("--json", "as_json", is_flag=True, help="Emit entries and their notes as JSON.")
@click.pass_obj
def entries_cmd(
    ctx: CLIContext,
    last_release: str,
    this_release: str,
    entries_dir: Optional[str],
    filename_format: Optional[str],
    repository: Optional[str],
    as_json: bool,
) -> None:
    """List the changelog entries added since the last release."""

    run_show_entries(
        ctx,
        last_release=last_release,
        this_release=this_release,
        entries_dir=entries_dir,
        filename_format=filename_format,
        repository=repository,
        as_json=as_json,
    )
