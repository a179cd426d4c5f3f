"""Typed notes extracted from changelog entries."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

from .entries import Entry

DEFAULT_NOTE_TYPE = "note"

# ```release-note:bug
# Fixed a crash.
# ```
_FENCED_NOTE_RE = re.compile(
    r"^```release-note:(?P<type>[^\r\n]*)\r?\n?(?P<note>.*?)\r?\n?```",
    re.MULTILINE | re.DOTALL,
)
# [bug] Fixed a crash.
_TAGGED_LINE_RE = re.compile(r"^\[(?P<type>[A-Za-z0-9_ -]+)\](?:\s+(?P<note>.*))?$")


@dataclass(frozen=True)
class Note:
    """A single typed changelog line belonging to an issue."""

    type: str
    body: str
    issue: str
    index: int = 0


@dataclass
class NoteCollection:
    """Notes in global order and grouped by type."""

    notes: list[Note] = field(default_factory=list)
    notes_by_type: dict[str, list[Note]] = field(default_factory=dict)


def note_sort_key(note: Note) -> tuple[str, str, str, int]:
    """Return the key that orders notes everywhere they are listed.

    Issues compare as strings, so ``"10"`` sorts before ``"2"``.
    """
    return note.type, note.issue, note.body, note.index


def _fenced_notes(entry: Entry) -> list[Note]:
    notes: list[Note] = []
    for match in _FENCED_NOTE_RE.finditer(entry.body):
        note_type = match.group("type").strip()
        body = match.group("note").rstrip("\r\n")
        if not note_type and not body:
            continue
        notes.append(
            Note(
                type=note_type or DEFAULT_NOTE_TYPE,
                body=body,
                issue=entry.issue,
                index=len(notes),
            )
        )
    return notes


def _tagged_line_notes(entry: Entry) -> list[Note]:
    notes: list[Note] = []
    for line in entry.body.splitlines():
        text = line.strip()
        if not text:
            continue
        note_type = DEFAULT_NOTE_TYPE
        match = _TAGGED_LINE_RE.match(text)
        if match is not None:
            tag = " ".join(match.group("type").split()).lower()
            if tag:
                note_type = tag
                text = (match.group("note") or "").strip()
                if not text:
                    continue
        notes.append(Note(type=note_type, body=text, issue=entry.issue, index=len(notes)))
    return notes


def notes_from_entry(entry: Entry) -> list[Note]:
    """Split an entry body into typed notes.

    Bodies containing ```` ```release-note:<type> ```` blocks yield one note
    per block. Otherwise every non-blank line is a note, typed by an optional
    leading ``[type]`` tag and falling back to ``DEFAULT_NOTE_TYPE``.
    """
    if not entry.body.strip():
        return []
    notes = _fenced_notes(entry)
    if not notes and _FENCED_NOTE_RE.search(entry.body) is None:
        notes = _tagged_line_notes(entry)
    return sort_notes(notes)


def sort_notes(notes: Iterable[Note]) -> list[Note]:
    """Return a new list of notes in changelog order."""
    return sorted(notes, key=note_sort_key)


def group_notes(notes: Iterable[Note]) -> dict[str, list[Note]]:
    """Group notes by type, each group in changelog order."""
    grouped: dict[str, list[Note]] = {}
    for note in notes:
        grouped.setdefault(note.type, []).append(note)
    for bucket in grouped.values():
        bucket.sort(key=note_sort_key)
    return grouped


def collect_notes(entries: Iterable[Entry]) -> NoteCollection:
    """Expand entries into notes and build both ordered views."""
    notes: list[Note] = []
    for entry in entries:
        notes.extend(notes_from_entry(entry))
    return NoteCollection(notes=sort_notes(notes), notes_by_type=group_notes(notes))
