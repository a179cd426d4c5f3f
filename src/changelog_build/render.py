"""Template rendering for collected notes."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

import jinja2

from .errors import TemplateError
from .notes import Note, NoteCollection, sort_notes

DEFAULT_NOTE_TEMPLATE_NAME = "note.md.j2"
DEFAULT_CHANGELOG_TEMPLATE_NAME = "changelog.md.j2"

NOTE_TYPE_ORDER = (
    "breaking-change",
    "security",
    "feature",
    "improvement",
    "deprecation",
    "bug",
    "note",
)

NOTE_TYPE_TITLES = {
    "breaking-change": "Breaking changes",
    "security": "Security",
    "feature": "Features",
    "improvement": "Improvements",
    "deprecation": "Deprecations",
    "bug": "Bug fixes",
    "note": "Notes",
}

DEFAULT_NOTE_TEMPLATE = """\
* {{ note.body }} [GH-{{ note.issue }}]
"""

DEFAULT_CHANGELOG_TEMPLATE = """\
{% for type, title, section_notes in sections %}
{{ title | upper }}:

{% for note in section_notes %}
{% include note_template %}
{% endfor %}
{% if not loop.last %}

{% endif %}
{% endfor %}
"""


def _combine_types(*groups: Optional[Iterable[Note]]) -> list[Note]:
    combined: list[Note] = []
    for group in groups:
        # Types without notes are undefined keys of ``notes_by_type``.
        if isinstance(group, jinja2.Undefined) or not group:
            continue
        combined.extend(group)
    return combined


def _has_prefix(value: object, prefix: str) -> bool:
    return str(value).startswith(prefix)


def section_title(note_type: str) -> str:
    """Return the heading used for a note type."""
    return NOTE_TYPE_TITLES.get(note_type, note_type.replace("-", " ").capitalize())


def build_sections(notes_by_type: dict[str, list[Note]]) -> list[tuple[str, str, list[Note]]]:
    """Return ``(type, title, notes)`` triples in presentation order."""
    known = [note_type for note_type in NOTE_TYPE_ORDER if notes_by_type.get(note_type)]
    unknown = sorted(
        note_type
        for note_type, notes in notes_by_type.items()
        if notes and note_type not in NOTE_TYPE_ORDER
    )
    return [
        (note_type, section_title(note_type), notes_by_type[note_type])
        for note_type in known + unknown
    ]


def _read_template(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateError(f"Error reading template {path}: {exc}") from exc


def create_environment(templates: dict[str, str]) -> jinja2.Environment:
    """Return the Jinja environment used to render changelogs."""
    env = jinja2.Environment(
        loader=jinja2.DictLoader(templates),
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["sort_notes"] = sort_notes
    env.filters["combine_types"] = _combine_types
    env.filters["has_prefix"] = _has_prefix
    env.tests["has_prefix"] = _has_prefix
    return env


def render_changelog(
    collection: NoteCollection,
    *,
    note_template: Optional[Path] = None,
    changelog_template: Optional[Path] = None,
    extra_context: Optional[dict[str, Any]] = None,
) -> str:
    """Render notes with the note and changelog templates.

    The changelog template receives ``notes``, ``notes_by_type``, ``sections``
    and ``note_template``, the name to ``{% include %}`` for a single note.
    Missing templates fall back to the built-in Markdown layout.
    """
    if note_template is None:
        note_name, note_source = DEFAULT_NOTE_TEMPLATE_NAME, DEFAULT_NOTE_TEMPLATE
    else:
        note_name, note_source = note_template.name, _read_template(note_template)
    if changelog_template is None:
        changelog_name = DEFAULT_CHANGELOG_TEMPLATE_NAME
        changelog_source = DEFAULT_CHANGELOG_TEMPLATE
    else:
        changelog_name = changelog_template.name
        changelog_source = _read_template(changelog_template)
    if changelog_name == note_name:
        raise TemplateError(
            f"note and changelog templates must have different file names, got '{note_name}'"
        )

    env = create_environment({note_name: note_source, changelog_name: changelog_source})
    context: dict[str, Any] = {
        "notes": collection.notes,
        "notes_by_type": collection.notes_by_type,
        "sections": build_sections(collection.notes_by_type),
        "note_template": note_name,
    }
    if extra_context:
        context.update(extra_context)
    try:
        template = env.get_template(changelog_name)
        return template.render(**context)
    except jinja2.TemplateSyntaxError as exc:
        raise TemplateError(
            f"Error parsing {exc.name or changelog_name} as a template (line {exc.lineno}): "
            f"{exc.message}"
        ) from exc
    except jinja2.TemplateError as exc:
        raise TemplateError(f"Error executing templates: {exc}") from exc
