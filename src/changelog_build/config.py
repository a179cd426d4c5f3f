"""Configuration helpers for changelog-build."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, MutableMapping, cast

import yaml

FilenameFormat = Literal["pr-number", "timestamp"]
CONFIG_RELATIVE_PATH = Path("changelog.yaml")
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"

FILENAME_FORMAT_PR_NUMBER: FilenameFormat = "pr-number"
FILENAME_FORMAT_TIMESTAMP: FilenameFormat = "timestamp"
FILENAME_FORMAT_CHOICES: tuple[FilenameFormat, ...] = (
    FILENAME_FORMAT_PR_NUMBER,
    FILENAME_FORMAT_TIMESTAMP,
)


def default_config_path(git_dir: Path) -> Path:
    """Return the default config path for a repository directory."""
    return git_dir / CONFIG_RELATIVE_PATH


@dataclass
class Config:
    """Structured representation of the changelog-build config."""

    entries_dir: str | None = None
    filename_format: FilenameFormat = FILENAME_FORMAT_PR_NUMBER
    repository: str | None = None
    note_template: Path | None = None
    changelog_template: Path | None = None


def parse_repository_slug(value: str) -> tuple[str, str]:
    """Split an ``owner/name`` slug into its two parts."""
    parts = value.strip().split("/")
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise ValueError(
            f"repository '{value}' is invalid: must be set as 'owner/name', e.g. 'acme/widgets'"
        )
    owner, name = (part.strip() for part in parts)
    return owner, name


def normalize_filename_format(value: object, *, source: str) -> FilenameFormat:
    """Validate a filename format value and return its canonical form."""
    if not isinstance(value, str):
        raise ValueError(f"{source} must be a string.")
    normalized = value.strip().lower()
    if normalized not in FILENAME_FORMAT_CHOICES:
        allowed = ", ".join(FILENAME_FORMAT_CHOICES)
        raise ValueError(f"{source} must be one of: {allowed}")
    return cast(FilenameFormat, normalized)


def _optional_string(raw: MutableMapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Config option '{key}' must be a string.")
    return value.strip() or None


def _optional_path(raw: MutableMapping[str, Any], key: str, base: Path) -> Path | None:
    value = _optional_string(raw, key)
    if value is None:
        return None
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base / path
    return path


def load_config(path: Path) -> Config:
    """Load the configuration from disk."""
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, MutableMapping):
        raise ValueError("Config root must be a mapping")

    filename_format = FILENAME_FORMAT_PR_NUMBER
    filename_format_raw = raw.get("filename_format")
    if filename_format_raw is not None:
        filename_format = normalize_filename_format(
            filename_format_raw, source="Config option 'filename_format'"
        )

    repository = _optional_string(raw, "repository")
    if repository is not None:
        parse_repository_slug(repository)

    base = path.parent
    return Config(
        entries_dir=_optional_string(raw, "entries_dir"),
        filename_format=filename_format,
        repository=repository,
        note_template=_optional_path(raw, "note_template", base),
        changelog_template=_optional_path(raw, "changelog_template", base),
    )


def load_project_config(git_dir: Path, config_path: Path | None = None) -> Config:
    """Load the config for a repository, falling back to defaults when absent.

    An explicitly requested config file must exist; the default location is
    optional.
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"No config found at {config_path}.")
        return load_config(config_path)
    default_path = default_config_path(git_dir)
    if default_path.exists():
        return load_config(default_path)
    return Config()
