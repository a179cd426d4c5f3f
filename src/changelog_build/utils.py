"""Shared utilities for logging and console output."""

from __future__ import annotations

import logging
import sys
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.style import Style
from rich.theme import Theme

CROSS = "\033[31m✘\033[0m"
INFO = "\033[94;1mi\033[0m"
WARNING = "○"
DEBUG_PREFIX = "\033[95m◆\033[0m"

CROSS_PREFIX = f"{CROSS} "
INFO_PREFIX = f"{INFO} "
WARNING_PREFIX = f"{WARNING} "
DEBUG_PREFIX_WITH_SPACE = f"{DEBUG_PREFIX} "

_LOGGER_NAME = "changelog_build"
_LOGGER = logging.getLogger(_LOGGER_NAME)

console = Console(
    stderr=True,
    theme=Theme(
        {
            "note.type": Style(bold=True, color="cyan"),
            "note.issue": Style(color="magenta"),
        }
    ),
)


def configure_logging(debug: bool = False) -> logging.Logger:
    """Configure the shared logger used across the CLI."""
    level = logging.DEBUG if debug else logging.INFO
    _LOGGER.setLevel(level)
    while _LOGGER.handlers:
        handler = _LOGGER.handlers.pop()
        handler.close()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)
    _LOGGER.addHandler(handler)
    _LOGGER.propagate = False
    return _LOGGER


def _log(prefix: str, message: str, level: int) -> None:
    logger = logging.getLogger(_LOGGER_NAME)
    lines = message.splitlines() or [""]
    for line in lines:
        if line:
            logger.log(level, f"{prefix}{line}")
        else:
            logger.log(level, prefix.rstrip())


def log_info(message: str) -> None:
    """Log an informational message with the standardized prefix."""
    _log(INFO_PREFIX, message, logging.INFO)


def log_error(message: str) -> None:
    """Log an error message with the standardized prefix."""
    _log(CROSS_PREFIX, message, logging.ERROR)


def log_warning(message: str) -> None:
    """Log a warning message with the standardized prefix."""
    _log(WARNING_PREFIX, message, logging.WARNING)


def log_debug(message: str) -> None:
    """Log a debug message with the standardized prefix."""
    _log(DEBUG_PREFIX_WITH_SPACE, message, logging.DEBUG)


def abort_on_user_interrupt(exc: BaseException | None = None) -> NoReturn:
    """Log a standardized cancellation message and exit the command."""

    log_error("operation cancelled by user (Ctrl+C).")
    raise click.exceptions.Exit(130) from exc


def emit_output(content: str, *, newline: bool = True) -> None:
    """Emit raw command output to stdout for machine consumption."""
    click.echo(content, nl=newline, err=False)


def repository_slug_from_url(url: str) -> Optional[str]:
    """Return the GitHub repository slug (owner/name) of a remote URL."""
    url = url.strip()
    if not url:
        return None
    url = url.removesuffix("/").removesuffix(".git")
    if url.startswith("git@"):
        _, _, remainder = url.partition(":")
        return remainder or None
    for scheme in ("https://", "http://", "ssh://"):
        if url.startswith(scheme):
            remainder = url[len(scheme) :]
            # Remove domain
            parts = remainder.split("/", 1)
            if len(parts) == 2 and parts[1]:
                return parts[1]
            return None
    return None
