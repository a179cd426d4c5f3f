"""CLI package for changelog-build.

This package contains the modular CLI implementation:
- _core.py: CLIContext, shared options, entry collection, main entry point
- _build.py: build command rendering the changelog
- _entries.py: entries command listing the diffed entries
"""

from __future__ import annotations

from ._core import (
    CLIContext,
    DEFAULT_COMMAND,
    VERSION_FLAGS,
    collect_entries,
    create_cli_context,
    diff_options,
    _create_cli_group,
    main,
)
from ._build import (
    build,
    run_build,
)
from ._entries import (
    entries_cmd,
    run_show_entries,
)

# Create the main CLI group
cli = _create_cli_group()

# Register all commands with the cli group
cli.add_command(build)
cli.add_command(entries_cmd)


__all__ = [
    # Core
    "cli",
    "main",
    "CLIContext",
    "DEFAULT_COMMAND",
    "VERSION_FLAGS",
    "collect_entries",
    "create_cli_context",
    "diff_options",
    # Build
    "build",
    "run_build",
    # Entries
    "entries_cmd",
    "run_show_entries",
]
