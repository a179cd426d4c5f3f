"""Core CLI infrastructure: context, shared options, and the entry point."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version as metadata_version
from pathlib import Path
from typing import Any, Callable, Collection, Mapping, Optional, TypeVar

import click

from .. import __version__ as package_version
from ..config import (
    FILENAME_FORMAT_CHOICES,
    FILENAME_FORMAT_TIMESTAMP,
    GITHUB_TOKEN_ENV_VAR,
    Config,
    load_project_config,
    normalize_filename_format,
    parse_repository_slug,
)
from ..entries import Entry, diff, diff_with_issue_resolution
from ..errors import ChangelogError
from ..github import GitHubIssueResolver
from ..utils import (
    abort_on_user_interrupt,
    configure_logging,
    log_debug,
    log_info,
    repository_slug_from_url,
)
from ..vcs import GitRepository

F = TypeVar("F", bound=Callable[..., Any])

__all__ = [
    "CLIContext",
    "DEFAULT_COMMAND",
    "VERSION_FLAGS",
    "create_cli_context",
    "diff_options",
    "collect_entries",
    "_create_cli_group",
    "main",
]

VERSION_FLAGS = {"--version", "-V"}
DEFAULT_COMMAND = "build"

_GROUP_VALUE_OPTIONS = {"--git-dir", "--config"}
_GROUP_FLAG_OPTIONS = {"--debug", "-d", "--help", "-h"}


def _resolve_cli_version() -> str:
    try:
        return metadata_version("changelog-build")
    except PackageNotFoundError:
        return package_version


@dataclass
class CLIContext:
    """Shared command context."""

    git_dir: Path
    config_path: Optional[Path] = None
    _config: Optional[Config] = None

    def ensure_config(self) -> Config:
        if self._config is None:
            try:
                self._config = load_project_config(self.git_dir, self.config_path)
            except (FileNotFoundError, ValueError) as error:
                raise click.ClickException(str(error)) from error
        return self._config


def create_cli_context(
    *,
    git_dir: Path | None = None,
    config: Optional[Path] = None,
    debug: bool = False,
) -> CLIContext:
    """Return a CLIContext using the same resolution logic as the CLI entry point."""

    configure_logging(debug)
    resolved_git_dir = (git_dir or Path(".")).resolve()
    config_path = config.resolve() if config else None
    log_debug(f"using git directory: {resolved_git_dir}")
    if config_path is not None:
        log_debug(f"using config path: {config_path}")
    return CLIContext(git_dir=resolved_git_dir, config_path=config_path)


def diff_options() -> Callable[[F], F]:
    """Shared options selecting the releases and entries to compare.

    Used by: build, entries
    """

    def decorator(f: F) -> F:
        options = [
            click.option(
                "--last-release",
                required=True,
                help="Git ref of the last commit in the previous release, or '-' for none.",
            ),
            click.option(
                "--this-release",
                required=True,
                help="Git ref of the last commit to include in this release.",
            ),
            click.option(
                "--entries-dir",
                help="Directory within the repository containing changelog entry files.",
            ),
            click.option(
                "--filename-format",
                type=click.Choice(FILENAME_FORMAT_CHOICES),
                default=None,
                help=(
                    "Changelog entry filename format. With 'timestamp', pull request "
                    f"numbers are looked up on GitHub and {GITHUB_TOKEN_ENV_VAR} must "
                    "hold a token with 'repo' scope."
                ),
            ),
            click.option(
                "--repo",
                "repository",
                help="Repository as 'owner/name'. Required for --filename-format=timestamp.",
            ),
        ]
        for option in reversed(options):
            f = option(f)
        return f

    return decorator


def _resolve_repository_slug(
    repository: Optional[str], config: Config, git_repository: GitRepository
) -> tuple[str, str]:
    slug = repository or config.repository
    if not slug:
        remote_url = git_repository.remote_url()
        slug = repository_slug_from_url(remote_url) if remote_url else None
        if slug:
            log_info(f"detected repository {slug} from the origin remote.")
    if not slug:
        raise click.UsageError(
            f"--repo must be set if --filename-format={FILENAME_FORMAT_TIMESTAMP}"
        )
    try:
        return parse_repository_slug(slug)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc


def collect_entries(
    ctx: CLIContext,
    *,
    last_release: str,
    this_release: str,
    entries_dir: Optional[str] = None,
    filename_format: Optional[str] = None,
    repository: Optional[str] = None,
    env: Mapping[str, str] | None = None,
) -> list[Entry]:
    """Diff the configured repository and return the added entries."""

    config = ctx.ensure_config()
    resolved_entries_dir = entries_dir or config.entries_dir
    if not resolved_entries_dir:
        raise click.UsageError(
            "Must specify directory of the changelog entries within the repository being released."
        )
    try:
        resolved_format = normalize_filename_format(
            filename_format or config.filename_format, source="--filename-format"
        )
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    env_mapping = env if env is not None else os.environ
    try:
        with GitRepository(ctx.git_dir) as git_repository:
            if resolved_format != FILENAME_FORMAT_TIMESTAMP:
                return diff(git_repository, last_release, this_release, resolved_entries_dir)
            token = (env_mapping.get(GITHUB_TOKEN_ENV_VAR) or "").strip()
            if not token:
                raise click.UsageError(
                    f"If --filename-format={FILENAME_FORMAT_TIMESTAMP}, env var "
                    f"{GITHUB_TOKEN_ENV_VAR} must be set to a GitHub token with 'repo' scope"
                )
            owner, name = _resolve_repository_slug(repository, config, git_repository)
            resolver = GitHubIssueResolver(token)
            return diff_with_issue_resolution(
                git_repository,
                last_release,
                this_release,
                resolved_entries_dir,
                owner,
                name,
                resolver,
            )
    except ChangelogError as exc:
        raise click.ClickException(str(exc)) from exc


def _create_cli_group() -> click.Group:
    """Create the main CLI group. Called after all commands are defined."""

    @click.group(
        invoke_without_command=True, context_settings={"help_option_names": ["-h", "--help"]}
    )
    @click.option(
        "--git-dir",
        type=click.Path(path_type=Path, exists=True, file_okay=False),
        help="The directory of the git repository being released.",
    )
    @click.option(
        "--config",
        type=click.Path(path_type=Path, dir_okay=False),
        help="Path to an explicit changelog-build config YAML file.",
    )
    @click.option(
        "--debug",
        "-d",
        is_flag=True,
        help="Enable debug logging.",
    )
    @click.pass_context
    def _cli(
        ctx: click.Context,
        git_dir: Path | None,
        config: Optional[Path],
        debug: bool,
    ) -> None:
        """Build a changelog from the entries added between two releases."""

        ctx.obj = create_cli_context(git_dir=git_dir, config=config, debug=debug)

        if ctx.invoked_subcommand is None:
            click.echo(ctx.get_help())

    return click.version_option(version=_resolve_cli_version())(_cli)


def _group_options_end(args: list[str]) -> int:
    """Return the index of the first argument after the group-level options."""
    index = 0
    while index < len(args):
        arg = args[index]
        if arg in _GROUP_VALUE_OPTIONS:
            index += 2
        elif arg.split("=", 1)[0] in _GROUP_VALUE_OPTIONS or arg in _GROUP_FLAG_OPTIONS:
            index += 1
        else:
            break
    return index


def _inject_default_command(args: list[str], commands: Collection[str]) -> list[str]:
    """Insert the default command after the group-level options unless one is given there."""
    index = _group_options_end(args)
    if index < len(args) and args[index] in commands:
        return args
    return args[:index] + [DEFAULT_COMMAND] + args[index:]


def main(argv: list[str] | None = None) -> int:
    """Entry point for console_scripts."""
    # Import cli here to avoid circular import at module load time
    from . import cli

    args = list(argv) if argv is not None else list(sys.argv[1:])

    if any(flag in args for flag in VERSION_FLAGS):
        click.echo(_resolve_cli_version())
        return 0

    args = _inject_default_command(args, cli.commands)

    try:
        cli.main(args=args, prog_name="changelog-build", standalone_mode=False)
    except click.ClickException as exc:
        exc.show(file=sys.stderr)
        exit_code = getattr(exc, "exit_code", 1)
        return exit_code if isinstance(exit_code, int) else 1
    except KeyboardInterrupt as exc:
        try:
            abort_on_user_interrupt(exc)
        except click.exceptions.Exit as exit_exc:
            exit_code = getattr(exit_exc, "exit_code", 130)
            return exit_code if isinstance(exit_code, int) else 130
    except click.exceptions.Exit as exc:
        return exc.exit_code if isinstance(exc.exit_code, int) else 0
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0
    return 0
