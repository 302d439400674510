"""strata CLI entrypoint.

Command-line interface for the strata git status document.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from strata.core.document.session import StatusDocument
    from strata.domain.config import StrataConfig

from strata.core.errors import StrataCliError, config_exists_error, not_a_repository_error
from strata.core.use_case_errors import log_use_case_error
from strata.domain.exceptions import StrataError
from strata.version import __version__

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def handle_cli_errors(command_name: str):
    """Decorator to handle common CLI errors.

    StrataCliError exceptions are re-raised to use their built-in
    formatting; domain errors are converted with their hint, and anything
    else becomes a generic error with a traceback in verbose mode.

    Args:
        command_name: Name of the command for error messages.

    Returns:
        Decorated function with error handling.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except StrataCliError:
                raise
            except StrataError as e:
                log_use_case_error(e, command_name)
                raise StrataCliError(e.message, hint=e.hint) from e
            except (ValueError, RuntimeError, OSError) as e:
                log_use_case_error(e, command_name)
                raise StrataCliError(
                    str(e),
                    hint="Run with --verbose for more details",
                ) from e
            except Exception as e:
                ctx = click.get_current_context()
                if ctx.obj.get("verbose", False):
                    import traceback

                    traceback.print_exc()
                raise StrataCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator


def _load_config(repo_root: Path | None) -> StrataConfig:
    """Load configuration for a working tree (or global only when None)."""
    from strata.adapters.factory import ConfigFactory

    return ConfigFactory().create_config_provider().load(repo_root)


def get_repo_root(ctx: click.Context) -> Path:
    """Resolve the working tree from --repo or the current directory.

    Raises:
        StrataCliError: If the directory is not inside a git working tree.
    """
    from strata.adapters.factory import RepositoryFactory

    start = ctx.obj.get("repo") or Path.cwd()
    git_executable = _load_config(None).refresh.git_executable
    repo_root = RepositoryFactory().find_repo_root(Path(start), git_executable)
    if repo_root is None:
        not_a_repository_error(Path(start))
    return repo_root


def _create_document(repo_root: Path, config: StrataConfig) -> StatusDocument:
    from strata.adapters.factory import DocumentFactory

    return DocumentFactory(config).create_document(repo_root)


def _color_flag(color_scheme: str) -> bool | None:
    """Map a color scheme to click.echo's color argument."""
    return {"always": True, "never": False}.get(color_scheme)


@click.group()
@click.version_option(version=__version__, prog_name="strata")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-essential output.",
)
@click.option(
    "--repo",
    "-C",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Run as if started in this directory.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, repo: Path | None) -> None:
    """strata - interactive git status document.

    Shows the state of a git working tree as foldable sections of files,
    stashes, worktrees, rebase steps and commits.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["repo"] = repo

    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


@cli.command()
@click.option(
    "--level",
    "-l",
    type=click.IntRange(1, 4),
    default=None,
    help="Disclosure depth: 1 sections, 2 entries, 3 hunk headers, 4 full diffs.",
)
@click.option(
    "--color",
    "color_scheme",
    type=click.Choice(["auto", "always", "never"]),
    default=None,
    help="Color output (default: from config).",
)
@click.pass_context
@handle_cli_errors("status")
def status(ctx: click.Context, level: int | None, color_scheme: str | None) -> None:
    """Print the status document once and exit."""
    from strata.core.presentation.colors import StrataColors, click_line

    repo_root = get_repo_root(ctx)
    config = _load_config(repo_root)
    document = _create_document(repo_root, config)
    if level is not None:
        document.controller.set_global_level(level)

    async def build() -> None:
        await document.refresh()
        await document.load_missing_hunks()

    asyncio.run(build())

    color = _color_flag(color_scheme or config.display.color_scheme)
    rendered = document.render()
    for index, (text, info) in enumerate(zip(rendered.lines, rendered.line_map, strict=True)):
        click.echo(click_line(text, info, rendered.decorations.get(index, ())), color=color)

    snapshot = document.model.snapshot
    if snapshot is not None and snapshot.failures and not ctx.obj.get("quiet", False):
        for failure in snapshot.failures:
            click.echo(StrataColors.click_warning(f"warning: {failure.message}"), err=True, color=color)


@cli.command()
@click.pass_context
@handle_cli_errors("show")
def show(ctx: click.Context) -> None:
    """Open the interactive status document."""
    repo_root = get_repo_root(ctx)
    config = _load_config(repo_root)
    document = _create_document(repo_root, config)

    # Lazy import
    from strata.adapters.tui.status_ui import StatusUI

    StatusUI(document).run()


@cli.group()
def config() -> None:
    """Inspect and create configuration files."""
    pass


@config.command(name="path")
@click.option("--local", "local", is_flag=True, help="Show the repo-local config path.")
@click.pass_context
@handle_cli_errors("config path")
def config_path(ctx: click.Context, local: bool) -> None:
    """Print where configuration is read from."""
    from strata.shared.config_io import get_global_config_path, get_local_config_path

    if local:
        click.echo(str(get_local_config_path(get_repo_root(ctx))))
    else:
        click.echo(str(get_global_config_path()))


@config.command(name="show")
@click.option("--toml", "as_toml", is_flag=True, help="Print the effective config as TOML.")
@click.pass_context
@handle_cli_errors("config show")
def config_show(ctx: click.Context, as_toml: bool) -> None:
    """Show the effective configuration."""
    from strata.adapters.factory import RepositoryFactory
    from strata.shared.config_io import config_to_data, dumps_config

    start = ctx.obj.get("repo") or Path.cwd()
    repo_root = RepositoryFactory().find_repo_root(
        Path(start), _load_config(None).refresh.git_executable
    )
    effective = _load_config(repo_root)

    if as_toml:
        click.echo(dumps_config(effective), nl=False)
        return

    for table, values in config_to_data(effective).items():
        click.echo(f"[{table}]")
        for key, value in values.items():
            click.echo(f"  {key} = {value!r}")


@config.command(name="init")
@click.option("--local", "local", is_flag=True, help="Create <repo>/.strata.toml instead.")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing file.")
@click.pass_context
@handle_cli_errors("config init")
def config_init(ctx: click.Context, local: bool, force: bool) -> None:
    """Write a commented default configuration file."""
    from strata.core.presentation.colors import StrataColors
    from strata.shared.config_io import (
        create_default_config_file,
        get_global_config_path,
        get_local_config_path,
    )

    path = get_local_config_path(get_repo_root(ctx)) if local else get_global_config_path()
    if path.exists() and not force:
        config_exists_error(path)

    create_default_config_file(path)
    if not ctx.obj.get("quiet", False):
        click.echo(StrataColors.click_success(f"✓ Created {path}"))


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
