"""CLI entry point for gitversion."""

from __future__ import annotations

import functools
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from .errors import ExternalProcessError, GitVersionError
from .pipeline import reset_generated_files, run_release, status_fingerprint
from .shell import fatal


def _handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Report gitversion errors (with captured git output) and exit 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ExternalProcessError as exc:
            fatal(exc.details())
        except GitVersionError as exc:
            fatal(str(exc))

    return wrapper


@click.group()
@click.version_option(package_name="gitversion")
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Repository root. Defaults to the repository containing the current directory.",
)
@click.pass_context
def cli(ctx: click.Context, cwd: Path | None) -> None:
    """Semantic versions, changelogs and tags from git history."""
    ctx.obj = cwd.resolve() if cwd else None


@cli.command()
@click.pass_obj
@_handle_errors
def version(cwd: Path | None) -> None:
    """Show the next versions without changing anything."""
    result = run_release(cwd, dry_run=True)
    for name, bump in result.release.releases.items():
        click.echo(f"{name} {bump.old} → {bump.new}")


@cli.command()
@click.pass_obj
@_handle_errors
def release(cwd: Path | None) -> None:
    """Bump versions, write changelogs, commit, tag, push and publish."""
    result = run_release(cwd)
    if result.publish_failures:
        raise click.ClickException(
            f"{len(result.publish_failures)} publish plugin(s) failed; "
            "the release commit and tags were pushed."
        )


@cli.command()
@click.pass_obj
@_handle_errors
def fingerprint(cwd: Path | None) -> None:
    """Print a hash of the repository state, ignoring generated files."""
    click.echo(status_fingerprint(cwd))


@cli.command()
@click.pass_obj
@_handle_errors
def reset(cwd: Path | None) -> None:
    """Discard uncommitted manifest and changelog changes."""
    for path in reset_generated_files(cwd):
        click.echo(f"  {path}")
