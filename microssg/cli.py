"""Command-line interface for micro-ssg.

This module defines the CLI commands using the Click framework.

Commands:
- build: Compile a source directory into HTML files.
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from . import __version__


def _resolve_path(value: str | None) -> Path | None:
    """Expand ``~`` and make a path absolute against the working directory."""
    if value is None:
        return None
    if value.startswith("~"):
        return Path(os.path.expanduser(value))
    return Path(os.path.abspath(value))


@click.group()
@click.version_option(version=__version__, prog_name="microssg")
def cli():
    """A tiny little Handlebars compiler for building the simplest of static sites."""


@cli.command()
@click.option("-d", "--src", default="src", show_default=True, help="The directory to compile")
@click.option(
    "-o",
    "--dest",
    default=None,
    help="The directory to output to; will be created if it does not exist [default: dist]",
)
@click.option("-v", "--log", is_flag=True, help="Enable logging")
@click.option("-m", "--minify", is_flag=True, help="Minify the output HTML")
@click.option("-f", "--overwrite", is_flag=True, help="Truncate existing files when outputting")
@click.option(
    "-t",
    "--typecheck-config",
    default=None,
    help="Path to a mypy config file to enable type checking of helpers",
)
@click.option(
    "-e",
    "--exclude",
    multiple=True,
    help="Page-names not to compile from Handlebars to HTML (either 'name' or 'name.ext')",
)
def build(
    src: str,
    dest: str | None,
    log: bool,
    minify: bool,
    overwrite: bool,
    typecheck_config: str | None,
    exclude: tuple[str, ...],
):
    """Compile a source directory into static HTML files."""
    from .compiler import build_site
    from .errors import CompileError

    options = {
        "dest": _resolve_path(dest),
        "log": log,
        "minify": minify,
        "overwrite": overwrite,
        "typecheck_config": _resolve_path(typecheck_config),
        "exclude": list(exclude),
    }
    try:
        result = build_site(_resolve_path(src), options)
    except CompileError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(f"  {exc.message}", err=True)
        raise SystemExit(1) from None
    click.echo(f"Built {len(result.pages)} pages into {result.output_dir}")


def main():
    """Entry point for the CLI application."""
    cli()
