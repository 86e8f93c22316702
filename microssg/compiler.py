"""Site compilation for micro-ssg.

This module contains the core logic for compiling a project directory into
static HTML files. It registers helpers, loads shared data, renders every
page and, only once all of them rendered, writes the output.

Key functions:
- compile_project: Coroutine running one compilation.
- build_site: Synchronous wrapper around compile_project.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .data import SHARED_DATA_NAME, load_data
from .errors import NoPagesFoundError
from .helpers import find_post_build, find_post_build_files, register_helpers
from .options import CompilerOptions, Project, resolve_project
from .output import write_all
from .protocols import ModuleLoader
from .render import Page, discover_pages, render_page
from .templates import TemplateEngine


@dataclass
class CompileResult:
    """Result of a compilation run.

    Attributes:
        pages: Rendered pages, excluded pages left out.
        output_dir: Directory the pages were written to.
        written: Paths of the written files.
        project: The resolved project the run used.
    """

    pages: list[Page]
    output_dir: Path
    written: list[Path]
    project: Project


async def compile_project(
    project_root: str | os.PathLike[str],
    options: CompilerOptions | Mapping[str, Any] | None = None,
    *,
    loader: ModuleLoader | None = None,
) -> CompileResult:
    """Compile a project directory into HTML files.

    Args:
        project_root: Directory containing ``pages``, ``data``, ``partials``
            and ``helpers``.
        options: Compiler options, merged over the project's microssg.yaml.
        loader: Loader for helper and post-build modules.

    Returns:
        CompileResult describing the rendered pages and written files.

    Raises:
        CompileError: On the first failure; nothing is written unless every
            page rendered.
    """
    project = resolve_project(project_root, options)
    opts = project.options
    paths = project.paths
    if opts.log:
        print(f"Building from src directory '{paths.root.as_posix()}'.")

    # Fresh registry per run
    engine = TemplateEngine()
    post_build_files = await asyncio.to_thread(find_post_build_files, paths.root, paths.helpers)
    await register_helpers(
        paths.helpers,
        engine,
        loader=loader,
        typecheck_config=opts.typecheck_config,
        extra_sources=post_build_files,
        verbose=opts.log,
    )
    post_build = await find_post_build(paths.root, paths.helpers, loader=loader, verbose=opts.log)

    shared_data = await load_data(paths.data, SHARED_DATA_NAME, verbose=opts.log)
    pages = await asyncio.to_thread(discover_pages, paths.pages, opts.is_excluded)
    if not pages:
        raise NoPagesFoundError(paths.pages)

    rendered: list[Page] = []
    for page in pages:
        if opts.is_excluded(page.path):
            if opts.log:
                print(f"Skipping page {page.name}...")
            continue
        rendered.append(
            await render_page(
                page,
                paths=paths,
                engine=engine,
                shared_data=shared_data,
                post_build=post_build,
                verbose=opts.log,
            )
        )

    written = await write_all(
        opts.dest,
        rendered,
        overwrite=opts.overwrite,
        minify=opts.minify,
        verbose=opts.log,
    )
    return CompileResult(pages=rendered, output_dir=opts.dest, written=written, project=project)


def build_site(
    project_root: str | os.PathLike[str],
    options: CompilerOptions | Mapping[str, Any] | None = None,
    *,
    loader: ModuleLoader | None = None,
) -> CompileResult:
    """Compile a project directory; see compile_project."""
    return asyncio.run(compile_project(project_root, options, loader=loader))
