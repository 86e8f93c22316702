"""Page rendering for micro-ssg.

Each page template goes through the same stages: its text is read, the
partials it references are registered, it is compiled, its data is merged
with the shared data, it is rendered and, when a post-build transform
exists, transformed. Any failure aborts the page with an error naming it.

Key class:
- Page: Dataclass representing one page template and its output.

Key functions:
- discover_pages: Lists the page templates of a project.
- merge_context: Builds the render context from page and shared data.
- render_page: Runs a page through every stage.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .data import SHARED_DATA_NAME, load_data
from .errors import DuplicatePageError, PostBuildError, RenderError
from .partials import resolve_partials
from .paths import ProjectPaths
from .protocols import PostBuildHelper
from .templates import TemplateEngine
from .utils import is_template


@dataclass
class Page:
    """A page template destined to become one HTML file.

    Attributes:
        name: Logical name (file stem), also the output file name.
        path: Path to the template source.
        text: Raw template text, once loaded.
        data: Page data, None when the page has no data file.
        output: Rendered HTML, once rendered.
    """

    name: str
    path: Path
    text: str | None = None
    data: dict[str, Any] | None = None
    output: str | None = None

    @property
    def output_name(self) -> str:
        return f"{self.name}.html"


def discover_pages(
    pages_dir: Path, is_excluded: Callable[[Path], bool] | None = None
) -> list[Page]:
    """List the page templates in a directory.

    Excluded templates are still listed but do not count towards the
    duplicate check, so excluding one of two clashing files resolves the clash.

    Raises:
        DuplicatePageError: If two templates share a logical name.
    """
    if not pages_dir.is_dir():
        return []
    paths = sorted(p for p in pages_dir.iterdir() if p.is_file() and is_template(p))
    by_name: dict[str, list[Path]] = {}
    for path in paths:
        if is_excluded is not None and is_excluded(path):
            continue
        by_name.setdefault(path.stem, []).append(path)
    for name, found in by_name.items():
        if len(found) > 1:
            raise DuplicatePageError(name, found)
    return [Page(name=path.stem, path=path) for path in paths]


def merge_context(
    page_data: Mapping[str, Any] | None, shared_data: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Build a render context from page data and shared data.

    Shared data is placed under ``_shared``; page fields sit at the top
    level. A page that defines ``_shared`` itself replaces the injected one.

    Examples:
        >>> merge_context({"key": "value"}, {"yeet": "yolo"})
        {'_shared': {'yeet': 'yolo'}, 'key': 'value'}
    """
    return {SHARED_DATA_NAME: dict(shared_data or {}), **(page_data or {})}


async def apply_post_build(post_build: PostBuildHelper, page_name: str, html: str) -> str:
    """Run the post-build transform on one page.

    The transform may return the new HTML or an awaitable resolving to it.

    Raises:
        PostBuildError: If the transform raises or returns something other than a string.
    """
    try:
        result = post_build(page_name, html)
        if inspect.isawaitable(result):
            result = await result
    except Exception as exc:
        raise PostBuildError(page_name, exc) from exc
    if not isinstance(result, str):
        raise PostBuildError(
            page_name, reason=f"expected a string, got {type(result).__name__}"
        )
    return result


async def render_page(
    page: Page,
    *,
    paths: ProjectPaths,
    engine: TemplateEngine,
    shared_data: Mapping[str, Any] | None = None,
    post_build: PostBuildHelper | None = None,
    verbose: bool = False,
) -> Page:
    """Render one page, filling in its text, data and output.

    Args:
        page: Page to render.
        paths: Project source directories.
        engine: The run's template engine.
        shared_data: Data merged into every page under ``_shared``.
        post_build: Optional transform applied to the rendered HTML.
        verbose: Print progress to stdout.

    Returns:
        The same page, rendered.

    Raises:
        RenderError: If the template cannot be read, compiled or rendered.
        PostBuildError: If the post-build transform fails.
        CompileError: Data and partial errors propagate unchanged.
    """
    if verbose:
        print(f"Rendering page {page.name}...")
    try:
        page.text = await asyncio.to_thread(page.path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise RenderError(page.name, exc) from exc
    await resolve_partials(paths.partials, page.text, engine)

    try:
        template = engine.compile(page.text)
    except Exception as exc:
        raise RenderError(page.name, exc) from exc

    page.data = await load_data(paths.data, page.name, verbose=verbose)
    context = merge_context(page.data, shared_data)

    try:
        output = engine.render(template, context)
    except Exception as exc:
        hint = "This is likely due to missing data." if page.data is None else ""
        raise RenderError(page.name, exc, hint=hint) from exc

    if post_build is not None:
        output = await apply_post_build(post_build, page.name, output)
    page.output = output
    return page
