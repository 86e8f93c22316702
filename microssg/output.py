"""Output writing for micro-ssg.

Rendered pages are written as ``<name>.html`` into the destination
directory. Existing files are never replaced unless overwriting is enabled;
in that case every target is checked before the first file is written, so a
collision leaves the destination untouched.

Writing is not transactional beyond that check: if the disk fails while
writing the third of five pages, the first two may already be on disk.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path

import minify_html

from .errors import DestinationError, OutputExistsError
from .render import Page
from .utils import errno_name


def minify_page(html: str) -> str:
    """Minify an HTML document, including inline CSS and JavaScript."""
    return minify_html.minify(html, minify_css=True, minify_js=True)


def ensure_destination(destination: Path) -> None:
    """Create the destination directory and its parents.

    Raises:
        DestinationError: If the directory cannot be created.
    """
    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DestinationError(destination, errno_name(exc), exc) from exc


def _write_page(path: Path, page_name: str, text: str, overwrite: bool) -> None:
    mode = "w" if overwrite else "x"
    try:
        with open(path, mode, encoding="utf-8") as f:
            f.write(text)
    except FileExistsError as exc:
        raise OutputExistsError(page_name, path, exc) from exc
    except OSError as exc:
        exc.add_note(f"while writing page '{page_name}' to {path}")
        raise


async def write_all(
    destination: Path,
    pages: Iterable[Page],
    *,
    overwrite: bool = False,
    minify: bool = False,
    verbose: bool = False,
) -> list[Path]:
    """Write every rendered page into the destination directory.

    Args:
        destination: Output directory, created if missing.
        pages: Rendered pages.
        overwrite: Replace existing files instead of failing.
        minify: Minify each page before writing.
        verbose: Print progress to stdout.

    Returns:
        Paths of the written files.

    Raises:
        DestinationError: If the destination cannot be created.
        OutputExistsError: If a target exists and overwrite is off.
    """
    destination = Path(destination)
    await asyncio.to_thread(ensure_destination, destination)

    targets = [(page, destination / page.output_name) for page in pages]
    if not overwrite:
        for page, path in targets:
            if await asyncio.to_thread(path.exists):
                raise OutputExistsError(page.name, path)

    async def write(page: Page, path: Path) -> Path:
        text = page.output or ""
        if minify:
            text = minify_page(text)
        if verbose:
            print("Writing file to", path.as_posix())
        await asyncio.to_thread(_write_page, path, page.name, text, overwrite)
        return path

    return list(await asyncio.gather(*(write(page, path) for page, path in targets)))

