"""Project path resolution for micro-ssg.

A project root holds four conventional directories. This module turns the
root into their absolute paths without touching the file system; missing
directories simply yield empty scans later on.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DIRECTORY_NAMES = ("pages", "data", "partials", "helpers")


def join(*parts: str | os.PathLike[str]) -> str:
    """Join path parts and normalize separators to forward slashes.

    Examples:
        >>> join("src", "pages", "index.hbs")
        'src/pages/index.hbs'
    """
    return os.path.join(*[os.fspath(p) for p in parts]).replace("\\", "/")


@dataclass(frozen=True)
class ProjectPaths:
    """Absolute locations of a project's source directories.

    Attributes:
        root: Project root directory.
        pages: Page templates, one per output file.
        data: Page and shared data files.
        partials: Partial templates included with ``{{> name}}``.
        helpers: Python helper modules.
    """

    root: Path
    pages: Path
    data: Path
    partials: Path
    helpers: Path


def resolve_paths(
    root: str | os.PathLike[str],
    overrides: Mapping[str, str | os.PathLike[str]] | None = None,
) -> ProjectPaths:
    """Resolve the four source directories of a project.

    Args:
        root: Project root directory.
        overrides: Optional mapping of directory key (``pages``, ``data``,
            ``partials``, ``helpers``) to a replacement directory name,
            relative to the root or absolute.

    Returns:
        ProjectPaths with absolute, normalized paths.
    """
    overrides = overrides or {}
    unknown = set(overrides) - set(DIRECTORY_NAMES)
    if unknown:
        raise ValueError(f"Unknown project directories: {', '.join(sorted(unknown))}")

    base = Path(os.path.abspath(os.path.expanduser(os.fspath(root))))
    resolved = {}
    for key in DIRECTORY_NAMES:
        name = Path(os.path.expanduser(os.fspath(overrides.get(key, key))))
        resolved[key] = Path(os.path.normpath(base / name))
    return ProjectPaths(root=base, **resolved)
