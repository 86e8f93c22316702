"""Helper discovery and registration for micro-ssg.

User-authored Python modules in the helpers directory become Handlebars
helpers, one per file, named after the file stem. Files starting with ``_``
are shared code for other helpers and are never registered themselves. A
single optional ``_post-build.py`` module, in the project root or the helpers
directory, provides a transform applied to every rendered page.

Key classes:
- FileModuleLoader: Default ModuleLoader, importing helper files with importlib.

Key functions:
- register_helpers: Loads every helper into a TemplateEngine.
- find_post_build: Locates and loads the post-build transform.
"""

from __future__ import annotations

import asyncio
import importlib.util
import sys
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from .errors import AmbiguousPostBuildHelperError, HelperLoadError, TypeCheckError
from .protocols import ModuleLoader, PostBuildHelper
from .templates import TemplateEngine
from .utils import is_reserved

HELPER_EXTENSION = ".py"
POST_BUILD_FILENAME = "_post-build.py"
TYPED_MARKER = "py.typed"
DEFAULT_EXPORT = "default"


def export_name(path: Path) -> str:
    """Return the attribute a source file is expected to export.

    Examples:
        >>> export_name(Path("helpers/prepend.py"))
        'prepend'
        >>> export_name(Path("_post-build.py"))
        'post_build'
    """
    return path.stem.lstrip("_").replace("-", "_")


@contextmanager
def _importable(directory: Path) -> Iterator[None]:
    """Make ``directory`` importable and forget modules loaded from it afterwards."""
    entry = str(directory)
    sys.path.insert(0, entry)
    try:
        yield
    finally:
        if entry in sys.path:
            sys.path.remove(entry)
        for name, module in list(sys.modules.items()):
            origin = getattr(module, "__file__", None)
            if origin and Path(origin).parent == directory:
                del sys.modules[name]


class FileModuleLoader:
    """Loads a callable from a Python source file.

    The module must define a callable named after the file stem (leading
    underscores dropped, hyphens turned into underscores) or one named
    ``default``. The module's directory is importable while it executes, so
    helpers can share code through ``_``-prefixed modules.
    """

    def load(self, path: Path) -> Callable[..., Any]:
        path = Path(path).resolve()
        name = export_name(path)
        spec = importlib.util.spec_from_file_location(f"_microssg_{name}", path)
        if spec is None or spec.loader is None:
            raise HelperLoadError(path.stem, reason=f"'{path.name}' is not an importable Python file")

        module = importlib.util.module_from_spec(spec)
        try:
            with _importable(path.parent):
                sys.modules[spec.name] = module
                spec.loader.exec_module(module)
        except Exception as exc:
            raise HelperLoadError(path.stem, exc) from exc

        for attribute in (name, DEFAULT_EXPORT):
            func = getattr(module, attribute, None)
            if callable(func):
                return func
        raise HelperLoadError(
            path.stem,
            reason=f"'{path.name}' defines no callable named '{name}' or '{DEFAULT_EXPORT}'",
        )


def discover_helpers(helpers_dir: Path) -> list[Path]:
    """List helper source files, skipping ``_``-prefixed shared modules."""
    if not helpers_dir.is_dir():
        return []
    return sorted(
        path
        for path in helpers_dir.iterdir()
        if path.is_file() and path.suffix == HELPER_EXTENSION and not is_reserved(path)
    )


def discover_sources(helpers_dir: Path) -> list[Path]:
    """List every Python source in the helpers directory, shared modules included."""
    if not helpers_dir.is_dir():
        return []
    return sorted(
        path for path in helpers_dir.iterdir() if path.is_file() and path.suffix == HELPER_EXTENSION
    )


def _load(loader: ModuleLoader, path: Path) -> Callable[..., Any]:
    try:
        return loader.load(path)
    except HelperLoadError:
        raise
    except Exception as exc:
        raise HelperLoadError(path.stem, exc) from exc


def _run_mypy(config: Path, paths: Sequence[Path]) -> tuple[str, int]:
    try:
        from mypy import api
    except ImportError as exc:
        raise TypeCheckError(
            "Received typecheck_config option, but failed to import 'mypy'. Is it installed?",
            exc,
        ) from exc
    stdout, stderr, status = api.run(["--config-file", str(config), *map(str, paths)])
    return stdout + stderr, status


async def typecheck_helpers(config: Path, paths: Sequence[Path], *, verbose: bool = False) -> None:
    """Type check helper sources with mypy.

    Raises:
        TypeCheckError: If mypy is not installed or reports errors.
    """
    if not paths:
        return
    if verbose:
        print(f"Type checking {len(paths)} helper file(s) with config '{config}'.")
    report, status = await asyncio.to_thread(_run_mypy, Path(config), list(paths))
    if status != 0:
        raise TypeCheckError(f"Type checking helpers failed:\n{report.strip()}")


async def register_helpers(
    helpers_dir: Path,
    engine: TemplateEngine,
    *,
    loader: ModuleLoader | None = None,
    typecheck_config: Path | None = None,
    extra_sources: Sequence[Path] = (),
    verbose: bool = False,
) -> list[str]:
    """Load every helper module and register it with the engine.

    When type checking is enabled every Python source in the helpers
    directory is checked, shared ``_``-prefixed modules included, before any
    helper is imported. A helpers directory carrying a ``py.typed`` marker
    declares statically typed helpers; without ``typecheck_config`` they are
    loaded unchecked and a warning is printed to stderr.

    Args:
        helpers_dir: Directory holding helper modules.
        engine: The run's template engine.
        loader: Module loader; defaults to FileModuleLoader.
        typecheck_config: mypy configuration file enabling type checking.
        extra_sources: Further sources type checked with the helpers, such as a
            post-build module outside the helpers directory.
        verbose: Print progress to stdout.

    Returns:
        Names of the registered helpers.

    Raises:
        HelperLoadError: If any helper fails to load.
        TypeCheckError: If type checking was requested and did not pass.
    """
    helpers_dir = Path(helpers_dir)
    loader = loader or FileModuleLoader()
    paths = await asyncio.to_thread(discover_helpers, helpers_dir)
    typed = await asyncio.to_thread((helpers_dir / TYPED_MARKER).is_file)

    if typecheck_config is not None:
        sources = await asyncio.to_thread(discover_sources, helpers_dir)
        sources += [Path(p) for p in extra_sources if Path(p) not in sources]
        await typecheck_helpers(typecheck_config, sources, verbose=verbose)
    elif typed and paths:
        print(
            f"Found typed helpers in '{helpers_dir.parent.name}/{helpers_dir.name}', but type"
            " checking was not enabled! Pass a mypy config to check them; loading them unchecked.",
            file=sys.stderr,
        )

    names = []
    for path in paths:
        if verbose:
            print("Importing and registering helper", path.as_posix())
        engine.register_helper(path.stem, _load(loader, path))
        names.append(path.stem)
    return names


def find_post_build_files(root: Path, helpers_dir: Path) -> list[Path]:
    """List the post-build transform candidates that exist."""
    candidates = [Path(root) / POST_BUILD_FILENAME, Path(helpers_dir) / POST_BUILD_FILENAME]
    return [path for path in candidates if path.is_file()]


async def find_post_build(
    root: Path,
    helpers_dir: Path,
    *,
    loader: ModuleLoader | None = None,
    verbose: bool = False,
) -> PostBuildHelper | None:
    """Locate and load the optional post-build transform.

    Returns:
        The transform, or None when no ``_post-build.py`` exists.

    Raises:
        AmbiguousPostBuildHelperError: If both candidate locations hold one.
        HelperLoadError: If the module cannot be loaded.
    """
    found = await asyncio.to_thread(find_post_build_files, root, helpers_dir)
    if not found:
        return None
    if len(found) > 1:
        raise AmbiguousPostBuildHelperError(found)
    if verbose:
        print("Importing post-build helper", found[0].as_posix())
    loader = loader or FileModuleLoader()
    return _load(loader, found[0])
