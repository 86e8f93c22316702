"""Error types raised during a micro-ssg compilation run.

Every failure of a run surfaces as a subclass of CompileError carrying the
name of the page, partial, helper or file it concerns. Low-level exceptions
are chained with ``raise ... from`` and kept on ``original_error``.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class CompileError(Exception):
    """Base class for all compilation errors.

    Attributes:
        message: Human-readable error message.
        original_error: The exception that triggered this one, if any.
    """

    def __init__(self, message: str, original_error: BaseException | None = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)


def _describe(exc: BaseException | None) -> str:
    if exc is None:
        return ""
    text = str(exc) or type(exc).__name__
    return f":\n{text}"


def _names(paths: Iterable[Path]) -> list[str]:
    return sorted(Path(p).name for p in paths)


class AmbiguousDataFileError(CompileError):
    """More than one data file exists for a logical name."""

    def __init__(self, name: str, paths: Iterable[Path]):
        self.name = name
        self.paths = sorted(Path(p) for p in paths)
        super().__init__(
            f"Found more than one data file for '{name}': {', '.join(_names(self.paths))}"
        )


class DataParseError(CompileError):
    """A data file could not be decoded."""

    def __init__(self, path: Path, original_error: BaseException | None = None, reason: str = ""):
        self.path = Path(path)
        detail = reason or str(original_error or "")
        super().__init__(f"Could not parse data file '{self.path.name}': {detail}", original_error)


class MissingPartialError(CompileError):
    """A referenced partial has no source file."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Could not find Handlebars file for partial '{name}'.")


class AmbiguousPartialError(CompileError):
    """A partial name matches both accepted template extensions."""

    def __init__(self, name: str, paths: Iterable[Path]):
        self.name = name
        self.paths = sorted(Path(p) for p in paths)
        super().__init__(f"Found more than one file for partial '{name}'.")


class InvalidPartialError(CompileError):
    """A partial template could not be read or compiled."""

    def __init__(self, name: str, original_error: BaseException | None = None):
        self.name = name
        super().__init__(f"Could not load partial '{name}'{_describe(original_error)}", original_error)


class CyclicPartialError(CompileError):
    """A partial includes itself, directly or through other partials."""

    def __init__(self, name: str, chain: Iterable[str]):
        self.name = name
        self.chain = [*chain, name]
        super().__init__(f"Partial '{name}' includes itself: {' -> '.join(self.chain)}")


class HelperLoadError(CompileError):
    """A helper or post-build module could not be imported or registered."""

    def __init__(self, name: str, original_error: BaseException | None = None, reason: str = ""):
        self.name = name
        detail = f":\n{reason}" if reason else _describe(original_error)
        super().__init__(f"Unable to import helper '{name}'{detail}", original_error)


class TypeCheckError(CompileError):
    """Static type checking of helpers was requested and could not pass."""


class AmbiguousPostBuildHelperError(CompileError):
    """More than one post-build transform was found."""

    def __init__(self, paths: Iterable[Path]):
        self.paths = sorted(Path(p) for p in paths)
        locations = ", ".join(p.as_posix() for p in self.paths)
        super().__init__(f"Cannot use more than one _post-build helper: found {locations}")


class RenderError(CompileError):
    """A page template failed to compile or render."""

    def __init__(self, page_name: str, original_error: BaseException | None = None, hint: str = ""):
        self.page_name = page_name
        note = f" {hint}" if hint else ""
        super().__init__(
            f"An error occurred while rendering page '{page_name}'.{note}{_describe(original_error)}",
            original_error,
        )


class PostBuildError(CompileError):
    """The post-build transform failed for a page."""

    def __init__(self, page_name: str, original_error: BaseException | None = None, reason: str = ""):
        self.page_name = page_name
        detail = f":\n{reason}" if reason else _describe(original_error)
        super().__init__(
            f"An error occurred running the post-build helper on page '{page_name}'{detail}",
            original_error,
        )


class DestinationError(CompileError):
    """The destination directory could not be created."""

    def __init__(self, path: Path, code: str, original_error: BaseException | None = None):
        self.path = Path(path)
        self.code = code
        super().__init__(f"Could not create destination directory '{self.path}': {code}", original_error)


class OutputExistsError(CompileError):
    """An output file already exists and overwriting is disabled."""

    def __init__(self, page_name: str, path: Path, original_error: BaseException | None = None):
        self.page_name = page_name
        self.path = Path(path)
        super().__init__(
            f"Could not write {page_name}.html: file exists. Try enabling the overwrite option.",
            original_error,
        )


class NoPagesFoundError(CompileError):
    """The pages directory holds no templates."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        super().__init__(f"Found no pages to compile in '{self.directory.as_posix()}'")


class DuplicatePageError(CompileError):
    """Two page templates share a logical name and would write the same file."""

    def __init__(self, name: str, paths: Iterable[Path]):
        self.name = name
        self.paths = sorted(Path(p) for p in paths)
        super().__init__(
            f"Found more than one template for page '{name}': {', '.join(_names(self.paths))}"
        )
