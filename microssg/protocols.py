"""Protocol definitions for micro-ssg.

These protocols describe the seams between the compilation pipeline and the
capabilities it consumes: decoding data files and loading user-authored
Python code. Tests and embedders can substitute their own implementations.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Protocol, Union, runtime_checkable

PostBuildHelper = Callable[[str, str], Union[str, Awaitable[str]]]
"""Transform applied to each rendered page: ``(page_name, html) -> html``."""


@runtime_checkable
class DataDecoder(Protocol):
    """Protocol for decoding one family of data files.

    Each decoder handles a fixed set of file extensions.
    """

    @property
    @abstractmethod
    def extensions(self) -> tuple[str, ...]:
        """Return the lower-case extensions handled, including the dot."""
        ...

    @abstractmethod
    def decode(self, text: str) -> Any:
        """Decode file text into a data value.

        Args:
            text: Raw file content.

        Returns:
            The decoded value; the loader requires a mapping.
        """
        ...


@runtime_checkable
class ModuleLoader(Protocol):
    """Protocol for loading a callable out of a source file.

    The pipeline only relies on getting a callable back; how the file is
    turned into code is up to the implementation.
    """

    @abstractmethod
    def load(self, path: Path) -> Callable[..., Any]:
        """Load the callable exported by a source file.

        Args:
            path: Path to the source file.

        Returns:
            The exported callable.

        Raises:
            HelperLoadError: If the file cannot be loaded or exports no callable.
        """
        ...
