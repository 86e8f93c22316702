"""Data file loading for micro-ssg.

Every page may have one data file in the data directory sharing its logical
name; ``_shared`` names the data merged into every page. JSON and YAML files
decode to mappings, Markdown files decode to their rendered HTML wrapped
under the ``_md`` key.

Key classes:
- DecoderRegistry: Maps file extensions to decoders.
- JSONDecoder / YAMLDecoder / MarkdownDecoder: The built-in decoders.

Key functions:
- load_data: Finds and decodes the single data file for a name.
"""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from typing import Any

import mistune
import yaml

from .errors import AmbiguousDataFileError, DataParseError
from .protocols import DataDecoder

SHARED_DATA_NAME = "_shared"
MARKDOWN_KEY = "_md"


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text."""
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _HeadingIdRenderer(mistune.HTMLRenderer):
    """HTML renderer that gives every heading a unique ``id`` attribute."""

    def __init__(self):
        super().__init__(escape=False)
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = _generate_heading_id(text)
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'


class JSONDecoder:
    """Decodes ``.json`` files."""

    @property
    def extensions(self) -> tuple[str, ...]:
        return (".json",)

    def decode(self, text: str) -> Any:
        return json.loads(text)


class YAMLDecoder:
    """Decodes ``.yml`` and ``.yaml`` files; an empty document is an empty mapping."""

    @property
    def extensions(self) -> tuple[str, ...]:
        return (".yml", ".yaml")

    def decode(self, text: str) -> Any:
        loaded = yaml.safe_load(text)
        return {} if loaded is None else loaded


class MarkdownDecoder:
    """Renders Markdown files to HTML.

    The result is not a key/value map: the HTML is exposed to templates as a
    single string under ``_md``, usually inserted with ``{{{_md}}}``.
    """

    @property
    def extensions(self) -> tuple[str, ...]:
        return (".md", ".markdown")

    def decode(self, text: str) -> Any:
        markdown = mistune.create_markdown(
            renderer=_HeadingIdRenderer(),
            plugins=["strikethrough", "table", "url", "task_lists"],
        )
        return {MARKDOWN_KEY: markdown(text).strip()}


class DecoderRegistry:
    """Registry of data decoders keyed by file extension.

    New formats can be added without touching the loader.
    """

    def __init__(self):
        """Initialize the registry with the default decoders."""
        self._decoders: dict[str, DataDecoder] = {}
        self.register(JSONDecoder())
        self.register(YAMLDecoder())
        self.register(MarkdownDecoder())

    def register(self, decoder: DataDecoder) -> None:
        """Register a decoder for each of its extensions."""
        for extension in decoder.extensions:
            self._decoders[extension.lower()] = decoder

    @property
    def extensions(self) -> tuple[str, ...]:
        return tuple(self._decoders)

    def get_decoder(self, path: Path) -> DataDecoder | None:
        """Return the decoder for a file, or None if its extension is unsupported."""
        return self._decoders.get(path.suffix.lower())


default_decoder_registry = DecoderRegistry()


def parse_data(text: str, path: Path, registry: DecoderRegistry | None = None) -> dict[str, Any]:
    """Decode the text of a data file.

    Args:
        text: Raw file content.
        path: Path of the file, used to pick the decoder and in errors.
        registry: Decoder registry; defaults to the built-in one.

    Returns:
        The decoded mapping.

    Raises:
        DataParseError: If the text is malformed or does not decode to a mapping.
    """
    registry = registry or default_decoder_registry
    decoder = registry.get_decoder(path)
    if decoder is None:
        raise DataParseError(path, reason=f"unsupported extension '{path.suffix}'")
    try:
        data = decoder.decode(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise DataParseError(path, exc) from exc
    if not isinstance(data, dict):
        raise DataParseError(
            path, reason=f"expected a mapping at the top level, got {type(data).__name__}"
        )
    return data


def find_data_files(
    directory: Path, name: str, registry: DecoderRegistry | None = None
) -> list[Path]:
    """List the data files in a directory whose stem is exactly ``name``."""
    registry = registry or default_decoder_registry
    if not directory.is_dir():
        return []
    extensions = set(registry.extensions)
    return sorted(
        path
        for path in directory.iterdir()
        if path.is_file() and path.stem == name and path.suffix.lower() in extensions
    )


async def load_data(
    directory: Path,
    name: str,
    *,
    registry: DecoderRegistry | None = None,
    verbose: bool = False,
) -> dict[str, Any] | None:
    """Find and decode the data file for a logical name.

    Args:
        directory: Data directory to search.
        name: Logical name (page name or ``_shared``).
        registry: Decoder registry; defaults to the built-in one.
        verbose: Print progress to stdout.

    Returns:
        The decoded mapping, or None when no data file exists.

    Raises:
        AmbiguousDataFileError: If more than one data file matches.
        DataParseError: If the file cannot be decoded.
    """
    matches = await asyncio.to_thread(find_data_files, Path(directory), name, registry)
    if not matches:
        if verbose:
            print(f"Found no data file for '{name}'.")
        return None
    if len(matches) > 1:
        raise AmbiguousDataFileError(name, matches)

    path = matches[0]
    try:
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DataParseError(path, exc) from exc
    data = parse_data(text, path, registry)
    if verbose:
        print(f"Parsed data for {name}:", data)
    return data
