"""Partial resolution for micro-ssg.

Templates pull in partials with ``{{> name}}``. Before a page is compiled,
its source is scanned for these references and every partial it needs is
loaded from the partials directory and registered, dependencies first.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path

from .errors import (
    AmbiguousPartialError,
    CyclicPartialError,
    InvalidPartialError,
    MissingPartialError,
)
from .templates import TemplateEngine
from .utils import PARTIAL_RE, TEMPLATE_EXTENSIONS


def find_partial_names(text: str) -> list[str]:
    """Return the distinct partial names referenced in template text.

    References inside quotes, such as ``arg="{{> x"``, are ignored.

    Examples:
        >>> find_partial_names("{{> head}} {{>foot}} {{> head title='x'}}")
        ['head', 'foot']
    """
    names: list[str] = []
    for match in PARTIAL_RE.finditer(text):
        name = match.group(1).strip()
        if name not in names:
            names.append(name)
    return names


def find_partial_file(partials_dir: Path, name: str) -> Path:
    """Locate the single source file for a partial.

    Raises:
        MissingPartialError: If neither accepted extension exists.
        AmbiguousPartialError: If both do.
    """
    candidates = [partials_dir / f"{name}{ext}" for ext in TEMPLATE_EXTENSIONS]
    found = [path for path in candidates if path.is_file()]
    if not found:
        raise MissingPartialError(name)
    if len(found) > 1:
        raise AmbiguousPartialError(name, found)
    return found[0]


async def resolve_partials(
    partials_dir: Path,
    text: str,
    engine: TemplateEngine,
    *,
    _resolving: Sequence[str] = (),
) -> None:
    """Register every partial referenced by ``text``, recursively.

    A partial's own references are registered before the partial itself.
    Names already registered in ``engine`` are skipped, so each partial file
    is read once per run however often it is referenced.

    Args:
        partials_dir: Directory holding the partial templates.
        text: Template source to scan.
        engine: The run's template engine.

    Raises:
        MissingPartialError: A referenced partial has no file.
        AmbiguousPartialError: A partial exists with both extensions.
        CyclicPartialError: A partial includes itself through the chain.
        InvalidPartialError: A partial template is unreadable or malformed.
    """
    for name in find_partial_names(text):
        if engine.has_partial(name):
            continue
        if name in _resolving:
            raise CyclicPartialError(name, _resolving)

        path = await asyncio.to_thread(find_partial_file, Path(partials_dir), name)
        try:
            partial_text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise InvalidPartialError(name, exc) from exc

        await resolve_partials(
            partials_dir, partial_text, engine, _resolving=(*_resolving, name)
        )
        try:
            engine.register_partial(name, partial_text)
        except Exception as exc:
            raise InvalidPartialError(name, exc) from exc
