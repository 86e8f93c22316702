"""Template rendering engine for micro-ssg.

This module uses pybars3, a Python implementation of Handlebars, to compile
and render templates. Partials and helpers live in a TemplateEngine instance
rather than in module-level state, so every compilation run starts with an
empty registry.

Key class:
- TemplateEngine: Per-run registry of partials and helpers plus rendering.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pybars import Compiler

Template = Callable[..., str]


class TemplateEngine:
    """Handlebars engine scoped to one compilation run.

    Attributes:
        partials: Registered partials, name to compiled template.
        helpers: Registered helpers, name to callable.
    """

    def __init__(self):
        self._compiler = Compiler()
        self.partials: dict[str, Template] = {}
        self.helpers: dict[str, Callable[..., Any]] = {}

    def compile(self, source: str) -> Template:
        """Compile template source.

        Raises:
            pybars.PybarsError: If the template is malformed.
        """
        return self._compiler.compile(source)

    def has_partial(self, name: str) -> bool:
        return name in self.partials

    def register_partial(self, name: str, source: str) -> bool:
        """Compile and register a partial unless the name is taken.

        Args:
            name: Name used in ``{{> name}}`` references.
            source: Partial template source.

        Returns:
            True if the partial was registered, False if it already was.
        """
        if name in self.partials:
            return False
        self.partials[name] = self.compile(source)
        return True

    def register_helper(self, name: str, helper: Callable[..., Any]) -> None:
        """Register a helper callable under ``name``.

        Helpers are called as ``helper(this, *args)``; block helpers receive
        ``options`` after ``this``, with ``options["fn"](context)`` rendering
        the block body.
        """
        self.helpers[name] = helper

    def render(self, template: Template, context: Mapping[str, Any]) -> str:
        """Render a compiled template against a context with this run's registry."""
        return str(template(context, helpers=self.helpers, partials=self.partials))

    def render_string(self, source: str, context: Mapping[str, Any]) -> str:
        """Compile and render template source in one step."""
        return self.render(self.compile(source), context)
