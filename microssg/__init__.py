"""micro-ssg static site generator.

This package compiles a directory of Handlebars pages, partials, data files and
optional Python helpers into standalone HTML files.

The main entry point is the CLI module; programmatic callers use
``microssg.compiler.build_site`` or its async counterpart ``compile_project``.

Architecture:
- paths / options: resolve the project layout and the run configuration.
- data / partials / helpers: load everything a page needs to render.
- render / output: render each page and write the batch to disk.
- compiler: orchestrates one compilation run with a fresh template registry.
"""

__all__ = ["__version__"]
__version__ = "1.2.3"
