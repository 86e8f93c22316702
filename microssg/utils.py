"""Utility functions for micro-ssg.

Key functions:
    is_template: Check if a path is a Handlebars template.
    is_reserved: Check if a file name marks a shared (non-helper) module.
    errno_name: Symbolic name of an OS error, e.g. ``EEXIST``.
"""

from __future__ import annotations

import errno
import re
from pathlib import Path

TEMPLATE_EXTENSIONS = (".hbs", ".handlebars")

# First word after ``{{>``, unless the braces follow a quote, so that
# ``{{> partial arg="value, {{>" }}`` does not yield a false reference.
PARTIAL_RE = re.compile(r"""(?<!["'`])\{\{>\s*([^\s}]+)""")

RESERVED_PREFIX = "_"


def is_template(path: Path) -> bool:
    """Check if a path is a Handlebars template (.hbs or .handlebars)."""
    return path.suffix.lower() in TEMPLATE_EXTENSIONS


def is_reserved(path: Path) -> bool:
    """Check if a file name starts with the reserved ``_`` prefix."""
    return path.name.startswith(RESERVED_PREFIX)


def errno_name(exc: OSError) -> str:
    """Return the symbolic errno name of an OS error, or its message."""
    if exc.errno is not None and exc.errno in errno.errorcode:
        return errno.errorcode[exc.errno]
    return exc.strerror or str(exc)
