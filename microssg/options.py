"""Compiler options and project configuration for micro-ssg.

Options come from two places: an optional ``microssg.yaml`` in the project
root and the command line. The merged result is frozen into a Project record
before a compilation run starts.

Key functions:
- load_config: Loads the project file, with defaults applied.
- resolve_project: Builds the immutable Project for one run.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .paths import ProjectPaths, resolve_paths

CONFIG_FILENAME = "microssg.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "dest": "dist",
    "overwrite": False,
    "log": False,
    "minify": False,
    "typecheck_config": None,
    "exclude": [],
    "directories": {},
}


@dataclass(frozen=True)
class CompilerOptions:
    """Options for one compilation run.

    Attributes:
        dest: Directory the HTML files are written to.
        overwrite: Whether existing output files may be replaced.
        log: Whether progress is printed to the console.
        minify: Whether the final HTML is minified.
        typecheck_config: Path to a mypy configuration file; enables static
            type checking of helpers.
        exclude: Page names (``name`` or ``name.ext``) not to compile.
    """

    dest: Path = Path("dist")
    overwrite: bool = False
    log: bool = False
    minify: bool = False
    typecheck_config: Path | None = None
    exclude: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> CompilerOptions:
        """Build options from loosely typed values, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {k: v for k, v in values.items() if k in known and v is not None}
        if "dest" in kwargs:
            kwargs["dest"] = Path(kwargs["dest"])
        if "typecheck_config" in kwargs:
            kwargs["typecheck_config"] = Path(kwargs["typecheck_config"])
        if "exclude" in kwargs:
            kwargs["exclude"] = _as_names(kwargs["exclude"])
        for flag in ("overwrite", "log", "minify"):
            if flag in kwargs:
                kwargs[flag] = bool(kwargs[flag])
        return cls(**kwargs)

    def is_excluded(self, path: Path) -> bool:
        """Return True when a page is excluded by name or by file name."""
        return path.stem in self.exclude or path.name in self.exclude


@dataclass(frozen=True)
class Project:
    """Everything a compilation run needs to know about its inputs.

    Attributes:
        root: Project root directory.
        paths: Resolved source directories.
        options: Frozen compiler options.
    """

    root: Path
    paths: ProjectPaths
    options: CompilerOptions


def _as_names(value: Any) -> frozenset[str]:
    if isinstance(value, str):
        return frozenset({value})
    if isinstance(value, Iterable):
        return frozenset(str(item) for item in value)
    return frozenset({str(value)})


def load_config(project_root: Path) -> dict[str, Any]:
    """Load project configuration from microssg.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.
    """
    config_path = Path(project_root) / CONFIG_FILENAME
    config = {**DEFAULT_CONFIG, "directories": {}}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                config.update(loaded)
    if not isinstance(config.get("directories"), dict):
        config["directories"] = {}
    return config


def resolve_project(
    project_root: str | os.PathLike[str],
    options: CompilerOptions | Mapping[str, Any] | None = None,
) -> Project:
    """Merge the project file with caller options into a Project.

    Values passed by the caller win over the project file. Boolean flags can
    only be switched on by the caller, and exclusions are combined.

    Args:
        project_root: Root directory of the project.
        options: Caller options, either a CompilerOptions or a mapping of
            option names to values.

    Returns:
        The immutable Project for one run.
    """
    paths = resolve_paths(project_root)
    config = load_config(paths.root)
    paths = resolve_paths(paths.root, config["directories"])
    from_file = CompilerOptions.from_mapping(config)
    if not from_file.dest.is_absolute():
        from_file = replace(from_file, dest=paths.root / from_file.dest)
    config_file = from_file.typecheck_config
    if config_file is not None and not config_file.is_absolute():
        from_file = replace(from_file, typecheck_config=paths.root / config_file)

    if options is None:
        return Project(root=paths.root, paths=paths, options=from_file)

    given = options if isinstance(options, Mapping) else _explicit_values(options)
    caller = CompilerOptions.from_mapping(given)
    merged = CompilerOptions(
        dest=caller.dest if given.get("dest") is not None else from_file.dest,
        overwrite=from_file.overwrite or caller.overwrite,
        log=from_file.log or caller.log,
        minify=from_file.minify or caller.minify,
        typecheck_config=caller.typecheck_config or from_file.typecheck_config,
        exclude=from_file.exclude | caller.exclude,
    )
    return Project(root=paths.root, paths=paths, options=merged)


def _explicit_values(options: CompilerOptions) -> dict[str, Any]:
    """Return the options that differ from the defaults."""
    defaults = CompilerOptions()
    return {
        f.name: getattr(options, f.name)
        for f in fields(options)
        if getattr(options, f.name) != getattr(defaults, f.name)
    }
