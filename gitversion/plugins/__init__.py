"""Build-system plugin registry.

Every registered plugin is tried; they are not mutually exclusive, so a
repository with both a package.json and a pyproject.toml yields two
projects.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from ..config import Configuration
from ..workspace import Discovered, Discovery, Project
from . import gradle, node, python

DiscoverFn = Callable[[Path, Configuration], Discovery]

BUILD_SYSTEM_PLUGINS: dict[str, DiscoverFn] = {
    node.PLUGIN_NAME: node.discover,
    python.PLUGIN_NAME: python.discover,
    gradle.PLUGIN_NAME: gradle.discover,
}


def discover_all(cwd: Path | str, config: Configuration) -> list[Discovery]:
    """Run every build-system plugin against ``cwd``."""
    root = Path(cwd)
    return [discover(root, config) for discover in BUILD_SYSTEM_PLUGINS.values()]


def discover_projects(cwd: Path | str, config: Configuration) -> list[Project]:
    """Collect the projects of every plugin that applies to ``cwd``."""
    return [d.project for d in discover_all(cwd, config) if isinstance(d, Discovered)]
