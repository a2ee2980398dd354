"""Node.js build-system plugin (package.json, npm/yarn workspaces)."""

from __future__ import annotations

from pathlib import Path

from ..config import Configuration
from ..workspace import Discovery, Project
from .json_manifest import JsonManifestWorkspace

PLUGIN_NAME = "node"


class NodeWorkspace(JsonManifestWorkspace):
    manifest_file = "package.json"


def discover(cwd: Path, config: Configuration) -> Discovery:
    return Project.initialize(cwd, config, NodeWorkspace, PLUGIN_NAME)
