"""Gradle build-system plugin.

The manifest keeps the conventional ``build.gradle`` file name but its
content is JSON (name, version, private, workspaces), not Groovy.
"""

from __future__ import annotations

from pathlib import Path

from ..config import Configuration
from ..workspace import Discovery, Project
from .json_manifest import JsonManifestWorkspace

PLUGIN_NAME = "gradle"


class GradleWorkspace(JsonManifestWorkspace):
    manifest_file = "build.gradle"


def discover(cwd: Path, config: Configuration) -> Discovery:
    return Project.initialize(cwd, config, GradleWorkspace, PLUGIN_NAME)
