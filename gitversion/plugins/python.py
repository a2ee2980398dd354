"""Python build-system plugin (pyproject.toml, uv workspaces).

Uses tomlkit to preserve formatting and comments when modifying
pyproject.toml files. A pyproject.toml without a [project] table (tool
configuration only) is not treated as a package manifest.
"""

from __future__ import annotations

from pathlib import Path

import tomlkit
from packaging.utils import canonicalize_name
from tomlkit.exceptions import ParseError

from ..config import Configuration
from ..versions import is_valid_version
from ..workspace import (
    DEFAULT_PACKAGE_VERSION,
    Discovery,
    ManifestCheck,
    Project,
    Workspace,
    read_text,
    write_text,
)

PLUGIN_NAME = "python"

# PyPI rejects uploads carrying this classifier.
PRIVATE_CLASSIFIER = "Private :: Do Not Upload"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Returns a TOMLDocument that preserves formatting when modified and saved.
    """
    return tomlkit.parse(read_text(path))


def save_pyproject(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    write_text(path, tomlkit.dumps(doc))


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace]."""
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    return [str(m) for m in members or []]


class PythonWorkspace(Workspace):
    manifest_file = "pyproject.toml"
    manifest: tomlkit.TOMLDocument

    @classmethod
    def load(cls, folder: Path) -> ManifestCheck:
        path = folder / cls.manifest_file
        if not path.is_file():
            return ManifestCheck.missing()
        try:
            doc = load_pyproject(path)
        except ParseError as exc:
            return ManifestCheck.invalid(f"invalid TOML: {exc}")
        project = doc.get("project")
        if project is None:
            return ManifestCheck.missing()
        if not isinstance(project, dict):
            return ManifestCheck.invalid("[project] is not a table")
        name = project.get("name")
        if name is not None and not isinstance(name, str):
            return ManifestCheck.invalid("project.name: Input should be a valid string")
        version = project.get("version")
        if version is not None and not is_valid_version(str(version)):
            return ManifestCheck.invalid(
                f"project.version: '{version}' is not a semantic version"
            )
        return ManifestCheck(manifest=doc)

    @classmethod
    def version_from_text(cls, text: str) -> str | None:
        version = tomlkit.parse(text).get("project", {}).get("version")
        return str(version) if version is not None else None

    @property
    def _project_table(self) -> dict:
        return self.manifest.get("project", {})

    @property
    def package_name(self) -> str:
        """Canonical name from [project].name (PEP 503 normalized)."""
        name = self._project_table.get("name")
        return canonicalize_name(str(name)) if name else ""

    @property
    def version(self) -> str:
        """Version from [project].version, defaulting to '0.0.0'."""
        return str(self._project_table.get("version", DEFAULT_PACKAGE_VERSION))

    @property
    def private(self) -> bool:
        classifiers = self._project_table.get("classifiers", [])
        return PRIVATE_CLASSIFIER in [str(c) for c in classifiers]

    @property
    def workspace_globs(self) -> list[str]:
        return get_workspace_member_globs(self.manifest)

    def update_version(self, version: str) -> None:
        self.manifest["project"]["version"] = version
        save_pyproject(self.manifest_path, self.manifest)


def discover(cwd: Path, config: Configuration) -> Discovery:
    return Project.initialize(cwd, config, PythonWorkspace, PLUGIN_NAME)
