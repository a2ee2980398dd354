"""Workspace model shared by all build-system plugins.

A Project is the repository root of one build system. It owns the root
workspace and an ordered, name-indexed collection of child workspaces that
were found by expanding the root manifest's workspace globs. Workspaces only
hold a weak reference back to their project, so ownership runs one way.

Build-system plugins subclass Workspace for their manifest format and get
discovery, tag prefixes and changelog handling from here.
"""

from __future__ import annotations

import glob
import weakref
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Union

from pydantic import BaseModel, Field

from .changelog import CHANGELOG_FILE, add_to_changelog
from .config import Configuration
from .errors import ConfigurationError, FilesystemError
from .git import Git
from .models import ChangelogEntry
from .platform import GitPlatform
from .shell import warn

DEFAULT_PACKAGE_VERSION = "0.0.0"


class ManifestCheck(BaseModel):
    """Outcome of loading and validating a manifest file.

    Attributes:
        found: False when the manifest file does not exist (or is not a
               package manifest for this build system).
        manifest: Validated manifest content, when valid.
        errors: Validation or parse errors, when invalid.
    """

    found: bool = True
    manifest: Any = None
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.found and not self.errors

    @classmethod
    def missing(cls) -> ManifestCheck:
        return cls(found=False)

    @classmethod
    def invalid(cls, *errors: str) -> ManifestCheck:
        return cls(errors=list(errors))


@dataclass(frozen=True)
class NotApplicable:
    """A build-system plugin does not apply to the repository."""

    plugin: str
    reason: str


@dataclass(frozen=True)
class Discovered:
    """A build-system plugin matched and produced a project."""

    project: Project


Discovery = Union[NotApplicable, Discovered]


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(f"Cannot read {path}: {exc}") from exc


def write_text(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(f"Cannot write {path}: {exc}") from exc


class Workspace(ABC):
    """A single package bound to one manifest file.

    Subclasses provide the manifest format: loading, the read accessors
    and rewriting the version field.
    """

    manifest_file: ClassVar[str]

    def __init__(self, project: Project, relative_path: str, manifest: Any) -> None:
        self._project = weakref.ref(project)
        self.relative_path = relative_path
        self.manifest = manifest
        if not self.package_name:
            raise ConfigurationError(
                f"Invalid manifest. Package at '{relative_path}' does not have a name"
            )

    @classmethod
    @abstractmethod
    def load(cls, folder: Path) -> ManifestCheck:
        """Load and validate the manifest in ``folder``."""

    @property
    @abstractmethod
    def package_name(self) -> str:
        """Package identity; never empty for a constructed workspace."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Manifest version, DEFAULT_PACKAGE_VERSION when not declared."""

    @property
    @abstractmethod
    def private(self) -> bool:
        """Whether the package opts out of publishing."""

    @property
    def workspace_globs(self) -> list[str]:
        """Child workspace patterns declared by this manifest."""
        return []

    @classmethod
    @abstractmethod
    def version_from_text(cls, text: str) -> str | None:
        """Version declared by manifest content, None when absent.

        Raises:
            ValueError: If the content cannot be parsed.
        """

    @abstractmethod
    def update_version(self, version: str) -> None:
        """Rewrite the version field of the manifest on disk."""

    def committed_version(self, repo: Git) -> str:
        """Manifest version as committed at HEAD.

        A rerun after an interrupted release finds the working-tree manifest
        already bumped; the committed one still holds the released base.
        Falls back to the working-tree version when the manifest is not
        committed or the committed content does not parse.
        """
        text = repo.show_file(Path(self.relative_path, self.manifest_file).as_posix())
        if not text:
            return self.version
        try:
            version = self.version_from_text(text)
        except ValueError:
            return self.version
        return version or DEFAULT_PACKAGE_VERSION

    @property
    def project(self) -> Project:
        project = self._project()
        if project is None:
            raise RuntimeError(f"Project of workspace '{self.relative_path}' no longer exists")
        return project

    @property
    def config(self) -> Configuration:
        return self.project.config

    @property
    def cwd(self) -> Path:
        return self.project.cwd / self.relative_path

    @property
    def manifest_path(self) -> Path:
        return self.cwd / self.manifest_file

    @property
    def changelog_path(self) -> Path:
        return self.cwd / CHANGELOG_FILE

    @property
    def tag_prefix(self) -> str:
        """Prefix of this workspace's release tags.

        Independent versioning gives every package its own tags
        (e.g., "vpkg-a@1.2.0"); locked versioning shares the global prefix.
        """
        if self.config.independent_versioning:
            return f"{self.config.version_tag_prefix}{self.package_name}@"
        return self.config.version_tag_prefix

    def update_changelog(
        self, entry: ChangelogEntry, platform: GitPlatform | None = None
    ) -> Path:
        """Merge ``entry`` into this workspace's CHANGELOG.md.

        Returns:
            Path of the changelog file.
        """
        changelog_file = self.changelog_path
        changelog = read_text(changelog_file) if changelog_file.exists() else ""
        write_text(changelog_file, add_to_changelog(entry, changelog, platform))
        return changelog_file

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.package_name!r}, {self.relative_path!r})"


class Project:
    """Root of one build system's workspace tree.

    Attributes:
        cwd: Repository root.
        config: Run configuration.
        plugin: Name of the build-system plugin that produced the project.
    """

    def __init__(self, cwd: Path, config: Configuration, plugin: str) -> None:
        self.cwd = cwd
        self.config = config
        self.plugin = plugin
        self._root: Workspace | None = None
        self._children: dict[str, Workspace] = {}

    @property
    def root(self) -> Workspace:
        if self._root is None:
            raise RuntimeError("Project root workspace has not been loaded")
        return self._root

    @property
    def child_workspaces(self) -> list[Workspace]:
        return list(self._children.values())

    @property
    def workspaces(self) -> list[Workspace]:
        """Root workspace first, then children in discovery order."""
        return [self.root, *self._children.values()]

    def get(self, package_name: str) -> Workspace | None:
        if self._root is not None and self._root.package_name == package_name:
            return self._root
        return self._children.get(package_name)

    def add_child(self, workspace: Workspace) -> None:
        if self.get(workspace.package_name) is not None:
            raise ConfigurationError(
                f"Duplicate package name '{workspace.package_name}' "
                f"at '{workspace.relative_path}'"
            )
        self._children[workspace.package_name] = workspace

    def expand_workspace_globs(self, patterns: list[str]) -> list[str]:
        """Expand workspace globs into relative directory paths.

        Matches are de-duplicated and sorted for deterministic order.
        """
        paths: set[str] = set()
        for pattern in patterns:
            for match in glob.glob(pattern, root_dir=self.cwd):
                if (self.cwd / match).is_dir():
                    paths.add(Path(match).as_posix())
        return sorted(paths)

    @classmethod
    def initialize(
        cls, cwd: Path | str, config: Configuration, workspace_cls: type[Workspace], plugin: str
    ) -> Discovery:
        """Discover the project rooted at ``cwd`` for one build system.

        1. A missing root manifest means the plugin does not apply.
        2. Workspace globs from the root manifest are expanded.
        3. Candidate manifests are loaded concurrently (read-only).
        4. Candidates that fail to load are skipped with a warning;
           private candidates are skipped silently.

        Raises:
            ConfigurationError: If the root manifest is invalid or any
                manifest lacks a package name.
        """
        root_dir = Path(cwd)
        check = workspace_cls.load(root_dir)
        if not check.found:
            return NotApplicable(plugin, f"no {workspace_cls.manifest_file} in {root_dir}")
        if not check.ok:
            raise ConfigurationError(
                f"Invalid {workspace_cls.manifest_file} in {root_dir}: {'; '.join(check.errors)}"
            )

        project = cls(root_dir, config, plugin)
        project._root = workspace_cls(project, ".", check.manifest)

        paths = [
            p for p in project.expand_workspace_globs(project.root.workspace_globs) if p != "."
        ]
        with ThreadPoolExecutor() as pool:
            checks = list(pool.map(lambda p: workspace_cls.load(root_dir / p), paths))

        for path, candidate in zip(paths, checks):
            if not candidate.found:
                continue
            if not candidate.ok:
                warn(
                    f"Skipping workspace '{path}': invalid {workspace_cls.manifest_file} "
                    f"({'; '.join(candidate.errors)})"
                )
                continue
            workspace = workspace_cls(project, path, candidate.manifest)
            if workspace.private:
                continue
            project.add_child(workspace)

        return Discovered(project)
