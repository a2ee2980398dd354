"""gitversion: semantic versions, changelogs and tags from git history."""

from __future__ import annotations

from .config import Configuration, load_config
from .errors import (
    ConfigurationError,
    ExternalProcessError,
    FilesystemError,
    GitVersionError,
    PublishError,
)
from .models import ChangelogEntry, Commit, ReleaseSet, Tag, VersionBump
from .pipeline import ReleaseResult, run_release

__all__ = [
    "ChangelogEntry",
    "Commit",
    "Configuration",
    "ConfigurationError",
    "ExternalProcessError",
    "FilesystemError",
    "GitVersionError",
    "PublishError",
    "ReleaseResult",
    "ReleaseSet",
    "Tag",
    "VersionBump",
    "load_config",
    "run_release",
]
