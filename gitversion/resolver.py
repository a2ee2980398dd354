"""Release unit resolution.

A release unit is the set of workspaces that share one version: every
workspace of every discovered project under locked versioning, or each
workspace on its own under independent versioning. For each unit we find
its last release tag, collect the commits made since, and derive the next
version from them.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

import semver

from .config import Configuration
from .errors import ConfigurationError
from .git import Git
from .models import Commit, Tag
from .versions import (
    BumpType,
    FeatureBumpBehavior,
    apply_bump,
    calculate_bump,
    latest_version_tag,
    parse_version,
)
from .workspace import Project, Workspace


@dataclass
class ReleaseUnit:
    """Workspaces released together under one tag prefix.

    Attributes:
        tag_prefix: Prefix of the unit's version tags.
        workspaces: Member workspaces; the first one supplies the base
                    version when no release tag exists yet.
        path_scope: Path that history is restricted to, or None for the
                    whole repository.
    """

    tag_prefix: str
    workspaces: list[Workspace]
    path_scope: str | None = None

    @property
    def name(self) -> str:
        if len(self.workspaces) == 1:
            return self.workspaces[0].package_name
        return self.tag_prefix or "<all>"


@dataclass
class ReleasePlan:
    """Resolved release decision for one unit."""

    unit: ReleaseUnit
    current: semver.Version
    last_tag: Tag | None = None
    commits: list[Commit] = field(default_factory=list)
    bump: BumpType | None = None

    @property
    def changed(self) -> bool:
        return self.bump is not None

    @property
    def next_version(self) -> semver.Version | None:
        if self.bump is None:
            return None
        return apply_bump(self.current, self.bump)

    @property
    def tag_name(self) -> str | None:
        if self.next_version is None:
            return None
        return f"{self.unit.tag_prefix}{self.next_version}"


def release_units(projects: Iterable[Project], config: Configuration) -> list[ReleaseUnit]:
    """Group discovered workspaces into release units.

    Raises:
        ConfigurationError: If independent versioning would give two
            workspaces the same tag prefix.
    """
    workspaces = [ws for project in projects for ws in project.workspaces]
    if not workspaces:
        return []

    if not config.independent_versioning:
        return [ReleaseUnit(config.version_tag_prefix, workspaces)]

    units: list[ReleaseUnit] = []
    seen: dict[str, Workspace] = {}
    for ws in workspaces:
        prefix = ws.tag_prefix
        if prefix in seen:
            raise ConfigurationError(
                f"Tag prefix '{prefix}' is used by both '{seen[prefix].relative_path}' "
                f"and '{ws.relative_path}'"
            )
        seen[prefix] = ws
        units.append(ReleaseUnit(prefix, [ws], path_scope=ws.relative_path))
    return units


def resolve_plan(
    repo: Git,
    unit: ReleaseUnit,
    tags: Iterable[Tag],
    behavior: FeatureBumpBehavior = FeatureBumpBehavior.ALWAYS,
) -> ReleasePlan:
    """Resolve the next version of one release unit.

    Without a prior release tag the committed manifest version is the base
    and the whole history counts.

    Raises:
        ConfigurationError: If that manifest version is not a semantic version.
    """
    found = latest_version_tag(tags, unit.tag_prefix)
    if found is not None:
        last_tag, current = found
        since = last_tag.hash or last_tag.name
    else:
        base = unit.workspaces[0]
        version = base.committed_version(repo)
        try:
            current = parse_version(version)
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid version '{version}' in {base.relative_path}/{base.manifest_file}"
            ) from exc
        last_tag, since = None, None

    commits = repo.logs(since, unit.path_scope)
    return ReleasePlan(
        unit=unit,
        current=current,
        last_tag=last_tag,
        commits=commits,
        bump=calculate_bump(commits, current, behavior),
    )


def resolve_plans(
    repo: Git, projects: Iterable[Project], config: Configuration
) -> list[ReleasePlan]:
    """Resolve every release unit against the tags reachable from HEAD."""
    tags = repo.version_tags(config.version_tag_prefix)
    return [
        resolve_plan(repo, unit, tags, config.feature_bump_behavior)
        for unit in release_units(projects, config)
    ]
