"""Release pipeline: discover → resolve → write → commit → tag → push → publish.

This module orchestrates a gitversion release:
1. Discover every build-system project and its workspaces
2. Resolve, per release unit, the last release tag and the next version
3. Update manifests and changelogs of the changed units
4. Commit the modified files in one release commit
5. Create one annotated tag per changed unit
6. Push the commit and tags
7. Run publish plugins

Every step up to the push is fatal on failure. Publishing runs after the
git state is pushed and never undoes it.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .changelog import CHANGELOG_FILE
from .config import Configuration, load_config, load_plugins
from .errors import PublishError
from .git import Git, repository_root
from .models import ChangelogEntry, Commit, ReleaseSet, VersionBump
from .platform import GitPlatform, resolve_platform
from .plugins import discover_projects
from .plugins.publish import PublishPlugin, run_publish_plugins
from .resolver import ReleasePlan, resolve_plans
from .shell import step, warn
from .workspace import Project, Workspace

RELEASE_COMMIT_SUBJECT = "chore(release): publish"


@dataclass
class ReleaseResult:
    """What a release run did.

    Attributes:
        release: Released packages and created tags.
        plans: Resolved plan of every release unit, changed or not.
        publish_failures: Publish plugins that failed.
    """

    release: ReleaseSet
    plans: list[ReleasePlan] = field(default_factory=list)
    publish_failures: list[PublishError] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.release.releases)


def discover_workspaces(cwd: Path, config: Configuration) -> list[Project]:
    """Discover all projects and print their workspaces."""
    step("Discovering workspaces")

    projects = discover_projects(cwd, config)
    if not projects:
        print("  <no supported manifest found>")
    for project in projects:
        for ws in project.workspaces:
            print(f"  [{project.plugin}] {ws.package_name} {ws.version} ({ws.relative_path})")
    return projects


def find_release_plans(
    repo: Git, projects: list[Project], config: Configuration
) -> list[ReleasePlan]:
    """Resolve the next version of every release unit."""
    step("Resolving versions")

    plans = resolve_plans(repo, projects, config)
    for plan in plans:
        last = plan.last_tag.name if plan.last_tag else "<none>"
        if plan.changed:
            print(
                f"  {plan.unit.name}: {plan.current} → {plan.next_version} "
                f"({len(plan.commits)} commits since {last})"
            )
        else:
            print(f"  {plan.unit.name}: no changes since {last}")
    return plans


def workspace_commits(repo: Git, plan: ReleasePlan, ws: Workspace) -> list[Commit]:
    """Commits to list in one workspace's changelog.

    A locked unit spans the whole repository; each of its workspaces
    only lists commits touching its own directory.
    """
    if plan.unit.path_scope is not None or ws.relative_path == ".":
        return plan.commits
    since = (plan.last_tag.hash or plan.last_tag.name) if plan.last_tag else None
    return repo.logs(since, ws.relative_path)


def update_workspaces(
    repo: Git,
    plans: Sequence[ReleasePlan],
    platform: GitPlatform,
    today: dt.date,
) -> tuple[dict[str, VersionBump], list[Path]]:
    """Write new versions and changelog entries for changed units.

    Returns:
        Tuple of (package name → version change, modified files).
    """
    step("Updating manifests and changelogs")

    bumps: dict[str, VersionBump] = {}
    files: list[Path] = []
    for plan in plans:
        if not plan.changed:
            continue
        new_version = str(plan.next_version)
        for ws in plan.unit.workspaces:
            bumps[ws.package_name] = VersionBump(old=ws.committed_version(repo), new=new_version)
            ws.update_version(new_version)
            entry = ChangelogEntry(
                version=new_version,
                date=today,
                commits=workspace_commits(repo, plan, ws),
            )
            files.extend([ws.manifest_path, ws.update_changelog(entry, platform)])
            print(f"  {ws.package_name}: {bumps[ws.package_name].old} → {new_version}")
    return bumps, files


def commit_release(
    repo: Git, bumps: dict[str, VersionBump], files: Sequence[Path]
) -> None:
    """Commit the modified manifests and changelogs."""
    step("Committing release")

    paths = sorted({_relative(repo, f) for f in files})
    summary = "\n".join(f"- {name}@{b.new}" for name, b in bumps.items())
    repo.add_and_commit_files(f"{RELEASE_COMMIT_SUBJECT}\n\n{summary}\n", paths)
    for path in paths:
        print(f"  {path}")


def tag_release(repo: Git, plans: Sequence[ReleasePlan]) -> list[str]:
    """Create one annotated tag per changed release unit."""
    step("Creating tags")

    tags: list[str] = []
    for plan in plans:
        if plan.tag_name is None:
            continue
        repo.add_tag(plan.tag_name, f"Release {plan.tag_name}")
        tags.append(plan.tag_name)
        print(f"  {plan.tag_name}")
    return tags


def push_release(repo: Git) -> None:
    step("Pushing commit and tags")
    remote = repo.remote()
    repo.push(remote)
    print(f"  → {remote}")


def unpushed_release_tags(repo: Git, config: Configuration) -> list[str] | None:
    """Detect a release that was committed and tagged but never pushed.

    Returns:
        Release tags on HEAD that the remote lacks (possibly empty when only
        the commit is missing), or None when nothing is pending.
    """
    local_tags = repo.head_tags(config.version_tag_prefix)
    ahead = repo.unpushed_commits()
    if not local_tags and not ahead:
        return None
    remote_tags = repo.remote_tags(repo.remote())
    missing = [tag for tag in local_tags if tag not in remote_tags]
    if not missing and not ahead:
        return None
    return missing


def publish_release(
    plugins: Sequence[PublishPlugin], release: ReleaseSet
) -> list[PublishError]:
    """Run publish plugins; failures are returned, not raised."""
    if not plugins:
        return []
    step(f"Publishing with {len(plugins)} plugins")
    return run_publish_plugins(plugins, release)


def _relative(repo: Git, path: Path) -> str:
    try:
        return path.resolve().relative_to(repo.cwd.resolve()).as_posix()
    except ValueError:
        return str(path)


def generated_files(projects: Sequence[Project]) -> set[str]:
    """File names written by a release run (manifests and changelogs)."""
    names = {CHANGELOG_FILE}
    for project in projects:
        names.update(ws.manifest_file for ws in project.workspaces)
    return names


def status_fingerprint(cwd: Path | str | None = None, config: Configuration | None = None) -> str:
    """Idempotency fingerprint of the repository, ignoring generated files."""
    root = Path(cwd) if cwd else repository_root()
    config = config or load_config(root)
    return Git(root).status_hash(generated_files(discover_projects(root, config)))


def reset_generated_files(cwd: Path | str | None = None, config: Configuration | None = None) -> list[str]:
    """Discard uncommitted manifest and changelog changes of all workspaces."""
    root = Path(cwd) if cwd else repository_root()
    config = config or load_config(root)
    repo = Git(root)
    projects = discover_projects(root, config)
    workspaces = [ws for project in projects for ws in project.workspaces]
    changelogs = [_relative(repo, ws.changelog_path) for ws in workspaces]
    manifests = [_relative(repo, ws.manifest_path) for ws in workspaces]
    repo.restore_files(changelogs)
    # Manifests are never deleted, only reverted.
    repo.restore_files(manifests, clean=False)
    return changelogs + manifests


def run_release(
    cwd: Path | str | None = None,
    *,
    dry_run: bool = False,
    config: Configuration | None = None,
    plugins: Sequence[PublishPlugin] | None = None,
    today: dt.date | None = None,
) -> ReleaseResult:
    """Execute the full release pipeline.

    Args:
        cwd: Repository root. Defaults to the root of the repository
             containing the current directory.
        dry_run: Resolve and print the plan without touching anything.
        config: Configuration; loaded from ``cwd`` when omitted.
        plugins: Publish plugins; instantiated from ``config`` when omitted.
        today: Release date written to changelogs. Defaults to today.

    Returns:
        The release result. ``result.changed`` is False when there was
        nothing to release.
    """
    root = Path(cwd) if cwd else repository_root()
    config = config or load_config(root)
    if plugins is None:
        plugins = load_plugins(config)
    repo = Git(root)

    # Phase 1: Resolve
    projects = discover_workspaces(root, config)
    plans = find_release_plans(repo, projects, config)
    branch = repo.current_branch()
    result = ReleaseResult(release=ReleaseSet(branch=branch), plans=plans)

    if not any(plan.changed for plan in plans):
        pending = None if dry_run else unpushed_release_tags(repo, config)
        if pending is None:
            step("Nothing to release")
            return result
        # An earlier run stopped after tagging; finish its push.
        push_release(repo)
        result.release.tags = pending
        result.release.commit = repo.current_commit()
        warn("Pushed an earlier unpushed release; publish plugins were not run for it")
        return result

    if dry_run:
        step("Dry run: no files, commits or tags were written")
        result.release.releases = {
            ws.package_name: VersionBump(
                old=ws.committed_version(repo), new=str(plan.next_version)
            )
            for plan in plans
            if plan.changed
            for ws in plan.unit.workspaces
        }
        result.release.tags = [p.tag_name for p in plans if p.tag_name]
        return result

    # Phase 2: Write, commit, tag, push
    platform = resolve_platform(repo)
    bumps, files = update_workspaces(repo, plans, platform, today or dt.date.today())
    commit_release(repo, bumps, files)
    tags = tag_release(repo, plans)
    push_release(repo)
    result.release.releases = bumps
    result.release.tags = tags
    result.release.commit = repo.current_commit()

    # Phase 3: Publish
    result.publish_failures = publish_release(plugins, result.release)

    print(f"\n{'=' * 60}\nDone!\n{'=' * 60}")
    return result
