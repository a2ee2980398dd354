"""Changelog rendering and merging.

Each release adds one section to a workspace's CHANGELOG.md:

    ## 1.3.0 (2024-05-01)

    ### Features

    - feat: add y ([abc1234](https://github.com/owner/repo/commit/abc1234...))

Sections are keyed by version, so merging the same entry twice leaves the
file unchanged.
"""

from __future__ import annotations

import re

from .models import ChangelogEntry, Commit
from .platform import Generic, GitPlatform
from .versions import CommitKind, classify_commit

CHANGELOG_FILE = "CHANGELOG.md"
CHANGELOG_TITLE = "# Changelog"

GROUP_TITLES: dict[CommitKind, str] = {
    CommitKind.BREAKING: "Breaking Changes",
    CommitKind.FEATURE: "Features",
    CommitKind.FIX: "Bug Fixes",
    CommitKind.OTHER: "Other Changes",
}


def group_commits(commits: list[Commit]) -> dict[CommitKind, list[Commit]]:
    """Group commits by classification, keeping chronological order."""
    groups: dict[CommitKind, list[Commit]] = {kind: [] for kind in GROUP_TITLES}
    for commit in commits:
        groups[classify_commit(commit)].append(commit)
    return {kind: items for kind, items in groups.items() if items}


def section_header(version: str) -> str:
    return f"## {version}"


def render_entry(entry: ChangelogEntry, platform: GitPlatform | None = None) -> str:
    """Render a release section as markdown (without trailing newline)."""
    platform = platform or Generic()
    lines = [f"{section_header(entry.version)} ({entry.date.isoformat()})", ""]
    groups = group_commits(entry.commits)
    if not groups:
        lines.extend(["Version bump only.", ""])
    for kind, commits in groups.items():
        lines.extend([f"### {GROUP_TITLES[kind]}", ""])
        for commit in commits:
            lines.append(f"- {commit.subject} ({platform.render_commit(commit)})")
        lines.append("")
    return "\n".join(lines).rstrip("\n")


def has_version(changelog: str, version: str) -> bool:
    """Check whether the changelog already has a section for ``version``."""
    pattern = rf"^{re.escape(section_header(version))}(?:\s|$)"
    return re.search(pattern, changelog, re.MULTILINE) is not None


def add_to_changelog(
    entry: ChangelogEntry, changelog: str, platform: GitPlatform | None = None
) -> str:
    """Merge ``entry`` into existing changelog text.

    The new section goes directly below the leading ``# `` title, above
    older releases. An empty changelog gets a title first.

    Returns:
        Updated changelog text, identical to the input when the version is
        already present.
    """
    if has_version(changelog, entry.version):
        return changelog

    section = render_entry(entry, platform)
    body = changelog.strip("\n")
    if not body:
        return f"{CHANGELOG_TITLE}\n\n{section}\n"

    if body.startswith("# "):
        title, _, rest = body.partition("\n")
        rest = rest.strip("\n")
        parts = [title, section] + ([rest] if rest else [])
    else:
        parts = [section, body]
    return "\n\n".join(parts) + "\n"
