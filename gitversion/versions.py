"""Version parsing, commit classification and bump calculation.

Handles conversion between version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0"),
and maps conventional-commit subjects to the severity of the bump they
require.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum, IntEnum

import semver

from .models import Commit, Tag

# type(scope)!: description
_CONVENTIONAL = re.compile(r"^(?P<type>[A-Za-z][\w ]*?)(?:\((?P<scope>[^)]*)\))?(?P<bang>!)?:\s")
_BREAKING_FOOTER = re.compile(r"^BREAKING[ -]CHANGE:", re.MULTILINE)

_BREAKING_TYPES = {"breaking", "breaking change", "breaking-change"}
_FEATURE_TYPES = {"feat", "feature"}
_FIX_TYPES = {"fix", "bugfix", "hotfix"}


class FeatureBumpBehavior(str, Enum):
    """Whether feature commits bump the minor version before 1.0.0."""

    ALWAYS = "always"
    CONVENTIONAL = "conventional"


class BumpType(IntEnum):
    """Bump severity; compares by how disruptive the release is."""

    PATCH = 1
    MINOR = 2
    MAJOR = 3


class CommitKind(str, Enum):
    BREAKING = "breaking"
    FEATURE = "feature"
    FIX = "fix"
    OTHER = "other"


SEVERITY: dict[CommitKind, BumpType] = {
    CommitKind.BREAKING: BumpType.MAJOR,
    CommitKind.FEATURE: BumpType.MINOR,
    CommitKind.FIX: BumpType.PATCH,
    CommitKind.OTHER: BumpType.PATCH,
}


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    Only the first 3 components are used (major.minor.patch).
    Prerelease/build metadata is not supported.
    """
    parts = version_str.split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]))


def is_valid_version(version_str: str) -> bool:
    """Check whether ``parse_version`` accepts ``version_str``.

    PEP 440 forms such as "1.0.0rc1" are rejected.
    """
    try:
        parse_version(version_str)
    except ValueError:
        return False
    return True


def tag_version(tag: Tag, prefix: str) -> semver.Version | None:
    """Extract the version from a tag name carrying ``prefix``.

    Only a strict semver remainder counts, so "vpkg-a@1.0.0" is not a
    version tag for prefix "v".
    """
    if not tag.name.startswith(prefix):
        return None
    try:
        return semver.Version.parse(tag.name[len(prefix) :])
    except ValueError:
        return None


def latest_version_tag(
    tags: Iterable[Tag], prefix: str
) -> tuple[Tag, semver.Version] | None:
    """Find the tag with the highest version for ``prefix``.

    Returns:
        The tag and its parsed version, or None when no tag matches.
    """
    best: tuple[Tag, semver.Version] | None = None
    for tag in tags:
        version = tag_version(tag, prefix)
        if version is not None and (best is None or version > best[1]):
            best = (tag, version)
    return best


def classify_commit(commit: Commit) -> CommitKind:
    """Classify a commit from its conventional-commit prefix.

    Examples:
        "feat(api)!: drop v1" → BREAKING
        "breaking change: z" → BREAKING
        "feat: y" → FEATURE
        "fix: x" → FIX
        "Update README" → OTHER
    """
    if _BREAKING_FOOTER.search(commit.body):
        return CommitKind.BREAKING
    match = _CONVENTIONAL.match(commit.subject)
    if not match:
        return CommitKind.OTHER
    if match.group("bang"):
        return CommitKind.BREAKING
    commit_type = match.group("type").strip().lower()
    if commit_type in _BREAKING_TYPES:
        return CommitKind.BREAKING
    if commit_type in _FEATURE_TYPES:
        return CommitKind.FEATURE
    if commit_type in _FIX_TYPES:
        return CommitKind.FIX
    return CommitKind.OTHER


def calculate_bump(
    commits: Iterable[Commit],
    current: semver.Version,
    behavior: FeatureBumpBehavior = FeatureBumpBehavior.ALWAYS,
) -> BumpType | None:
    """Compute the smallest bump that covers every commit.

    Args:
        commits: Commits since the last release.
        current: Version being bumped; decides feature demotion below 1.0.0.
        behavior: Feature bump policy.

    Returns:
        The bump type, or None when there are no commits.
    """
    severities = [SEVERITY[classify_commit(c)] for c in commits]
    if not severities:
        return None
    bump = max(severities)
    if (
        bump == BumpType.MINOR
        and behavior == FeatureBumpBehavior.CONVENTIONAL
        and current.major == 0
    ):
        bump = BumpType.PATCH
    return bump


def apply_bump(version: semver.Version, bump: BumpType) -> semver.Version:
    if bump == BumpType.MAJOR:
        return version.bump_major()
    if bump == BumpType.MINOR:
        return version.bump_minor()
    return version.bump_patch()
