"""Hosting platform detection.

The upstream remote decides how commits are referenced in changelogs: hosted
platforms get a markdown link to the commit page, anything else gets the
plain short hash.
"""

from __future__ import annotations

import re

from .git import Git
from .models import Commit

_SSH_REMOTE = re.compile(r"^(?:ssh://)?[^@/]+@(?P<host>[^:/]+)[:/](?P<path>.+)$")
_HTTP_REMOTE = re.compile(r"^https?://(?:[^@/]+@)?(?P<host>[^/]+)/(?P<path>.+)$")


def web_url(remote_url: str) -> str | None:
    """Normalize a git remote URL to the repository's https web URL.

    Examples:
        "git@github.com:owner/repo.git" → "https://github.com/owner/repo"
        "https://github.com/owner/repo" → "https://github.com/owner/repo"
    """
    url = remote_url.strip()
    match = _HTTP_REMOTE.match(url) or _SSH_REMOTE.match(url)
    if not match:
        return None
    path = match.group("path").rstrip("/")
    path = path.removesuffix(".git")
    return f"https://{match.group('host')}/{path}"


class GitPlatform:
    """Base platform: no link capability."""

    name = "generic"

    def __init__(self, base_url: str | None = None) -> None:
        self.base_url = base_url

    @classmethod
    def matches(cls, remote_url: str) -> bool:
        return False

    def commit_url(self, commit: Commit) -> str | None:
        return None

    def render_commit(self, commit: Commit) -> str:
        """Render a commit reference for a changelog line."""
        url = self.commit_url(commit)
        if url is None:
            return commit.short_hash
        return f"[{commit.short_hash}]({url})"


class Generic(GitPlatform):
    pass


class Github(GitPlatform):
    name = "github"

    @classmethod
    def matches(cls, remote_url: str) -> bool:
        return "github.com" in remote_url

    def commit_url(self, commit: Commit) -> str | None:
        if not self.base_url:
            return None
        return f"{self.base_url}/commit/{commit.hash}"


class Gitlab(GitPlatform):
    name = "gitlab"

    @classmethod
    def matches(cls, remote_url: str) -> bool:
        return "gitlab.com" in remote_url

    def commit_url(self, commit: Commit) -> str | None:
        if not self.base_url:
            return None
        return f"{self.base_url}/-/commit/{commit.hash}"


# Checked in order; extend to support more hosts.
PLATFORMS: list[type[GitPlatform]] = [Github, Gitlab]


def classify_remote(remote_url: str) -> GitPlatform:
    """Pick the platform for a remote URL, falling back to Generic."""
    for platform_cls in PLATFORMS:
        if platform_cls.matches(remote_url):
            return platform_cls(web_url(remote_url))
    return Generic()


def resolve_platform(repo: Git) -> GitPlatform:
    """Classify the hosting platform of the branch's upstream remote."""
    remote_url = repo.remote_url(repo.remote())
    return classify_remote(remote_url)
