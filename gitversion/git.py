"""Git history access.

Reads commits and tags through ``git`` subprocess calls. Output formats
embed two UUID sentinels, one between fields and one after each record, so
that commit bodies containing newlines (or anything else) cannot be confused
with record boundaries.
"""

from __future__ import annotations

import base64
import hashlib
import os
import re
from collections.abc import Iterable
from pathlib import Path

from .models import Commit, Tag
from .shell import git

FIELD_DELIMITER = "E2B4D2F3-B7AF-4377-BF0F-D81F4E0723F3"
RECORD_DELIMITER = "25B7DA41-228B-4679-B2A2-86E328D3C3DE"

_TRAILING_RECORD = re.compile(rf"{RECORD_DELIMITER}\r?\n?$")

# CI systems check out a detached HEAD and expose the branch name instead.
BRANCH_ENV_VARS = ("BUILD_SOURCEBRANCHNAME", "CI_COMMIT_BRANCH")

SKIP_CI_MARKER = "[skip ci]"


def split_records(output: str) -> list[list[str]]:
    """Split delimiter-protocol output into records of fields.

    Empty records (e.g., what remains after the final record delimiter)
    are dropped.
    """
    records: list[list[str]] = []
    for entry in _TRAILING_RECORD.sub("", output).split(RECORD_DELIMITER):
        if not entry.strip():
            continue
        records.append(entry.split(FIELD_DELIMITER))
    return records


def parse_commits(output: str) -> list[Commit]:
    """Parse ``git log`` output produced with the commit format string."""
    commits: list[Commit] = []
    for fields in split_records(output):
        if len(fields) != 4:
            continue
        subject, date, hash_, body = (f.strip() for f in fields)
        if not hash_:
            continue
        commits.append(Commit(subject=subject, date=date, hash=hash_, body=body))
    return commits


def parse_tags(output: str) -> list[Tag]:
    """Parse ``git tag --list`` output produced with the tag format string."""
    tags: list[Tag] = []
    for fields in split_records(output):
        if len(fields) != 2:
            continue
        hash_, name = (f.strip() for f in fields)
        if name:
            tags.append(Tag(name=name, hash=hash_ or None))
    return tags


def repository_root(cwd: Path | str | None = None) -> Path:
    """Top-level directory of the repository containing ``cwd``.

    Raises:
        ExternalProcessError: If ``cwd`` is not inside a git repository.
    """
    return Path(git("rev-parse", "--show-toplevel", cwd=cwd))


class Git:
    """Git operations bound to a working directory."""

    def __init__(self, cwd: Path | str) -> None:
        self.cwd = Path(cwd)

    def _git(self, *args: str, check: bool = True) -> str:
        return git(*args, cwd=self.cwd, check=check)

    def logs(
        self, since_hash: str | None = None, relative_cwd: str | None = None
    ) -> list[Commit]:
        """List commits, oldest first.

        Args:
            since_hash: Only return commits after this revision (exclusive).
            relative_cwd: Restrict history to this path.

        Returns:
            Commits in chronological order.
        """
        fmt = f"--format=format:%s{FIELD_DELIMITER}%cI{FIELD_DELIMITER}%H{FIELD_DELIMITER}%b{RECORD_DELIMITER}"
        args = ["log", "--reverse", fmt]
        if since_hash:
            args.append(f"{since_hash}..")
        if relative_cwd:
            args.extend(["--", relative_cwd])
        return parse_commits(self._git(*args))

    def version_tags(self, prefix: str = "v") -> list[Tag]:
        """List tags starting with ``prefix`` that are merged into HEAD."""
        args = [
            "tag",
            "--list",
            "--merged=HEAD",
            f"--format=%(objectname){FIELD_DELIMITER}%(refname:strip=2){RECORD_DELIMITER}",
            f"{prefix}*",
        ]
        return parse_tags(self._git(*args))

    def add_tag(self, tag: str, message: str) -> None:
        """Create an annotated tag on HEAD."""
        self._git("tag", "-a", tag, "-m", message)

    def add_and_commit_files(self, message: str, files: Iterable[str]) -> None:
        """Stage ``files`` and commit only them.

        The message is marked so CI does not start another release run for
        the release commit itself.
        """
        paths = list(files)
        subject, sep, body = message.strip().partition("\n")
        self._git("add", "--", *paths)
        self._git("commit", "-m", f"{subject} {SKIP_CI_MARKER}{sep}{body}", "--", *paths)

    def current_commit(self) -> str:
        """Full hash of HEAD."""
        return self._git("rev-parse", "--verify", "HEAD")

    def push(self, remote: str = "origin") -> None:
        """Push the current branch along with annotated tags."""
        self._git("push", remote, "--follow-tags")

    def show_file(self, path: str, rev: str = "HEAD") -> str:
        """Content of ``path`` (relative to cwd) at ``rev``.

        Returns an empty string when the file does not exist at ``rev``.
        """
        return self._git("show", f"{rev}:./{path}", check=False)

    def unpushed_commits(self) -> int:
        """Number of commits on HEAD missing from the upstream branch.

        Zero when the branch tracks nothing.
        """
        count = self._git("rev-list", "--count", "@{u}..HEAD", check=False)
        return int(count) if count.isdigit() else 0

    def head_tags(self, prefix: str = "v") -> list[str]:
        """Tags starting with ``prefix`` that point at HEAD."""
        output = self._git("tag", "--list", "--points-at", "HEAD", f"{prefix}*")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def remote_tags(self, remote: str) -> set[str]:
        """Tag names present on ``remote``."""
        output = self._git("ls-remote", "--tags", remote)
        names: set[str] = set()
        for line in output.splitlines():
            _, _, ref = line.partition("\t")
            if ref.startswith("refs/tags/"):
                names.add(ref[len("refs/tags/") :].removesuffix("^{}"))
        return names

    def current_branch(self) -> str:
        """Name of the branch being released.

        CI-provided variables win over ``git rev-parse`` because CI runners
        usually check out a detached HEAD.
        """
        for var in BRANCH_ENV_VARS:
            value = os.environ.get(var)
            if value:
                return value
        return self._git("rev-parse", "--abbrev-ref", "HEAD")

    def upstream_remote(self) -> str | None:
        """Remote tracked by the current branch, or None if it tracks nothing."""
        upstream = self._git(
            "rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}", check=False
        )
        if not upstream:
            return None
        return upstream.split("/", 1)[0]

    def remote(self) -> str:
        return self.upstream_remote() or "origin"

    def remote_url(self, remote: str) -> str:
        """URL of ``remote``, empty when the remote is not configured."""
        return self._git("config", "--get", f"remote.{remote}.url", check=False)

    def status_hash(self, generated_files: Iterable[str]) -> str:
        """Fingerprint the repository state, ignoring generated files.

        Combines the HEAD commit with ``git status --porcelain``, dropping
        status lines that mention any of ``generated_files`` (manifests,
        changelogs) so that a rerun after writing them yields the same value.

        Returns:
            Base64-encoded sha256 digest.
        """
        names = tuple(generated_files)
        commit = self._git("rev-parse", "--revs-only", "HEAD")
        status = self._git("status", "--porcelain")
        cleaned = "\n".join(
            line for line in status.split("\n") if not any(n in line for n in names)
        )
        digest = hashlib.sha256()
        digest.update(commit.encode())
        digest.update(cleaned.encode())
        return base64.b64encode(digest.digest()).decode()

    def restore_files(self, files: Iterable[str], *, clean: bool = True) -> None:
        """Discard working-tree changes to ``files``.

        Tracked files are checked out from the index. Untracked ones are
        removed with ``git clean`` unless ``clean`` is False.
        """
        paths = list(files)
        if not paths:
            return
        tracked = self._git("ls-files", "--", *paths).splitlines()
        if clean:
            self._git("clean", "-f", "--", *paths)
        if tracked:
            self._git("checkout", "--", *tracked)
