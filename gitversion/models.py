"""Data models for gitversion.

These Pydantic models represent the core data structures used throughout
the release pipeline. Records read from git are frozen: they are produced
once by the history reader and never modified afterwards.
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


class Commit(BaseModel):
    """A single commit read from ``git log``.

    Attributes:
        subject: First line of the commit message.
        body: Remainder of the commit message (may be empty).
        date: Committer date.
        hash: Full commit hash.
    """

    model_config = ConfigDict(frozen=True)

    subject: str
    body: str = ""
    date: dt.datetime
    hash: str

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


class Tag(BaseModel):
    """A git tag, as listed by ``git tag --list``.

    Attributes:
        name: Tag name (e.g., "v1.2.0" or "vpkg-a@1.0.0").
        hash: Object the tag points to, when known.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    hash: str | None = None


class VersionBump(BaseModel):
    """Records a version change for a package.

    Attributes:
        old: The version before bumping.
        new: The version after bumping.
    """

    old: str
    new: str


class ChangelogEntry(BaseModel):
    """One release section of a changelog.

    Commits are kept in chronological order; grouping by classification
    happens when the entry is rendered.
    """

    version: str
    date: dt.date
    commits: list[Commit] = Field(default_factory=list)


class ReleaseSet(BaseModel):
    """The outcome of a release run, handed to publish plugins.

    Attributes:
        branch: Branch the release was cut from (used as release channel).
        releases: Map of package name to its version change.
        tags: Tags created by the run, in creation order.
        commit: Hash of the release commit, once it exists.
    """

    branch: str
    releases: dict[str, VersionBump] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    commit: str | None = None
