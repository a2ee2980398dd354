"""Shared test fixtures."""

from __future__ import annotations

import datetime as dt
import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gitversion.config import Configuration
from gitversion.git import BRANCH_ENV_VARS, Git
from gitversion.models import Commit


def make_commit(subject: str, hash_: str = "a" * 40, body: str = "", day: int = 1) -> Commit:
    return Commit(
        subject=subject,
        body=body,
        hash=hash_,
        date=dt.datetime(2024, 1, day, 12, 0, tzinfo=dt.timezone.utc),
    )


def write_json(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n")
    return path


def run_git(cwd: Path, *args: str) -> str:
    """Run git for test setup, failing loudly."""
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def install_hook(repo: Path, name: str) -> Path:
    """Install a git hook that always fails."""
    hook = repo / ".git" / "hooks" / name
    hook.parent.mkdir(parents=True, exist_ok=True)
    hook.write_text("#!/bin/sh\nexit 1\n")
    hook.chmod(0o755)
    return hook


@pytest.fixture
def config() -> Configuration:
    return Configuration()


@pytest.fixture
def independent_config() -> Configuration:
    return Configuration(independent_versioning=True)


@pytest.fixture
def node_repo(tmp_path: Path) -> Path:
    """A node monorepo with two public packages and one private one."""
    write_json(
        tmp_path / "package.json",
        {"name": "root", "version": "1.2.0", "private": True, "workspaces": ["packages/*"]},
    )
    write_json(tmp_path / "packages" / "a" / "package.json", {"name": "pkg-a", "version": "1.2.0"})
    write_json(tmp_path / "packages" / "b" / "package.json", {"name": "pkg-b", "version": "1.2.0"})
    write_json(
        tmp_path / "packages" / "internal" / "package.json",
        {"name": "internal", "version": "0.1.0", "private": True},
    )
    return tmp_path


@pytest.fixture
def mock_repo(tmp_path: Path) -> MagicMock:
    """Create a mock Git bound to tmp_path."""
    repo = MagicMock(spec=Git)
    repo.cwd = tmp_path
    repo.version_tags.return_value = []
    repo.logs.return_value = []
    repo.current_branch.return_value = "main"
    repo.remote.return_value = "origin"
    repo.show_file.return_value = ""
    repo.head_tags.return_value = []
    repo.unpushed_commits.return_value = 0
    repo.remote_tags.return_value = set()
    repo.current_commit.return_value = "e" * 40
    return repo


@pytest.fixture
def git_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate real git calls from user and CI configuration."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / ".gitconfig"))
    for var in ("AUTHOR", "COMMITTER"):
        monkeypatch.setenv(f"GIT_{var}_NAME", "Release Bot")
        monkeypatch.setenv(f"GIT_{var}_EMAIL", "release@example.com")
    for var in BRANCH_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def git_repo(tmp_path: Path, git_env: None) -> Path:
    """A real clone of a bare remote: package.json at 1.0.0, no tags, pushed."""
    remote = tmp_path / "remote.git"
    work = tmp_path / "work"
    run_git(tmp_path, "init", "--bare", "-b", "main", str(remote))
    run_git(tmp_path, "init", "-b", "main", str(work))
    write_json(work / "package.json", {"name": "app", "version": "1.0.0"})
    run_git(work, "add", "package.json")
    run_git(work, "commit", "-m", "fix: initial import")
    run_git(work, "remote", "add", "origin", str(remote))
    run_git(work, "push", "-u", "origin", "main")
    return work


@pytest.fixture
def released_git_repo(git_repo: Path) -> Path:
    """``git_repo`` released as v1.0.0 (pushed), plus one local feature commit."""
    run_git(git_repo, "tag", "-a", "v1.0.0", "-m", "Release v1.0.0")
    run_git(git_repo, "push", "origin", "v1.0.0")
    (git_repo / "src").mkdir()
    (git_repo / "src" / "index.js").write_text("module.exports = 1;\n")
    run_git(git_repo, "add", "src/index.js")
    run_git(git_repo, "commit", "-m", "feat: y")
    return git_repo
