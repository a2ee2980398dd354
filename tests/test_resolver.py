"""Tests for gitversion.resolver."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
import semver
from conftest import make_commit, write_json

from gitversion.config import Configuration
from gitversion.errors import ConfigurationError
from gitversion.models import Tag
from gitversion.plugins.node import NodeWorkspace
from gitversion.resolver import release_units, resolve_plans
from gitversion.versions import BumpType, FeatureBumpBehavior
from gitversion.workspace import Project


def discover(root: Path, config: Configuration) -> Project:
    return Project.initialize(root, config, NodeWorkspace, "node").project


class TestReleaseUnits:
    """Tests for release_units()."""

    def test_locked_mode_single_unit(self, node_repo: Path, config: Configuration) -> None:
        """Locked versioning puts every workspace in one unscoped unit."""
        project = discover(node_repo, config)

        units = release_units([project], config)

        assert len(units) == 1
        assert units[0].tag_prefix == "v"
        assert units[0].path_scope is None
        assert [ws.package_name for ws in units[0].workspaces] == ["root", "pkg-a", "pkg-b"]

    def test_independent_mode_unit_per_workspace(
        self, node_repo: Path, independent_config: Configuration
    ) -> None:
        """Independent versioning gives each workspace its own prefix and path."""
        project = discover(node_repo, independent_config)

        units = release_units([project], independent_config)

        assert [(u.tag_prefix, u.path_scope) for u in units] == [
            ("vroot@", "."),
            ("vpkg-a@", "packages/a"),
            ("vpkg-b@", "packages/b"),
        ]
        assert units[1].name == "pkg-a"

    def test_duplicate_prefix_across_projects(
        self, tmp_path: Path, independent_config: Configuration
    ) -> None:
        """Two workspaces that would share a tag prefix are rejected."""
        write_json(tmp_path / "one" / "package.json", {"name": "same", "version": "1.0.0"})
        write_json(tmp_path / "two" / "package.json", {"name": "same", "version": "1.0.0"})
        one = discover(tmp_path / "one", independent_config)
        two = discover(tmp_path / "two", independent_config)

        with pytest.raises(ConfigurationError, match="vsame@"):
            release_units([one, two], independent_config)

    def test_no_projects(self, config: Configuration) -> None:
        """Nothing discovered means nothing to resolve."""
        assert release_units([], config) == []


class TestResolvePlans:
    """Tests for resolve_plans()."""

    def test_locked_fix_and_feature(
        self, node_repo: Path, config: Configuration, mock_repo: MagicMock
    ) -> None:
        """The most severe commit decides the bump since the last tag."""
        project = discover(node_repo, config)
        mock_repo.version_tags.return_value = [Tag(name="v1.2.0", hash="c0ffee")]
        mock_repo.logs.return_value = [make_commit("fix: x"), make_commit("feat: y")]

        (plan,) = resolve_plans(mock_repo, [project], config)

        mock_repo.version_tags.assert_called_once_with("v")
        mock_repo.logs.assert_called_once_with("c0ffee", None)
        assert plan.bump == BumpType.MINOR
        assert str(plan.next_version) == "1.3.0"
        assert plan.tag_name == "v1.3.0"

    def test_no_commits_is_a_no_op(
        self, node_repo: Path, config: Configuration, mock_repo: MagicMock
    ) -> None:
        """Without commits since the tag nothing changes."""
        project = discover(node_repo, config)
        mock_repo.version_tags.return_value = [Tag(name="v1.2.0", hash="c0ffee")]

        (plan,) = resolve_plans(mock_repo, [project], config)

        assert not plan.changed
        assert plan.next_version is None
        assert plan.tag_name is None

    def test_without_tag_uses_manifest_version(
        self, node_repo: Path, config: Configuration, mock_repo: MagicMock
    ) -> None:
        """Without a tag the manifest version is the base and all history counts."""
        project = discover(node_repo, config)
        mock_repo.logs.return_value = [make_commit("fix: x")]

        (plan,) = resolve_plans(mock_repo, [project], config)

        mock_repo.logs.assert_called_once_with(None, None)
        assert plan.last_tag is None
        assert plan.current == semver.Version(1, 2, 0)
        assert plan.tag_name == "v1.2.1"

    def test_independent_uses_own_tags_and_paths(
        self, node_repo: Path, independent_config: Configuration, mock_repo: MagicMock
    ) -> None:
        """Each unit reads its own tags and the history of its own path."""
        project = discover(node_repo, independent_config)
        mock_repo.version_tags.return_value = [
            Tag(name="vpkg-a@2.0.0", hash="aaa"),
            Tag(name="vpkg-b@0.5.0", hash="bbb"),
        ]

        def logs(since, path):
            return [make_commit("feat: y")] if path == "packages/a" else []

        mock_repo.logs.side_effect = logs

        plans = resolve_plans(mock_repo, [project], independent_config)

        by_name = {p.unit.name: p for p in plans}
        assert by_name["pkg-a"].tag_name == "vpkg-a@2.1.0"
        assert not by_name["pkg-b"].changed
        assert by_name["pkg-b"].current == semver.Version(0, 5, 0)
        mock_repo.logs.assert_any_call("bbb", "packages/b")

    def test_conventional_behavior_below_1(
        self, tmp_path: Path, mock_repo: MagicMock
    ) -> None:
        """Features only bump the patch below 1.0.0 under the conventional policy."""
        config = Configuration(feature_bump_behavior=FeatureBumpBehavior.CONVENTIONAL)
        write_json(tmp_path / "package.json", {"name": "solo", "version": "0.3.0"})
        project = discover(tmp_path, config)
        mock_repo.version_tags.return_value = [Tag(name="v0.3.0", hash="abc")]
        mock_repo.logs.return_value = [make_commit("feat: y")]

        (plan,) = resolve_plans(mock_repo, [project], config)

        assert plan.tag_name == "v0.3.1"

    def test_ignores_non_semver_tags(
        self, node_repo: Path, config: Configuration, mock_repo: MagicMock
    ) -> None:
        """Tags whose remainder is not semver are skipped."""
        project = discover(node_repo, config)
        mock_repo.version_tags.return_value = [
            Tag(name="vnext", hash="xxx"),
            Tag(name="v1.1.0", hash="old"),
        ]
        mock_repo.logs.return_value = [make_commit("fix: x")]

        (plan,) = resolve_plans(mock_repo, [project], config)

        assert plan.last_tag.name == "v1.1.0"
        assert plan.tag_name == "v1.1.1"

    def test_without_tag_uses_committed_version(
        self, node_repo: Path, config: Configuration, mock_repo: MagicMock
    ) -> None:
        """A working tree bumped by an interrupted run does not raise the base again."""
        write_json(
            node_repo / "package.json",
            {"name": "root", "version": "1.2.1", "private": True, "workspaces": ["packages/*"]},
        )
        mock_repo.show_file.return_value = '{"name": "root", "version": "1.2.0"}'
        project = discover(node_repo, config)
        mock_repo.logs.return_value = [make_commit("fix: x")]

        (plan,) = resolve_plans(mock_repo, [project], config)

        mock_repo.show_file.assert_called_once_with("package.json")
        assert plan.current == semver.Version(1, 2, 0)
        assert plan.tag_name == "v1.2.1"

    def test_invalid_committed_version(
        self, node_repo: Path, config: Configuration, mock_repo: MagicMock
    ) -> None:
        """A committed version semver cannot parse is a configuration error."""
        mock_repo.show_file.return_value = '{"name": "root", "version": "1.0.0rc1"}'
        project = discover(node_repo, config)

        with pytest.raises(ConfigurationError, match="1.0.0rc1"):
            resolve_plans(mock_repo, [project], config)
