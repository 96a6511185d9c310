"""End-to-end release preparation against real git repositories."""

from __future__ import annotations

import json
from pathlib import Path

from relprep.core.result import Err, Ok
from relprep.output.console import MockConsole
from relprep.services.release.semver import parse_version
from relprep.services.release.workflow import ReleaseManager

from relprep.test.gitrepo import git, init_repo, requires_git, version_json


def _version_on(root: Path, branch: str, path: str = "version.json") -> str:
    return json.loads(git(root, "show", f"{branch}:{path}"))["version"]


@requires_git
class TestPrepareRelease:
    def test_cuts_release_branch_and_advances_main(
        self, tmp_path: Path, git_home: Path
    ) -> None:
        root = init_repo(tmp_path / "repo", {"version.json": version_json("1.0-beta")})
        console = MockConsole()

        result = ReleaseManager(console).prepare_release(root)

        assert isinstance(result, Ok), console.text
        assert git(root, "rev-parse", "--abbrev-ref", "HEAD") == "main"
        assert _version_on(root, "v1.0") == "1.0"
        assert _version_on(root, "main") == "1.1-alpha"
        assert git(root, "log", "-1", "--format=%s", "v1.0") == "Set version to '1.0'"

        parents = git(root, "rev-list", "--parents", "-n", "1", "HEAD").split()
        assert parents[2] == git(root, "rev-parse", "v1.0")
        assert git(root, "log", "-1", "--format=%s", "HEAD~1") == "Set version to '1.1-alpha'"
        # The merge keeps main's version file untouched.
        assert git(root, "diff", "HEAD~1", "HEAD", "--", "version.json") == ""

        info = result.value
        assert info.current_branch.commit == git(root, "rev-parse", "HEAD")
        assert info.new_branch is not None
        assert info.new_branch.commit == git(root, "rev-parse", "v1.0")
        assert git(root, "status", "--porcelain") == ""

    def test_nested_project_and_schema_property(self, tmp_path: Path, git_home: Path) -> None:
        root = init_repo(
            tmp_path / "repo",
            {
                "version.json": version_json("3.1-beta", branchName="release/v{version}"),
                "src/lib/code.py": "pass\n",
            },
        )

        result = ReleaseManager(MockConsole()).prepare_release(root / "src" / "lib")

        assert isinstance(result, Ok)
        assert _version_on(root, "release/v3.1") == "3.1"
        data = json.loads((root / "version.json").read_text(encoding="utf-8"))
        assert "$schema" in data
        assert data["release"] == {"branchName": "release/v{version}"}

    def test_rerun_on_release_branch_is_idempotent(self, tmp_path: Path, git_home: Path) -> None:
        root = init_repo(tmp_path / "repo", {"version.json": version_json("1.0-beta")})
        manager = ReleaseManager(MockConsole())
        assert isinstance(manager.prepare_release(root), Ok)
        git(root, "checkout", "--quiet", "v1.0")
        tip = git(root, "rev-parse", "HEAD")

        result = manager.prepare_release(root)

        assert isinstance(result, Ok)
        assert result.value.new_branch is None
        assert git(root, "rev-parse", "HEAD") == tip

    def test_release_branch_with_tag(self, tmp_path: Path, git_home: Path) -> None:
        root = init_repo(tmp_path / "repo", {"version.json": version_json("2.0-beta")})
        git(root, "checkout", "--quiet", "-b", "v2.0")

        result = ReleaseManager(MockConsole()).prepare_release(root, release_unstable_tag="rc")

        assert isinstance(result, Ok)
        assert _version_on(root, "v2.0") == "2.0-rc"
        assert result.value.current_branch.version == parse_version("2.0-rc")

    def test_user_not_configured(self, tmp_path: Path, git_home: Path) -> None:
        root = init_repo(
            tmp_path / "repo", {"version.json": version_json("1.0")}, configure_user=False
        )

        result = ReleaseManager(MockConsole()).prepare_release(root)

        assert isinstance(result, Err)
        assert result.error.kind == "user_not_configured"
        assert git(root, "branch", "--list", "v1.0") == ""

    def test_uncommitted_changes(self, tmp_path: Path, git_home: Path) -> None:
        root = init_repo(tmp_path / "repo", {"version.json": version_json("1.0")})
        (root / "version.json").write_text(version_json("1.1"), encoding="utf-8")

        result = ReleaseManager(MockConsole()).prepare_release(root)

        assert isinstance(result, Err)
        assert result.error.kind == "uncommitted_changes"

    def test_not_a_repository(self, tmp_path: Path, git_home: Path) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()

        result = ReleaseManager(MockConsole()).prepare_release(plain)

        assert isinstance(result, Err)
        assert result.error.kind == "no_git_repo"

    def test_empty_branch_name_setting_is_rejected(self, tmp_path: Path, git_home: Path) -> None:
        root = init_repo(
            tmp_path / "repo", {"version.json": version_json("1.0-beta", branchName="")}
        )
        console = MockConsole()

        result = ReleaseManager(console).prepare_release(root)

        assert isinstance(result, Err)
        assert result.error.kind == "invalid_branch_name_setting"
        assert console.errors == [
            "error: Invalid 'branchName' setting ''. Missing version placeholder '{version}'."
        ]
        assert git(root, "branch", "--list") == "* main"

    def test_empty_first_unstable_tag_gives_untagged_next_version(
        self, tmp_path: Path, git_home: Path
    ) -> None:
        root = init_repo(
            tmp_path / "repo", {"version.json": version_json("1.0-beta", firstUnstableTag="")}
        )

        result = ReleaseManager(MockConsole()).prepare_release(root)

        assert isinstance(result, Ok)
        assert _version_on(root, "main") == "1.1"
        assert _version_on(root, "v1.0") == "1.0"

    def test_version_file_above_repository_is_ignored(
        self, tmp_path: Path, git_home: Path
    ) -> None:
        (tmp_path / "version.json").write_text(version_json("1.0-beta"), encoding="utf-8")
        root = init_repo(tmp_path / "repo")
        console = MockConsole()

        result = ReleaseManager(console).prepare_release(root)

        assert isinstance(result, Err)
        assert result.error.kind == "no_version_file"
        assert git(root, "branch", "--list") == "* main"
        assert git(root, "rev-list", "--count", "HEAD") == "1"
