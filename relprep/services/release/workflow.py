"""Release preparation.

Given a project directory on a development branch (say `main` at
1.2-beta), `ReleaseManager.prepare_release`:

1. creates the release branch (`v1.2`) and sets it to 1.2,
2. moves `main` to the next development version (1.3-alpha),
3. merges `v1.2` back into `main`, keeping main's side of conflicting hunks
   so the version file stays at 1.3-alpha.

Run from the release branch itself, it only stabilizes that branch's
version in place.

Nothing is rolled back on failure: steps already committed stay committed.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from relprep.core.result import Err, Ok, Result
from relprep.git.repository import Signature, open_repository
from relprep.output.console import ConsoleProtocol
from relprep.services.release.branch_name import resolve_release_branch_name
from relprep.services.release.errors import ReleaseErrorKind, ReleasePreparationError
from relprep.services.release.gateways import (
    RepositoryGateway,
    RepositoryOpener,
    VersionFileGateway,
)
from relprep.services.release.model import ReleaseBranchInfo, ReleaseInfo, VersionOptions
from relprep.services.release.semver import SemanticVersion
from relprep.services.release.updater import VersionUpdater, resolve_signature
from relprep.services.release.version_file import VersionFiles


def _now() -> datetime:
    return datetime.now().astimezone()


class ReleaseManager:
    """Prepares releases: creates or advances release branches."""

    def __init__(
        self,
        console: ConsoleProtocol,
        *,
        open_repo: RepositoryOpener = open_repository,
        version_files: VersionFileGateway | None = None,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self._console = console
        self._open_repo = open_repo
        self._version_files: VersionFileGateway = version_files or VersionFiles()
        self._clock = clock
        self._updater = VersionUpdater(console, self._version_files, clock)

    def prepare_release(
        self,
        project_dir: Path,
        release_unstable_tag: str | None = None,
        next_version: SemanticVersion | None = None,
    ) -> Result[ReleaseInfo, ReleasePreparationError]:
        """Prepare a release for the version governing `project_dir`.

        Args:
            project_dir: Directory whose version file (or an ancestor's)
                defines the version.
            release_unstable_tag: Prerelease tag for the release branch
                ("rc" or "-rc"). None removes the prerelease entirely.
            next_version: Version for the development branch. None derives
                it from the version file's release settings. Ignored when
                already on the release branch.
        """
        repo = self._open_validated_repository(project_dir)
        if isinstance(repo, Err):
            return repo
        repository = repo.value

        options = self._version_files.load_from_repository(repository, project_dir)
        if options is None:
            return self._fail(
                "no_version_file",
                f"Failed to load version file for directory '{project_dir}'.",
            )

        current_version = options.version
        release_version = (
            current_version.set_first_prerelease_tag(release_unstable_tag)
            if release_unstable_tag
            else current_version.without_prerelease_tags()
        )

        branch_name = resolve_release_branch_name(options.release.branch_name, current_version)
        if isinstance(branch_name, Err):
            self._console.error(branch_name.error.message)
            return branch_name
        release_branch = branch_name.value
        original_branch = repository.head().name

        if original_branch.casefold() == release_branch.casefold():
            return self._advance_release_branch(
                project_dir, repository, original_branch, current_version, release_version
            )

        if repository.branch_exists(release_branch):
            return self._fail(
                "branch_already_exists",
                f"Cannot create branch '{release_branch}' because it already exists.",
            )

        next_dev = self._next_dev_version(options, next_version)
        if isinstance(next_dev, Err):
            return next_dev

        return self._create_release_branch(
            project_dir,
            repository,
            original_branch=original_branch,
            release_branch=release_branch,
            current_version=current_version,
            release_version=release_version,
            next_dev_version=next_dev.value,
        )

    def _open_validated_repository(
        self, project_dir: Path
    ) -> Result[RepositoryGateway, ReleasePreparationError]:
        repository = self._open_repo(project_dir)
        if repository is None:
            return self._fail(
                "no_git_repo", f"No git repository found above directory '{project_dir}'."
            )

        if repository.head().is_detached:
            return self._fail(
                "detached_head",
                "Detached head. Check out a branch first.",
            )

        if repository.is_dirty():
            return self._fail(
                "uncommitted_changes",
                f"Uncommitted changes in directory '{project_dir}'.",
            )

        signature = self._signature(repository)
        if isinstance(signature, Err):
            return signature
        return Ok(repository)

    def _advance_release_branch(
        self,
        project_dir: Path,
        repository: RepositoryGateway,
        branch: str,
        current_version: SemanticVersion,
        release_version: SemanticVersion,
    ) -> Result[ReleaseInfo, ReleasePreparationError]:
        updated = self._updater.update_version(
            project_dir, repository, current_version, release_version
        )
        if isinstance(updated, Err):
            return updated
        self._console.success(
            f"{branch} branch advanced from {current_version} to {release_version}."
        )
        return Ok(
            ReleaseInfo(
                current_branch=ReleaseBranchInfo(
                    name=branch,
                    commit=repository.head_commit() or "",
                    version=release_version,
                )
            )
        )

    def _create_release_branch(
        self,
        project_dir: Path,
        repository: RepositoryGateway,
        *,
        original_branch: str,
        release_branch: str,
        current_version: SemanticVersion,
        release_version: SemanticVersion,
        next_dev_version: SemanticVersion,
    ) -> Result[ReleaseInfo, ReleasePreparationError]:
        created = repository.create_branch(release_branch)
        if isinstance(created, Err):
            return self._fail("git_failed", created.error.message)
        checked_out = repository.checkout(release_branch)
        if isinstance(checked_out, Err):
            return self._fail("git_failed", checked_out.error.message)

        updated = self._updater.update_version(
            project_dir, repository, current_version, release_version
        )
        if isinstance(updated, Err):
            return updated
        release_commit = repository.head_commit() or ""
        self._console.success(
            f"{release_branch} branch now tracks v{release_version} stabilization and release."
        )

        checked_out = repository.checkout(original_branch)
        if isinstance(checked_out, Err):
            return self._fail("git_failed", checked_out.error.message)

        updated = self._updater.update_version(
            project_dir, repository, current_version, next_dev_version
        )
        if isinstance(updated, Err):
            return updated
        self._console.success(
            f"{original_branch} branch now tracks v{next_dev_version} development."
        )

        signature = self._signature(repository)
        if isinstance(signature, Err):
            return signature
        merged = repository.merge(release_branch, signature.value, favor="ours")
        if isinstance(merged, Err):
            return self._fail(
                "git_failed",
                f"Merging '{release_branch}' into '{original_branch}' failed.",
                hint=merged.error.message,
            )

        return Ok(
            ReleaseInfo(
                current_branch=ReleaseBranchInfo(
                    name=original_branch, commit=merged.value, version=next_dev_version
                ),
                new_branch=ReleaseBranchInfo(
                    name=release_branch, commit=release_commit, version=release_version
                ),
            )
        )

    def _next_dev_version(
        self, options: VersionOptions, next_version: SemanticVersion | None
    ) -> Result[SemanticVersion, ReleasePreparationError]:
        if next_version is not None:
            return Ok(next_version)
        release = options.release
        try:
            bumped = options.version.increment(release.version_increment)
        except ValueError as e:
            return self._fail(
                "invalid_version_increment",
                f"Invalid 'versionIncrement' setting '{release.version_increment}': {e}.",
            )
        return Ok(bumped.set_first_prerelease_tag(release.first_unstable_tag))

    def _signature(self, repository: RepositoryGateway) -> Result[Signature, ReleasePreparationError]:
        signature = resolve_signature(repository, self._clock())
        if isinstance(signature, Err):
            self._console.error(signature.error.message)
        return signature

    def _fail(
        self, kind: ReleaseErrorKind, message: str, hint: str | None = None
    ) -> Err[ReleasePreparationError]:
        self._console.error(message)
        return Err(ReleasePreparationError(kind=kind, message=message, hint=hint))
