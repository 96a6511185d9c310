from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from relprep.core.result import Err, Ok, Result
from relprep.git.repository import Signature
from relprep.output.console import ConsoleProtocol
from relprep.services.release.errors import ReleasePreparationError
from relprep.services.release.gateways import RepositoryGateway, VersionFileGateway
from relprep.services.release.semver import SemanticVersion, is_version_decrement


def commit_message(version: SemanticVersion) -> str:
    return f"Set version to '{version}'"


def resolve_signature(
    repository: RepositoryGateway, when: datetime
) -> Result[Signature, ReleasePreparationError]:
    signature = repository.build_signature(when)
    if signature is None:
        return Err(
            ReleasePreparationError(
                kind="user_not_configured",
                message=(
                    "Cannot create commits in this repo because git user name "
                    "and email are not configured."
                ),
                hint="git config --global user.name ... && git config --global user.email ...",
            )
        )
    return Ok(signature)


class VersionUpdater:
    """Writes a new version to the checked-out branch and commits it.

    Updating to the version the branch already has is a no-op, so running
    the same update twice produces exactly one commit.
    """

    def __init__(
        self,
        console: ConsoleProtocol,
        version_files: VersionFileGateway,
        clock: Callable[[], datetime],
    ) -> None:
        self._console = console
        self._version_files = version_files
        self._clock = clock

    def update_version(
        self,
        directory: Path,
        repository: RepositoryGateway,
        old_version: SemanticVersion,
        new_version: SemanticVersion,
    ) -> Result[str | None, ReleasePreparationError]:
        """Move the current branch from `old_version` to `new_version`.

        Returns:
            Ok(commit id) when a commit was made, Ok(None) when nothing
            changed, Err on a decrement or a failed git step.
        """
        signature = resolve_signature(repository, self._clock())
        if isinstance(signature, Err):
            return self._fail(signature.error)

        options = self._version_files.load_from_repository(repository, directory)
        if options is None:
            return self._fail(
                ReleasePreparationError(
                    kind="no_version_file",
                    message=(
                        f"Failed to load version file for directory '{directory}' "
                        f"on branch '{repository.head().name}'."
                    ),
                )
            )

        if is_version_decrement(old_version, new_version):
            return self._fail(
                ReleasePreparationError(
                    kind="version_decrement",
                    message=(
                        f"Cannot change version from {old_version} to {new_version} "
                        f"because {new_version} is older than {old_version}."
                    ),
                )
            )

        if options.version == new_version:
            return Ok(None)

        path = self._version_files.save(
            directory, replace(options, version=new_version), include_schema_property=True
        )
        staged = repository.stage(path)
        if isinstance(staged, Err):
            return self._git_failed(staged.error.message)

        tree = repository.write_index_tree()
        if isinstance(tree, Err):
            return self._git_failed(tree.error.message)
        if tree.value == repository.head_tree():
            return Ok(None)

        committed = repository.commit(
            commit_message(new_version), signature.value, signature.value
        )
        if isinstance(committed, Err):
            return self._git_failed(committed.error.message)
        return Ok(committed.value)

    def _git_failed(self, detail: str) -> Err[ReleasePreparationError]:
        return self._fail(
            ReleasePreparationError(kind="git_failed", message=detail or "git command failed")
        )

    def _fail(self, error: ReleasePreparationError) -> Err[ReleasePreparationError]:
        self._console.error(error.message)
        return Err(error)
