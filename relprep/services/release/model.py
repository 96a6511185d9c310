from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from relprep.services.release.semver import SemanticVersion, VersionIncrement


DEFAULT_BRANCH_NAME = "v{version}"
DEFAULT_VERSION_INCREMENT: VersionIncrement = "minor"
DEFAULT_FIRST_UNSTABLE_TAG = "alpha"

VERSION_PLACEHOLDER = "{version}"


@dataclass(frozen=True, slots=True)
class ReleaseOptions:
    """The `release` table of a version file."""

    branch_name: str = DEFAULT_BRANCH_NAME
    version_increment: VersionIncrement = DEFAULT_VERSION_INCREMENT
    first_unstable_tag: str = DEFAULT_FIRST_UNSTABLE_TAG

    @property
    def is_default(self) -> bool:
        return self == ReleaseOptions()


@dataclass(frozen=True, slots=True)
class VersionOptions:
    """Version declaration for one directory.

    `path` is the file the options were read from, None when they were
    built in memory.
    """

    version: SemanticVersion
    release: ReleaseOptions = field(default_factory=ReleaseOptions)
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseBranchInfo:
    name: str
    commit: str
    version: SemanticVersion

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "commit": self.commit, "version": str(self.version)}


@dataclass(frozen=True, slots=True)
class ReleaseInfo:
    """Outcome of a successful release preparation.

    `new_branch` is None when an existing release branch was advanced in
    place instead of a new one being created.
    """

    current_branch: ReleaseBranchInfo
    new_branch: ReleaseBranchInfo | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "currentBranch": self.current_branch.to_dict(),
            "newBranch": self.new_branch.to_dict() if self.new_branch else None,
        }
