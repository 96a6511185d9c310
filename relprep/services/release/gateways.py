"""Capabilities the release workflow needs from the outside world.

The workflow only talks to these protocols; `relprep.git.Repository` and
`relprep.services.release.version_file.VersionFiles` are the production
implementations, tests substitute in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Literal, Protocol

from relprep.core.result import Result
from relprep.git.repository import GitError, Head, Signature
from relprep.services.release.model import VersionOptions


MergeFavor = Literal["normal", "ours", "theirs"]


class RepositoryGateway(Protocol):
    """A git working tree owned by the caller for the duration of a run."""

    @property
    def root(self) -> Path: ...

    def is_dirty(self) -> bool: ...

    def head(self) -> Head: ...

    def head_tree(self) -> str | None: ...

    def head_commit(self) -> str | None: ...

    def branch_exists(self, name: str) -> bool: ...

    def create_branch(self, name: str) -> Result[None, GitError]: ...

    def checkout(self, name: str) -> Result[None, GitError]: ...

    def stage(self, path: Path) -> Result[None, GitError]: ...

    def write_index_tree(self) -> Result[str, GitError]: ...

    def commit(
        self, message: str, author: Signature, committer: Signature
    ) -> Result[str, GitError]: ...

    def merge(
        self, branch: str, signature: Signature, *, favor: MergeFavor = "normal"
    ) -> Result[str, GitError]: ...

    def build_signature(self, when: datetime) -> Signature | None: ...


RepositoryOpener = Callable[[Path], RepositoryGateway | None]


class VersionFileGateway(Protocol):
    """Reads and writes the version declaration governing a directory."""

    def load(self, directory: Path) -> VersionOptions | None: ...

    def load_from_repository(
        self, repository: RepositoryGateway, directory: Path
    ) -> VersionOptions | None: ...

    def save(
        self, directory: Path, options: VersionOptions, *, include_schema_property: bool
    ) -> Path: ...
