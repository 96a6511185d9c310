"""In-memory stand-ins for the repository and version file gateways."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Literal

from relprep.core.result import Err, Ok, Result
from relprep.git.repository import GitError, Head, Signature
from relprep.services.release.gateways import RepositoryGateway
from relprep.services.release.model import ReleaseOptions, VersionOptions
from relprep.services.release.semver import parse_version

VERSION_FILE = "version.json"

Tree = dict[str, str]

_shas = itertools.count(1)


def _tree_id(tree: Tree) -> str:
    return repr(sorted(tree.items()))


@dataclass(frozen=True)
class FakeCommit:
    sha: str
    message: str
    tree: Tree
    parents: tuple[str, ...] = ()


@dataclass
class FakeRepository:
    """A single-worktree repository that keeps commits per branch in memory.

    Branches are lists of commits; a new branch copies its parent's list,
    so the merge base is the longest common prefix.
    """

    root: Path
    branches: dict[str, list[FakeCommit]] = field(default_factory=dict)
    head_name: str = "main"
    detached: bool = False
    dirty: bool = False
    user: tuple[str, str] | None = ("Dev", "dev@example.com")
    working: Tree = field(default_factory=dict)
    index: Tree = field(default_factory=dict)
    merges: list[tuple[str, str, str]] = field(default_factory=list)

    @classmethod
    def with_files(cls, root: Path, files: Tree, branch: str = "main") -> FakeRepository:
        initial = FakeCommit(sha=f"c{next(_shas):04d}", message="initial", tree=dict(files))
        repo = cls(root=root, branches={branch: [initial]}, head_name=branch)
        repo.working = dict(files)
        repo.index = dict(files)
        return repo

    # -- gateway surface ---------------------------------------------------

    def is_dirty(self) -> bool:
        return self.dirty or self.working != self.tip.tree

    def head(self) -> Head:
        if self.detached:
            return Head(name="HEAD", is_detached=True)
        return Head(name=self.head_name)

    def head_tree(self) -> str | None:
        return _tree_id(self.tip.tree)

    def head_commit(self) -> str | None:
        return self.tip.sha

    def branch_exists(self, name: str) -> bool:
        return name in self.branches

    def create_branch(self, name: str) -> Result[None, GitError]:
        if name in self.branches:
            return Err(GitError(command="branch", message=f"'{name}' already exists"))
        self.branches[name] = list(self.branches[self.head_name])
        return Ok(None)

    def checkout(self, name: str) -> Result[None, GitError]:
        if name not in self.branches:
            return Err(GitError(command="checkout", message=f"no branch '{name}'"))
        self.head_name = name
        self.working = dict(self.tip.tree)
        self.index = dict(self.tip.tree)
        return Ok(None)

    def stage(self, path: Path) -> Result[None, GitError]:
        rel = path.relative_to(self.root).as_posix()
        self.index[rel] = self.working[rel]
        return Ok(None)

    def write_index_tree(self) -> Result[str, GitError]:
        return Ok(_tree_id(self.index))

    def commit(
        self, message: str, author: Signature, committer: Signature
    ) -> Result[str, GitError]:
        if self.index == self.tip.tree:
            return Err(GitError(command="commit", message="nothing to commit"))
        return Ok(self._append(message, dict(self.index), (self.tip.sha,)))

    def merge(
        self,
        branch: str,
        signature: Signature,
        *,
        favor: Literal["normal", "ours", "theirs"] = "normal",
    ) -> Result[str, GitError]:
        ours = self.branches[self.head_name]
        theirs = self.branches[branch]
        base = self._merge_base(ours, theirs)

        merged: Tree = {}
        for path in set(ours[-1].tree) | set(theirs[-1].tree) | set(base.tree):
            o, t, b = ours[-1].tree.get(path), theirs[-1].tree.get(path), base.tree.get(path)
            if o == t or t == b:
                chosen = o
            elif o == b:
                chosen = t
            elif favor == "ours":
                chosen = o
            elif favor == "theirs":
                chosen = t
            else:
                return Err(GitError(command="merge", message=f"CONFLICT in {path}"))
            if chosen is not None:
                merged[path] = chosen

        self.merges.append((branch, self.head_name, favor))
        sha = self._append(f"Merge branch '{branch}'", merged, (ours[-1].sha, theirs[-1].sha))
        self.working = dict(merged)
        self.index = dict(merged)
        return Ok(sha)

    def build_signature(self, when: datetime) -> Signature | None:
        if self.user is None:
            return None
        name, email = self.user
        return Signature(name=name, email=email, when=Signature.format_when(when))

    # -- test helpers ------------------------------------------------------

    @property
    def tip(self) -> FakeCommit:
        return self.branches[self.head_name][-1]

    def log(self, branch: str) -> list[FakeCommit]:
        return self.branches[branch]

    def file_on(self, branch: str, path: str = VERSION_FILE) -> str | None:
        return self.branches[branch][-1].tree.get(path)

    def _append(self, message: str, tree: Tree, parents: tuple[str, ...]) -> str:
        commit = FakeCommit(sha=f"c{next(_shas):04d}", message=message, tree=tree, parents=parents)
        self.branches[self.head_name].append(commit)
        return commit.sha

    @staticmethod
    def _merge_base(ours: list[FakeCommit], theirs: list[FakeCommit]) -> FakeCommit:
        base = ours[0]
        for a, b in zip(ours, theirs):
            if a.sha != b.sha:
                break
            base = a
        return base


@dataclass
class FakeVersionFiles:
    """Keeps the version as plain text in the fake repository's working tree."""

    repository: FakeRepository
    release: ReleaseOptions = field(default_factory=ReleaseOptions)
    loads: int = 0
    write_content: bool = True

    def load(self, directory: Path) -> VersionOptions | None:
        self.loads += 1
        text = self.repository.working.get(VERSION_FILE)
        version = parse_version(text) if text is not None else None
        if version is None:
            return None
        return VersionOptions(
            version=version, release=self.release, path=self.repository.root / VERSION_FILE
        )

    def load_from_repository(
        self, repository: RepositoryGateway, directory: Path
    ) -> VersionOptions | None:
        return self.load(directory)

    def save(
        self, directory: Path, options: VersionOptions, *, include_schema_property: bool
    ) -> Path:
        if self.write_content:
            self.repository.working[VERSION_FILE] = str(options.version)
        return self.repository.root / VERSION_FILE

    def with_release(self, **changes: object) -> FakeVersionFiles:
        self.release = replace(self.release, **changes)  # type: ignore[arg-type]
        return self
