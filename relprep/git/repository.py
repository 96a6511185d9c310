"""Git repository abstraction.

This module provides the Repository class that release preparation uses to
inspect and mutate a working tree. It drives the `git` executable, so
user/global/system config scopes are honoured exactly as git honours them.
Operations that can fail return Result types.

Usage:
    repo = open_repository(Path("/path/to/project/sub/dir"))
    if repo is None:
        ...  # not inside a git work tree

    match repo.checkout("main"):
        case Ok(_):
            print(repo.head().name)
        case Err(e):
            print(f"checkout failed: {e.message}")
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal

from relprep.core.result import Err, Ok, Result
from relprep.platform.process import ProcessError
from relprep.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0

__all__ = [
    "GitError",
    "GitStatus",
    "Head",
    "Repository",
    "Signature",
    "StatusEntry",
    "open_repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class Signature:
    """Commit author/committer identity.

    Attributes:
        name: user.name
        email: user.email
        when: Date in git's internal format ("<unix seconds> <+hhmm>")
    """

    name: str
    email: str
    when: str

    @staticmethod
    def format_when(when: datetime) -> str:
        aware = when if when.tzinfo is not None else when.astimezone()
        return f"{int(aware.timestamp())} {aware.strftime('%z')}"

    def author_env(self) -> dict[str, str]:
        return {
            "GIT_AUTHOR_NAME": self.name,
            "GIT_AUTHOR_EMAIL": self.email,
            "GIT_AUTHOR_DATE": self.when,
        }

    def committer_env(self) -> dict[str, str]:
        return {
            "GIT_COMMITTER_NAME": self.name,
            "GIT_COMMITTER_EMAIL": self.email,
            "GIT_COMMITTER_DATE": self.when,
        }


@dataclass(frozen=True, slots=True)
class Head:
    """What HEAD points at.

    Attributes:
        name: Short branch name ("HEAD" when detached)
        is_detached: True if HEAD is not a symbolic ref to a branch
    """

    name: str
    is_detached: bool = False


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry in git status.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Working tree state of a repository.

    Attributes:
        branch: Current branch name as reported by `git status -b`
        entries: All status entries (staged, unstaged, untracked)
    """

    branch: str
    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return len(self.entries) == 0


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root (the work tree top level)
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @property
    def root(self) -> Path:
        return self.path

    def status(self) -> Result[GitStatus, GitError]:
        """Get repository status via `git status --porcelain=v1 -b`."""
        result = self._run(["status", "--porcelain=v1", "-b"])
        match result:
            case Err(e):
                return Err(_git_error("status", e, "git status failed"))
            case Ok(stdout):
                return Ok(self._parse_status(stdout))

    def is_dirty(self) -> bool:
        """True if there are staged, unstaged or untracked changes.

        Returns True if status cannot be determined.
        """
        match self.status():
            case Ok(status):
                return not status.is_clean
            case Err(_):
                return True

    def head(self) -> Head:
        result = self._run(["symbolic-ref", "--quiet", "--short", "HEAD"])
        match result:
            case Ok(stdout):
                return Head(name=stdout.strip())
            case Err(_):
                return Head(name="HEAD", is_detached=True)

    def head_tree(self) -> str | None:
        """Tree id of the commit HEAD points at, None on an unborn branch."""
        return self._rev_parse("HEAD^{tree}")

    def head_commit(self) -> str | None:
        return self._rev_parse("HEAD")

    def branch_exists(self, name: str) -> bool:
        return self._rev_parse(f"refs/heads/{name}") is not None

    def create_branch(self, name: str) -> Result[None, GitError]:
        """Create a local branch at HEAD without checking it out."""
        result = self._run(["branch", name])
        if isinstance(result, Err):
            return Err(_git_error("branch", result.error, f"cannot create branch '{name}'"))
        return Ok(None)

    def checkout(self, name: str) -> Result[None, GitError]:
        result = self._run(["checkout", "--quiet", name, "--"])
        if isinstance(result, Err):
            return Err(_git_error("checkout", result.error, f"cannot check out '{name}'"))
        return Ok(None)

    def stage(self, path: Path) -> Result[None, GitError]:
        result = self._run(["add", "--", str(path)])
        if isinstance(result, Err):
            return Err(_git_error("add", result.error, f"cannot stage {path}"))
        return Ok(None)

    def write_index_tree(self) -> Result[str, GitError]:
        """Write the index as a tree object and return its id."""
        result = self._run(["write-tree"])
        match result:
            case Err(e):
                return Err(_git_error("write-tree", e, "cannot write index tree"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def commit(
        self, message: str, author: Signature, committer: Signature
    ) -> Result[str, GitError]:
        """Commit the index and return the new commit id.

        Empty commits are refused (no --allow-empty). Hooks are not run.
        """
        env = {**os.environ, **author.author_env(), **committer.committer_env()}
        result = self._run(["commit", "--quiet", "--no-verify", "-m", message], env=env)
        if isinstance(result, Err):
            return Err(_git_error("commit", result.error, "commit failed"))
        return self._head_commit_or_error("commit")

    def merge(
        self,
        branch: str,
        signature: Signature,
        *,
        favor: Literal["normal", "ours", "theirs"] = "normal",
    ) -> Result[str, GitError]:
        """Merge `branch` into the current branch and commit on success.

        With favor="ours"/"theirs" conflicting hunks are resolved in favour
        of that side. If the merge still fails it is aborted so the working
        tree is left as it was.
        """
        args = ["merge", "--no-edit"]
        if favor != "normal":
            args.extend(["-X", favor])
        args.append(branch)

        env = {**os.environ, **signature.author_env(), **signature.committer_env()}
        result = self._run(args, env=env)
        if isinstance(result, Err):
            # Leave no half-merged index behind; "no merge to abort" is fine.
            self._run(["merge", "--abort"])
            return Err(_git_error("merge", result.error, f"cannot merge '{branch}'"))
        return self._head_commit_or_error("merge")

    def build_signature(self, when: datetime) -> Signature | None:
        """Build a signature from user.name/user.email, None if either is unset."""
        name = self._config_value("user.name")
        email = self._config_value("user.email")
        if not name or not email:
            return None
        return Signature(name=name, email=email, when=Signature.format_when(when))

    def _config_value(self, key: str) -> str | None:
        result = self._run(["config", "--get", key])
        match result:
            case Ok(stdout):
                return stdout.strip() or None
            case Err(_):
                return None

    def _rev_parse(self, rev: str) -> str | None:
        result = self._run(["rev-parse", "--verify", "--quiet", rev])
        match result:
            case Ok(stdout):
                return stdout.strip() or None
            case Err(_):
                return None

    def _head_commit_or_error(self, command: str) -> Result[str, GitError]:
        sha = self.head_commit()
        if sha is None:
            return Err(GitError(command=command, message="HEAD does not point at a commit"))
        return Ok(sha)

    def _run(self, args: list[str], env: dict[str, str] | None = None) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        return run_process(
            ["git", "-C", str(self.path), *args],
            cwd=self.path,
            env=env,
            timeout=_GIT_TIMEOUT_SECONDS,
        )

    def _parse_status(self, output: str) -> GitStatus:
        """Parse git status --porcelain=v1 -b output."""
        lines = [ln for ln in output.splitlines() if ln.strip()]

        if not lines:
            return GitStatus(branch="")

        # First line is branch info: ## branch...upstream [ahead N, behind M]
        branch = lines[0].removeprefix("##").strip()
        branch = branch.split(" [", 1)[0].split("...", 1)[0].strip()

        entries: list[StatusEntry] = []
        for line in lines[1:]:
            entry = self._parse_entry(line)
            if entry:
                entries.append(entry)

        return GitStatus(branch=branch, entries=tuple(entries))

    def _parse_entry(self, line: str) -> StatusEntry | None:
        if len(line) < 4:
            return None
        return StatusEntry(xy=line[:2], path=line[3:])


def open_repository(directory: Path) -> Repository | None:
    """Open the repository whose work tree contains `directory`.

    Returns None if `directory` is not inside a git work tree (or does not
    exist).
    """
    result = run_process(
        ["git", "rev-parse", "--show-toplevel"],
        cwd=directory,
        timeout=_GIT_TIMEOUT_SECONDS,
    )
    match result:
        case Ok(stdout):
            top = stdout.strip()
            return Repository(Path(top)) if top else None
        case Err(_):
            return None


def _git_error(command: str, e: ProcessError, fallback: str) -> GitError:
    return GitError(
        command=command,
        message=e.stderr.strip() or e.stdout.strip() or fallback,
        returncode=e.returncode,
    )
