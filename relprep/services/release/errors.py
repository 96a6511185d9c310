from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


ReleaseErrorKind = Literal[
    "no_git_repo",
    "uncommitted_changes",
    "invalid_branch_name_setting",
    "no_version_file",
    "version_decrement",
    "branch_already_exists",
    "user_not_configured",
    "detached_head",
    "invalid_version_increment",
    "git_failed",
]


@dataclass(frozen=True, slots=True)
class ReleasePreparationError:
    """Why a release could not be prepared.

    Every kind is terminal: nothing is retried and nothing already committed
    is rolled back.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
