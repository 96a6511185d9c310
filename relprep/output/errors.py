"""Error presentation utilities.

Centralized exit code mapping and hint rendering for release preparation
failures. The one-line diagnostic itself is printed by the service at the
point of failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relprep.core.errors import ErrorCode
from relprep.services.release.errors import ReleasePreparationError

if TYPE_CHECKING:
    from relprep.output.console import ConsoleProtocol

__all__ = ["print_release_hint", "release_error_exit_code"]


def print_release_hint(error: ReleasePreparationError, console: ConsoleProtocol) -> None:
    if error.hint:
        console.hint(error.hint)


def release_error_exit_code(error: ReleasePreparationError) -> int:
    """Get the process exit code for a release preparation failure."""
    match error.kind:
        case "no_git_repo":
            return int(ErrorCode.NO_GIT_REPO)
        case "uncommitted_changes":
            return int(ErrorCode.UNCOMMITTED_CHANGES)
        case "invalid_branch_name_setting":
            return int(ErrorCode.INVALID_BRANCH_NAME_SETTING)
        case "no_version_file":
            return int(ErrorCode.NO_VERSION_FILE)
        case "version_decrement":
            return int(ErrorCode.VERSION_DECREMENT)
        case "branch_already_exists":
            return int(ErrorCode.BRANCH_ALREADY_EXISTS)
        case "user_not_configured":
            return int(ErrorCode.USER_NOT_CONFIGURED)
        case "detached_head":
            return int(ErrorCode.DETACHED_HEAD)
        case "invalid_version_increment":
            return int(ErrorCode.INVALID_VERSION_INCREMENT)
        case "git_failed":
            return int(ErrorCode.GIT_FAILED)
