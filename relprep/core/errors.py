"""Process exit codes.

Each release preparation failure kind gets its own exit code so scripts
driving `relprep prepare-release` can tell failures apart without parsing
output. These values are part of the CLI contract and must remain stable.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (bad arguments)
    - 2..11: One code per release preparation failure kind
    """

    OK = 0
    USER_ERROR = 1
    NO_GIT_REPO = 2
    UNCOMMITTED_CHANGES = 3
    INVALID_BRANCH_NAME_SETTING = 4
    NO_VERSION_FILE = 5
    VERSION_DECREMENT = 6
    BRANCH_ALREADY_EXISTS = 7
    USER_NOT_CONFIGURED = 8
    DETACHED_HEAD = 9
    INVALID_VERSION_INCREMENT = 10
    GIT_FAILED = 11

