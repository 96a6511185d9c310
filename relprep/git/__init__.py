"""Git operations module.

Usage:
    from relprep.git import open_repository

    repo = open_repository(Path("."))
    if repo is not None and not repo.is_dirty():
        print(f"Branch: {repo.head().name}")
"""

from relprep.git.repository import (
    GitError,
    GitStatus,
    Head,
    Repository,
    Signature,
    StatusEntry,
    open_repository,
)

__all__ = [
    "GitError",
    "GitStatus",
    "Head",
    "Repository",
    "Signature",
    "StatusEntry",
    "open_repository",
]
