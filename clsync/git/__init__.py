# clsync Git Module
# Git operations for push

from clsync.git.operations import (
    GitError,
    add_remote,
    commit,
    init_repo,
    is_git_available,
    push,
    rename_branch,
    stage_all,
)

__all__ = [
    "GitError",
    "is_git_available",
    "init_repo",
    "stage_all",
    "commit",
    "add_remote",
    "rename_branch",
    "push",
]
