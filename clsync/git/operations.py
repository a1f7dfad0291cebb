# clsync Git Operations
# Git command execution for preparing and pushing a settings repository

import subprocess
from pathlib import Path
from typing import Optional


class GitError(Exception):
    """Exception raised for git operation errors."""

    def __init__(self, message: str, returncode: int = 1, stderr: str = ""):
        self.message = message
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.message}: {self.stderr}"
        return self.message


def _run_git(
    *args: str,
    cwd: Optional[Path] = None,
    check: bool = True,
    capture_output: bool = True,
) -> subprocess.CompletedProcess[str]:
    """
    Run a git command.

    Args:
        *args: Git command arguments.
        cwd: Working directory.
        check: Whether to raise on non-zero exit.
        capture_output: Whether to capture stdout/stderr.

    Returns:
        CompletedProcess with result.

    Raises:
        GitError: If command fails and check is True.
    """
    cmd = ["git", *args]
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            check=False,
            capture_output=capture_output,
            text=True,
        )
    except FileNotFoundError:
        raise GitError("git command not found. Is git installed?")

    if check and result.returncode != 0:
        raise GitError(
            f"Git command failed: {' '.join(cmd)}",
            returncode=result.returncode,
            stderr=result.stderr.strip() if result.stderr else "",
        )
    return result


def is_git_available() -> bool:
    """
    Check that a git executable can be run.

    Returns:
        True if ``git --version`` succeeds.
    """
    try:
        _run_git("--version")
        return True
    except GitError:
        return False


def init_repo(path: Path) -> None:
    """
    Initialize a new git repository.

    Args:
        path: Directory to initialize.

    Raises:
        GitError: If git init fails.
    """
    path.mkdir(parents=True, exist_ok=True)
    _run_git("init", cwd=path)


def stage_all(path: Path) -> None:
    """
    Stage all changes.

    Args:
        path: Repository path.

    Raises:
        GitError: If git add fails.
    """
    _run_git("add", "-A", cwd=path)


def commit(message: str, path: Path) -> str:
    """
    Create a commit.

    Args:
        message: Commit message.
        path: Repository path.

    Returns:
        Commit hash.

    Raises:
        GitError: If the commit fails.
    """
    _run_git("commit", "-m", message, cwd=path)
    result = _run_git("rev-parse", "HEAD", cwd=path)
    return result.stdout.strip()


def add_remote(url: str, path: Path, *, name: str = "origin") -> bool:
    """
    Add a remote.

    Args:
        url: Remote URL.
        path: Repository path.
        name: Remote name.

    Returns:
        True if added, False if it already existed or git refused.
    """
    try:
        _run_git("remote", "add", name, url, cwd=path)
        return True
    except GitError:
        return False


def rename_branch(old: str, new: str, path: Path) -> None:
    """
    Rename a local branch.

    Raises:
        GitError: If the branch can't be renamed.
    """
    _run_git("branch", "-m", old, new, cwd=path)


def push(
    path: Path,
    *,
    remote: str = "origin",
    branch: Optional[str] = None,
    set_upstream: bool = False,
    force: bool = False,
) -> None:
    """
    Push commits to remote.

    Args:
        path: Repository path.
        remote: Remote name.
        branch: Branch name (uses current if not specified).
        set_upstream: Set upstream tracking.
        force: Force-push.

    Raises:
        GitError: If the push fails.
    """
    args = ["push"]

    if set_upstream:
        args.append("-u")

    args.append(remote)

    if branch:
        args.append(branch)

    if force:
        args.append("--force")

    _run_git(*args, cwd=path)
