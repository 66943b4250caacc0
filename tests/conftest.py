"""Pytest configuration and shared fixtures."""

import subprocess
from collections.abc import Iterator
from pathlib import Path

import pytest

from pushrange.adapters.lock import release_all_held

# ============================================================================
# Git Repository Helpers
# ============================================================================
# These helpers consolidate git setup code to avoid duplication across tests.
# Use these functions in fixtures to create consistent test repositories.


def run_git(path: Path, *args: str) -> str:
    """Run a git command in a repository and return its stripped stdout.

    Raises:
        subprocess.CalledProcessError: If the git command fails.
    """
    result = subprocess.run(
        ["git", *args],
        cwd=path,
        check=True,
        capture_output=True,
        text=True,
        timeout=5,
    )
    return result.stdout.strip()


def init_git_repo(
    path: Path,
    user_name: str = "Test User",
    user_email: str = "test@example.com",
    branch: str = "main",
) -> None:
    """Initialize a git repository with user configuration.

    This is the single source of truth for git repository initialization.
    Use this helper in fixtures instead of inline subprocess calls.

    Args:
        path: Directory to initialize as a git repository.
        user_name: Git user.name configuration value.
        user_email: Git user.email configuration value.
        branch: Name of the initial branch.

    Raises:
        subprocess.CalledProcessError: If git commands fail.
    """
    run_git(path, "init")
    run_git(path, "symbolic-ref", "HEAD", f"refs/heads/{branch}")
    run_git(path, "config", "user.name", user_name)
    run_git(path, "config", "user.email", user_email)


def git_add_and_commit(
    path: Path,
    message: str = "Initial commit",
    add_all: bool = True,
) -> str:
    """Stage files and create a git commit.

    Args:
        path: Git repository root directory.
        message: Commit message.
        add_all: If True, stages all files with 'git add .'.

    Returns:
        Id of the new commit.

    Raises:
        subprocess.CalledProcessError: If git commands fail.
    """
    if add_all:
        run_git(path, "add", ".")
    run_git(path, "commit", "--allow-empty", "-m", message)
    return run_git(path, "rev-parse", "HEAD")


def commit_file(path: Path, name: str, content: str | None = None) -> str:
    """Write one file and commit it, returning the commit id."""
    (path / name).write_text(content if content is not None else f"{name}\n")
    return git_add_and_commit(path, message=f"Add {name}")


def rev_parse(path: Path, rev: str) -> str:
    """Resolve a revision to its full id."""
    return run_git(path, "rev-parse", rev)


def create_git_repo(
    path: Path,
    files: dict[str, str] | None = None,
    commit_message: str = "Initial commit",
) -> Path:
    """Create a complete git repository with optional files.

    Args:
        path: Directory for the repository (created if doesn't exist).
        files: Optional mapping of file paths to contents.
        commit_message: Message for the initial commit.

    Returns:
        Path to the repository root.
    """
    path.mkdir(parents=True, exist_ok=True)
    init_git_repo(path)

    if files:
        for file_path, content in files.items():
            full_path = path / file_path
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_text(content)
        git_add_and_commit(path, message=commit_message)

    return path


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a git repository with one commit on main.

    Returns:
        Path to the git repository root.
    """
    return create_git_repo(
        tmp_path / "test_repo",
        files={"README.md": "# test\n"},
    )


@pytest.fixture(autouse=True)
def release_leftover_locks() -> Iterator[None]:
    """Release any directory lock a failing test left held.

    Keeps the process-wide lock registry and signal handlers clean between
    tests.
    """
    yield
    release_all_held()
