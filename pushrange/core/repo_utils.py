"""Repository discovery utilities.

Hooks run with the current directory inside the repository (the git
directory itself for bare repositories) and usually with $GIT_DIR set.
"""

import os
import subprocess
from pathlib import Path


def find_git_dir(start_path: Path | None = None) -> Path | None:
    """Find the git directory using git rev-parse.

    Args:
        start_path: Directory to start searching from. Defaults to CWD.

    Returns:
        Absolute path to the git directory (the repository itself when
        bare), or None if not in a git repo.
    """
    if start_path is None:
        start_path = Path.cwd()

    try:
        result = subprocess.run(
            ["git", "-C", str(start_path), "rev-parse", "--absolute-git-dir"],
            capture_output=True,
            check=True,
            text=True,
        )
        return Path(result.stdout.strip()).resolve()
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None


def find_repo_path(repo_option: str | None = None) -> tuple[Path, Path]:
    """Find the repository to operate on.

    Priority: explicit --repo option, then $GIT_DIR, then the current
    directory.

    Args:
        repo_option: Value of the --repo CLI option, if any.

    Returns:
        Tuple of (repo_path, git_dir) where:
        - repo_path: Directory git commands should run in
        - git_dir: Absolute path of the git directory (holds pushrange.toml)

    Raises:
        RuntimeError: If the chosen location is not a git repository
    """
    if repo_option:
        start = Path(repo_option)
    elif os.environ.get("GIT_DIR"):
        start = Path(os.environ["GIT_DIR"])
    else:
        start = Path.cwd()

    git_dir = find_git_dir(start)
    if git_dir is None:
        raise RuntimeError(f"Not a git repository: {start.resolve()}")
    return start.resolve(), git_dir
