"""Git adapter implementing the CommitGraph protocol using subprocess git commands."""

import logging
import subprocess
from collections.abc import Iterable
from pathlib import Path

from pushrange.domain.entities import CommitId, ObjectType, RefKind, is_null_id
from pushrange.domain.exceptions import GraphLookupError

logger = logging.getLogger(__name__)

# for-each-ref format: object id, peeled target (annotated tags only), ref name.
# %09 is a tab, which cannot appear in a ref name.
_REF_FORMAT = "%(objectname)%09%(*objectname)%09%(refname)"


def _parse_ref_line(line: str) -> tuple[str, CommitId] | None:
    """Parse one line of for-each-ref output.

    Args:
        line: "<objectname>\\t<peeled objectname>\\t<refname>"

    Returns:
        Tuple of (ref name, commit id) or None if the line is malformed.
        Annotated tags resolve to the commit they point at.
    """
    parts = line.split("\t")
    if len(parts) != 3:
        return None
    object_id, peeled_id, ref_name = parts
    if not object_id or not ref_name:
        return None
    return ref_name, peeled_id or object_id


class GitGraph:
    """Commit graph adapter using subprocess calls to git CLI."""

    def __init__(self, repo_root: Path) -> None:
        """Initialize Git adapter.

        Args:
            repo_root: Path to a git repository, bare or with a worktree.

        Raises:
            RuntimeError: If repo_root is not a git repository.
        """
        self.repo_root = repo_root.resolve()
        # Verify this is a git repo
        if not self._is_git_repo():
            raise RuntimeError(f"Not a git repository: {self.repo_root}")

    def _is_git_repo(self) -> bool:
        """Check if repo_root is a git repository."""
        try:
            self._run_git(["rev-parse", "--git-dir"], check=True)
            return True
        except (subprocess.CalledProcessError, FileNotFoundError):
            return False

    def _run_git(
        self,
        args: list[str],
        check: bool = True,
        input: bytes | None = None,
    ) -> subprocess.CompletedProcess[bytes]:
        """Run a git command in the repository.

        Args:
            args: Git command arguments (without 'git' prefix).
            check: Whether to raise CalledProcessError on non-zero exit.
            input: Bytes to feed to the command's stdin.

        Returns:
            CompletedProcess with command results.

        Raises:
            subprocess.CalledProcessError: If check=True and command fails.
        """
        cmd = ["git", "-C", str(self.repo_root)] + args
        logger.debug("Running %s", " ".join(cmd))
        return subprocess.run(
            cmd,
            capture_output=True,
            check=check,
            input=input,
        )

    def _format_git_error(
        self,
        error: subprocess.CalledProcessError,
        context: str,
    ) -> str:
        """Format git error with full context.

        Args:
            error: The CalledProcessError from git command.
            context: Human-readable description of what was being done.

        Returns:
            Formatted error message with exit code and stderr.
        """
        stderr = error.stderr.decode("utf-8", errors="replace").strip() if error.stderr else ""

        msg = f"{context} (git exit code {error.returncode})"
        if stderr:
            msg += f": {stderr}"
        else:
            msg += " (no error output from git)"

        return msg

    @property
    def git_dir(self) -> Path:
        """Absolute path of the repository's git directory.

        This is the repository root itself for bare repositories.
        """
        result = self._run_git(["rev-parse", "--absolute-git-dir"])
        return Path(result.stdout.decode("utf-8", errors="replace").strip())

    def resolve_ref(self, name: str) -> CommitId:
        """Resolve a ref name or revision expression to an object id.

        Args:
            name: Ref name (e.g., "refs/heads/main"), short name or id.

        Returns:
            Full object id.

        Raises:
            GraphLookupError: If the name does not resolve.
        """
        if not name or name.startswith("-"):
            raise GraphLookupError(f"Invalid ref name '{name}'")
        try:
            result = self._run_git(["rev-parse", "--verify", "--quiet", name])
        except subprocess.CalledProcessError as e:
            raise GraphLookupError(
                self._format_git_error(e, f"Failed to resolve ref '{name}'"),
                hint="Check that the ref exists in this repository",
            ) from e
        return result.stdout.decode("utf-8", errors="replace").strip()

    def type_of(self, obj_id: CommitId) -> ObjectType:
        """Get the type of an object.

        Args:
            obj_id: Object id.

        Returns:
            ObjectType, UNKNOWN if the object cannot be resolved.
        """
        if not obj_id or is_null_id(obj_id) or obj_id.startswith("-"):
            return ObjectType.UNKNOWN

        result = self._run_git(["cat-file", "-t", obj_id], check=False)
        if result.returncode != 0:
            logger.debug("Object %s not found, type unknown", obj_id)
            return ObjectType.UNKNOWN
        return ObjectType.from_git(result.stdout.decode("utf-8", errors="replace"))

    def reachable_from(
        self,
        include: Iterable[CommitId],
        exclude: Iterable[CommitId] = (),
    ) -> list[CommitId]:
        """List commits reachable from include but from none of exclude.

        Feeds the ids to 'git rev-list --stdin', one per line, with
        excluded ids prefixed by '^'.

        Args:
            include: Tips whose ancestry is wanted.
            exclude: Tips whose ancestry is removed.

        Returns:
            Commit ids, newest first.

        Raises:
            GraphLookupError: If an id cannot be resolved or walked.
        """
        include = [c for c in include if c and not is_null_id(c)]
        if not include:
            return []
        exclude = [c for c in exclude if c and not is_null_id(c)]

        spec = "".join(f"{c}\n" for c in include)
        spec += "".join(f"^{c}\n" for c in exclude)

        try:
            result = self._run_git(["rev-list", "--stdin"], input=spec.encode("utf-8"))
        except subprocess.CalledProcessError as e:
            raise GraphLookupError(
                self._format_git_error(
                    e, f"Failed to list commits reachable from {', '.join(include)}"
                ),
            ) from e

        output = result.stdout.decode("utf-8", errors="replace")
        return [line for line in output.splitlines() if line]

    def describe_nearest_tag(self, obj_id: CommitId, tags_only: bool = False) -> str | None:
        """Describe an object relative to the nearest reachable tag.

        Args:
            obj_id: Object id to describe.
            tags_only: Consider lightweight tags too (git describe --tags).

        Returns:
            Description (e.g., "v1.2-3-gabc1234"), or None when no tag is
            reachable or the id is unresolvable.
        """
        if not obj_id or is_null_id(obj_id) or obj_id.startswith("-"):
            return None

        args = ["describe"]
        if tags_only:
            args.append("--tags")
        args.append(obj_id)

        result = self._run_git(args, check=False)
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            logger.debug("git describe %s failed: %s", obj_id, stderr)
            return None
        description = result.stdout.decode("utf-8", errors="replace").strip()
        return description or None

    def list_refs(self, kind: RefKind) -> dict[str, CommitId]:
        """Snapshot the current tips of all refs of one kind.

        Args:
            kind: Branches or tags.

        Returns:
            Mapping of full ref name to the commit it points at. Annotated
            tags are peeled to their commit.

        Raises:
            GraphLookupError: If the refs cannot be listed.
        """
        try:
            result = self._run_git(["for-each-ref", f"--format={_REF_FORMAT}", kind.prefix])
        except subprocess.CalledProcessError as e:
            raise GraphLookupError(
                self._format_git_error(e, f"Failed to list {kind.value} refs"),
            ) from e

        refs: dict[str, CommitId] = {}
        for line in result.stdout.decode("utf-8", errors="replace").splitlines():
            parsed = _parse_ref_line(line)
            if parsed is None:
                if line:
                    logger.warning("Unexpected for-each-ref output '%s'. Skipping.", line)
                continue
            ref_name, commit_id = parsed
            refs[ref_name] = commit_id
        return refs
