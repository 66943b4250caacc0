"""Integration tests for the Git adapter.

These tests create real git repositories and exercise all CommitGraph
protocol methods.
"""

from pathlib import Path

import pytest

from pushrange.adapters.git_cmd import GitGraph
from pushrange.domain.entities import NULL_ID, ObjectType, RefKind
from pushrange.domain.exceptions import GraphLookupError
from tests.conftest import commit_file, rev_parse, run_git


@pytest.fixture
def graph(git_repo: Path) -> GitGraph:
    """Create a GitGraph for the test repository."""
    return GitGraph(git_repo)


def test_git_graph_initialization(git_repo: Path):
    """Test GitGraph can be initialized with a valid git repo."""
    graph = GitGraph(git_repo)
    assert graph.repo_root == git_repo.resolve()


def test_git_graph_rejects_non_repo(tmp_path: Path):
    """Test GitGraph raises error for non-git directories."""
    non_repo = tmp_path / "not_a_repo"
    non_repo.mkdir()

    with pytest.raises(RuntimeError, match="Not a git repository"):
        GitGraph(non_repo)


def test_git_dir_of_worktree(graph: GitGraph, git_repo: Path):
    assert graph.git_dir == (git_repo / ".git").resolve()


def test_git_dir_of_bare_repo(git_repo: Path, tmp_path: Path):
    """Test a bare repository is its own git directory."""
    bare = tmp_path / "bare.git"
    run_git(tmp_path, "clone", "--bare", str(git_repo), str(bare))

    assert GitGraph(bare).git_dir == bare.resolve()


class TestResolveRef:
    """Tests for resolve_ref."""

    def test_resolve_branch(self, graph: GitGraph, git_repo: Path):
        head = rev_parse(git_repo, "HEAD")
        assert graph.resolve_ref("refs/heads/main") == head
        assert graph.resolve_ref("main") == head

    def test_resolve_unknown_ref(self, graph: GitGraph):
        with pytest.raises(GraphLookupError, match="Failed to resolve ref 'nope'"):
            graph.resolve_ref("nope")

    def test_rejects_option_like_names(self, graph: GitGraph):
        with pytest.raises(GraphLookupError, match="Invalid ref name"):
            graph.resolve_ref("--all")


class TestTypeOf:
    """Tests for type_of."""

    def test_commit_tree_blob(self, graph: GitGraph, git_repo: Path):
        assert graph.type_of(rev_parse(git_repo, "HEAD")) is ObjectType.COMMIT
        assert graph.type_of(rev_parse(git_repo, "HEAD^{tree}")) is ObjectType.TREE
        assert graph.type_of(rev_parse(git_repo, "HEAD:README.md")) is ObjectType.BLOB

    def test_annotated_tag(self, graph: GitGraph, git_repo: Path):
        run_git(git_repo, "tag", "-a", "v1.0", "-m", "Release 1.0")
        assert graph.type_of(rev_parse(git_repo, "refs/tags/v1.0")) is ObjectType.TAG

    def test_missing_and_null(self, graph: GitGraph):
        assert graph.type_of("e" * 40) is ObjectType.UNKNOWN
        assert graph.type_of(NULL_ID) is ObjectType.UNKNOWN
        assert graph.type_of("") is ObjectType.UNKNOWN


class TestReachableFrom:
    """Tests for reachable_from."""

    def test_include_and_exclude(self, graph: GitGraph, git_repo: Path):
        base = rev_parse(git_repo, "HEAD")
        second = commit_file(git_repo, "a.txt")
        third = commit_file(git_repo, "b.txt")

        assert graph.reachable_from([third], [base]) == [third, second]
        assert graph.reachable_from([third], [second]) == [third]
        assert graph.reachable_from([third], [third]) == []

    def test_empty_include(self, graph: GitGraph, git_repo: Path):
        assert graph.reachable_from([], [rev_parse(git_repo, "HEAD")]) == []
        assert graph.reachable_from([NULL_ID]) == []

    def test_annotated_tag_is_peeled(self, graph: GitGraph, git_repo: Path):
        head = rev_parse(git_repo, "HEAD")
        run_git(git_repo, "tag", "-a", "v1.0", "-m", "Release 1.0")
        tag = rev_parse(git_repo, "refs/tags/v1.0")

        assert graph.reachable_from([tag]) == [head]

    def test_unknown_id_raises(self, graph: GitGraph):
        with pytest.raises(GraphLookupError, match="Failed to list commits"):
            graph.reachable_from(["e" * 40])


class TestDescribeNearestTag:
    """Tests for describe_nearest_tag."""

    def test_annotated_tag_distance(self, graph: GitGraph, git_repo: Path):
        run_git(git_repo, "tag", "-a", "v1.0", "-m", "Release 1.0")
        head = commit_file(git_repo, "a.txt")

        description = graph.describe_nearest_tag(head)

        assert description.startswith("v1.0-1-g")

    def test_exact_tag(self, graph: GitGraph, git_repo: Path):
        run_git(git_repo, "tag", "-a", "v1.0", "-m", "Release 1.0")
        assert graph.describe_nearest_tag(rev_parse(git_repo, "HEAD")) == "v1.0"

    def test_lightweight_tags_need_tags_only(self, graph: GitGraph, git_repo: Path):
        run_git(git_repo, "tag", "light")
        head = rev_parse(git_repo, "HEAD")

        assert graph.describe_nearest_tag(head) is None
        assert graph.describe_nearest_tag(head, tags_only=True) == "light"

    def test_no_tags(self, graph: GitGraph, git_repo: Path):
        assert graph.describe_nearest_tag(rev_parse(git_repo, "HEAD")) is None
        assert graph.describe_nearest_tag("e" * 40) is None
        assert graph.describe_nearest_tag(NULL_ID) is None


class TestListRefs:
    """Tests for list_refs."""

    def test_branches(self, graph: GitGraph, git_repo: Path):
        head = rev_parse(git_repo, "HEAD")
        run_git(git_repo, "branch", "feature")

        assert graph.list_refs(RefKind.BRANCH) == {
            "refs/heads/main": head,
            "refs/heads/feature": head,
        }

    def test_tags_are_peeled(self, graph: GitGraph, git_repo: Path):
        head = rev_parse(git_repo, "HEAD")
        run_git(git_repo, "tag", "-a", "v1.0", "-m", "Release 1.0")
        run_git(git_repo, "tag", "light")

        assert graph.list_refs(RefKind.TAG) == {
            "refs/tags/v1.0": head,
            "refs/tags/light": head,
        }

    def test_no_refs_of_kind(self, graph: GitGraph):
        assert graph.list_refs(RefKind.TAG) == {}
