"""Tests for PostReceiveUseCase."""

import pytest

from pushrange.core.hook_usecase import PostReceiveRequest, PostReceiveUseCase
from pushrange.domain.config import DescribeConfig, PushRangeConfig, ResolverConfig
from pushrange.domain.entities import NULL_ID, ObjectType, UpdateEvent, UpdateKind
from tests.helpers import FakeGraph, oid


@pytest.fixture
def graph() -> FakeGraph:
    """main moved A -> B, feature created at D (on A) in one push.

        A---B      main
         \\
          D        feature
    """
    graph = FakeGraph()
    graph.commit("A")
    graph.commit("B", "A")
    graph.commit("D", "A")
    graph.set_ref("refs/heads/main", "B")
    graph.set_ref("refs/heads/feature", "D")
    return graph


def _push(*events: UpdateEvent) -> PostReceiveRequest:
    return PostReceiveRequest(updates=list(events))


class TestPostReceiveUseCase:
    """Test batch processing of a push."""

    def test_reports_each_update_in_order(self, graph: FakeGraph):
        graph.descriptions[oid("B")] = "v1.0-1-gb"
        usecase = PostReceiveUseCase(graph)

        response = usecase.execute(
            _push(
                UpdateEvent("refs/heads/main", oid("A"), oid("B")),
                UpdateEvent("refs/heads/feature", NULL_ID, oid("D")),
            )
        )

        assert response.success
        assert response.error is None
        main, feature = response.reports
        assert main.kind is UpdateKind.UPDATE
        assert main.operative.rev_id == oid("B")
        assert main.operative.rev_type is ObjectType.COMMIT
        assert main.description == "v1.0-1-gb"
        assert main.commits == [oid("B")]
        assert feature.kind is UpdateKind.CREATE
        assert feature.description == oid("D")
        assert feature.commits == [oid("D")]
        assert response.new_commits == [oid("B"), oid("D")]

    def test_one_snapshot_per_push(self, graph: FakeGraph, monkeypatch):
        calls = []
        original = graph.list_refs

        def counting_list_refs(kind):
            calls.append(kind)
            return original(kind)

        monkeypatch.setattr(graph, "list_refs", counting_list_refs)

        PostReceiveUseCase(graph).execute(
            _push(
                UpdateEvent("refs/heads/main", oid("A"), oid("B")),
                UpdateEvent("refs/heads/feature", NULL_ID, oid("D")),
            )
        )

        assert len(calls) == 1

    def test_delete_has_no_commits(self, graph: FakeGraph):
        response = PostReceiveUseCase(graph).execute(
            _push(UpdateEvent("refs/heads/old", oid("A"), NULL_ID))
        )

        report = response.reports[0]
        assert report.success
        assert report.kind is UpdateKind.DELETE
        assert report.operative.rev_id == oid("A")
        assert report.commits == []

    def test_failing_ref_does_not_stop_others(self, graph: FakeGraph):
        """Test a bad ref is recorded while later refs still resolve."""
        response = PostReceiveUseCase(graph).execute(
            _push(
                UpdateEvent("refs/heads/broken", NULL_ID, oid("missing")),
                UpdateEvent("refs/heads/feature", NULL_ID, oid("D")),
            )
        )

        assert not response.success
        broken, feature = response.reports
        assert not broken.success
        assert "not in the repository" in broken.error
        assert feature.success
        assert feature.commits == [oid("D")]
        assert response.failed == [broken]

    def test_snapshot_failure_fails_whole_push(self, graph: FakeGraph):
        graph.fail_list_refs = True

        response = PostReceiveUseCase(graph).execute(
            _push(UpdateEvent("refs/heads/main", oid("A"), oid("B")))
        )

        assert not response.success
        assert response.reports == []
        assert "cannot list refs" in response.error

    def test_batch_dedupe(self):
        """Test a commit introduced by two refs of one push is reported once."""
        graph = FakeGraph()
        graph.commit("A")
        graph.commit("N", "A")
        graph.set_ref("refs/heads/main", "A")
        graph.set_ref("refs/tags/v2.0", "N")
        push = _push(
            UpdateEvent("refs/tags/v2.0", NULL_ID, oid("N")),
            UpdateEvent("refs/heads/release", NULL_ID, oid("N")),
        )

        deduped = PostReceiveUseCase(graph).execute(push)
        assert deduped.reports[0].commits == [oid("N")]
        assert deduped.reports[1].commits == []

        config = PushRangeConfig(resolver=ResolverConfig(dedupe_batch=False))
        repeated = PostReceiveUseCase(graph, config).execute(push)
        assert repeated.reports[0].commits == [oid("N")]
        assert repeated.reports[1].commits == [oid("N")]

    def test_describe_policy_is_passed_through(self, graph: FakeGraph, monkeypatch):
        seen = []

        def fake_describe(obj_id, tags_only=False):
            seen.append(tags_only)
            return None

        monkeypatch.setattr(graph, "describe_nearest_tag", fake_describe)
        config = PushRangeConfig(describe=DescribeConfig(tags_only=True))

        PostReceiveUseCase(graph, config).execute(
            _push(UpdateEvent("refs/heads/main", oid("A"), oid("B")))
        )

        assert seen == [True]

    def test_keyboard_interrupt_propagates(self, graph: FakeGraph, monkeypatch):
        def interrupted(*args, **kwargs):
            raise KeyboardInterrupt

        monkeypatch.setattr(graph, "reachable_from", interrupted)

        with pytest.raises(KeyboardInterrupt):
            PostReceiveUseCase(graph).execute(
                _push(UpdateEvent("refs/heads/main", oid("A"), oid("B")))
            )

    def test_commit_shared_by_two_pushed_refs_is_reported_once(self):
        """Test refs of the same push do not hide each other's commits.

            A---B      main (A -> B)
                 \\
                  D    feature (created)
        """
        graph = FakeGraph()
        graph.commit("A")
        graph.commit("B", "A")
        graph.commit("D", "B")
        graph.set_ref("refs/heads/main", "B")
        graph.set_ref("refs/heads/feature", "D")
        push = _push(
            UpdateEvent("refs/heads/main", oid("A"), oid("B")),
            UpdateEvent("refs/heads/feature", NULL_ID, oid("D")),
        )

        response = PostReceiveUseCase(graph).execute(push)
        assert response.reports[0].commits == [oid("B")]
        assert response.reports[1].commits == [oid("D")]

        config = PushRangeConfig(resolver=ResolverConfig(dedupe_batch=False))
        repeated = PostReceiveUseCase(graph, config).execute(push)
        assert repeated.reports[1].commits == [oid("D"), oid("B")]

    def test_ref_not_in_push_still_hides_commits(self, graph: FakeGraph):
        graph.commit("E", "D")
        graph.set_ref("refs/heads/topic", "E")

        response = PostReceiveUseCase(graph).execute(
            _push(UpdateEvent("refs/heads/topic", NULL_ID, oid("E")))
        )

        assert response.reports[0].commits == [oid("E")]

    @pytest.fixture
    def moved_tag(self) -> tuple[FakeGraph, PostReceiveRequest]:
        """main merges X while tag t moves off X in the same push.

            M0---M1    main (M0 -> M1)
             \\  /
              X        t (old)
             \\
              Y        t (new)
        """
        graph = FakeGraph()
        graph.commit("M0")
        graph.commit("X", "M0")
        graph.commit("Y", "M0")
        graph.commit("M1", "M0", "X")
        graph.set_ref("refs/heads/main", "M1")
        graph.set_ref("refs/tags/t", "Y")
        push = _push(
            UpdateEvent("refs/heads/main", oid("M0"), oid("M1")),
            UpdateEvent("refs/tags/t", oid("X"), oid("Y")),
        )
        return graph, push

    def test_moved_tag_old_id_does_not_hide_branch_commits(self, moved_tag):
        graph, push = moved_tag

        response = PostReceiveUseCase(graph).execute(push)

        main, tag = response.reports
        assert set(main.commits) == {oid("M1"), oid("X")}
        assert tag.commits == [oid("Y")]

    def test_moved_tag_old_id_counts_when_tags_are_excluded(self, moved_tag):
        graph, push = moved_tag
        config = PushRangeConfig(resolver=ResolverConfig(exclude_tags=True))

        response = PostReceiveUseCase(graph, config).execute(push)

        assert response.reports[0].commits == [oid("M1")]

    def test_non_branch_ref_old_id_is_not_announced(self):
        graph = FakeGraph()
        graph.commit("A")
        graph.commit("N", "A")
        graph.commit("B", "N")
        graph.set_ref("refs/heads/main", "B")
        graph.set_ref("refs/notes/commits", "A")

        response = PostReceiveUseCase(graph).execute(
            _push(
                UpdateEvent("refs/heads/main", oid("A"), oid("B")),
                UpdateEvent("refs/notes/commits", oid("N"), oid("A")),
            )
        )

        assert response.reports[0].commits == [oid("B"), oid("N")]
