"""New-commit resolution for a single ref update.

The commits an update introduces are computed by reachability, never by
linear range arithmetic on old..new:

    new commits = Ancestors(new)
                  - Ancestors(old)                 (unless the ref was created)
                  - Ancestors(tips of other refs)  (already announced elsewhere)

This stays correct when the update is a force-push (old is not an ancestor
of new) and reports a commit at most once across independently processed
updates. The ref being updated is left out of the "already announced" tips,
otherwise its own new tip would hide every commit it brings.

The tip snapshot is taken without any lock. A concurrent push landing after
the snapshot may cause a commit to be reported twice; the resolver does not
try to be linearizable.
"""

import logging

from pushrange.domain.config import ResolverConfig
from pushrange.domain.entities import (
    CommitId,
    ObjectType,
    RefKind,
    ResolvedRange,
    RevisionRange,
    UpdateEvent,
)
from pushrange.domain.exceptions import GraphLookupError
from pushrange.ports.graph import CommitGraph

logger = logging.getLogger(__name__)


class NewCommitResolver:
    """Computes the commits a ref update introduces that nobody has seen yet."""

    def __init__(self, graph: CommitGraph, config: ResolverConfig | None = None) -> None:
        """Initialize the resolver.

        Args:
            graph: Commit graph to query.
            config: Resolution policy. Default: branches only, batch dedupe on.
        """
        self._graph = graph
        self._config = config or ResolverConfig()

    def snapshot_tips(self) -> dict[str, CommitId]:
        """Take a fresh snapshot of the tips that count as already announced.

        Branch tips always count. Tag tips count only when exclude_tags is
        set, so by default tag pushes can re-surface announced commits.

        Returns:
            Mapping of full ref name to commit id.

        Raises:
            GraphLookupError: If refs cannot be listed.
        """
        tips = dict(self._graph.list_refs(RefKind.BRANCH))
        if self._config.exclude_tags:
            tips.update(self._graph.list_refs(RefKind.TAG))
        logger.debug(f"Snapshot of {len(tips)} tip(s)")
        return tips

    def tracks(self, ref_name: str) -> bool:
        """Whether refs of this name's kind are part of the tip snapshot."""
        kind = RefKind.of(ref_name)
        return kind is RefKind.BRANCH or (kind is RefKind.TAG and self._config.exclude_tags)

    def build_range(self, event: UpdateEvent, tips: dict[str, CommitId]) -> RevisionRange:
        """Build the signed token range for an update.

        Args:
            event: The update being processed.
            tips: Snapshot from snapshot_tips().

        Returns:
            Range including the new id, excluding the old id (unless the
            ref was created) and every other ref's tip. Empty for deletes.
        """
        if event.is_delete:
            return RevisionRange.empty()

        exclude: list[CommitId] = []
        if not event.is_create:
            exclude.append(event.old_id)
        exclude.extend(
            commit_id for ref_name, commit_id in sorted(tips.items())
            if ref_name != event.ref_name
        )
        return RevisionRange.build(include=[event.new_id], exclude=exclude)

    def resolve(
        self,
        event: UpdateEvent,
        tips: dict[str, CommitId] | None = None,
    ) -> ResolvedRange:
        """Resolve the commits introduced by an update.

        Args:
            event: The update being processed.
            tips: Tip snapshot shared by a batch. Taken fresh when None.

        Returns:
            ResolvedRange with the token range and the new commits.

        Raises:
            GraphLookupError: If the new id is not in the repository, or the
                graph cannot list refs or walk the range. Fatal for this
                update only.
        """
        if event.is_delete:
            logger.debug(f"{event.ref_name} deleted, no new commits")
            return ResolvedRange(range=RevisionRange.empty())

        new_type = self._graph.type_of(event.new_id)
        if new_type is ObjectType.UNKNOWN:
            raise GraphLookupError(
                f"New id {event.new_id} of {event.ref_name} is not in the repository",
            )
        if not new_type.walkable:
            logger.info(
                f"{event.ref_name} points at a {new_type.value} object, no commits to walk"
            )
            return ResolvedRange(range=RevisionRange.empty())

        if tips is None:
            tips = self.snapshot_tips()

        revision_range = self.build_range(event, tips)
        commits = self._graph.reachable_from(revision_range.includes, revision_range.excludes)
        logger.debug(f"{event.ref_name}: {len(commits)} new commit(s)")
        return ResolvedRange(range=revision_range, commits=commits)
