"""Commit graph port interface.

Defines the read-only queries the resolver needs from a version-controlled
commit DAG. The graph is owned by the repository; nothing here mutates it.
"""

from collections.abc import Iterable
from typing import Protocol

from pushrange.domain.entities import CommitId, ObjectType, RefKind


class CommitGraph(Protocol):
    """Protocol for commit graph queries (Git)."""

    def resolve_ref(self, name: str) -> CommitId:
        """Resolve a ref name or revision expression to an object id.

        Args:
            name: Ref name (e.g., "refs/heads/main"), short name or id.

        Returns:
            Full object id.

        Raises:
            GraphLookupError: If the name does not resolve.
        """
        ...

    def type_of(self, obj_id: CommitId) -> ObjectType:
        """Get the type of an object.

        Args:
            obj_id: Object id.

        Returns:
            ObjectType, UNKNOWN if the object cannot be resolved.
        """
        ...

    def reachable_from(
        self,
        include: Iterable[CommitId],
        exclude: Iterable[CommitId] = (),
    ) -> list[CommitId]:
        """List commits reachable from include but from none of exclude.

        Args:
            include: Tips whose ancestry is wanted.
            exclude: Tips whose ancestry is removed.

        Returns:
            Commit ids, newest first.

        Raises:
            GraphLookupError: If an id cannot be resolved or walked.
        """
        ...

    def describe_nearest_tag(self, obj_id: CommitId, tags_only: bool = False) -> str | None:
        """Describe an object relative to the nearest reachable tag.

        Args:
            obj_id: Object id to describe.
            tags_only: Consider lightweight tags too, not only annotated ones.

        Returns:
            Description (e.g., "v1.2-3-gabc1234"), or None when no tag is
            reachable or the id is unresolvable.
        """
        ...

    def list_refs(self, kind: RefKind) -> dict[str, CommitId]:
        """Snapshot the current tips of all refs of one kind.

        Args:
            kind: Branches or tags.

        Returns:
            Mapping of full ref name to the commit it points at.

        Raises:
            GraphLookupError: If the refs cannot be listed.
        """
        ...
