"""Classification of ref updates."""

from pushrange.domain.entities import (
    CommitId,
    OperativeRevision,
    UpdateKind,
    is_null_id,
)
from pushrange.ports.graph import CommitGraph


def classify_update(old_id: CommitId, new_id: CommitId) -> UpdateKind:
    """Classify a ref transition.

    CREATE wins when both ids are the sentinel; callers must not build such
    an update (UpdateEvent rejects it).

    Args:
        old_id: Id before the update.
        new_id: Id after the update.

    Returns:
        CREATE if old_id is the sentinel, DELETE if new_id is, else UPDATE.
    """
    if is_null_id(old_id):
        return UpdateKind.CREATE
    if is_null_id(new_id):
        return UpdateKind.DELETE
    return UpdateKind.UPDATE


def resolve_operative_revision(
    graph: CommitGraph, old_id: CommitId, new_id: CommitId
) -> OperativeRevision:
    """Find the object an update is about, and its type.

    Deletes are about the old id, everything else about the new id. An
    unresolvable object yields ObjectType.UNKNOWN rather than an error.

    Args:
        graph: Commit graph used for the type lookup.
        old_id: Id before the update.
        new_id: Id after the update.

    Returns:
        OperativeRevision with id and type.
    """
    rev_id = old_id if is_null_id(new_id) else new_id
    return OperativeRevision(rev_id=rev_id, rev_type=graph.type_of(rev_id))
