"""Human-meaningful labels for revisions."""

import logging

from pushrange.domain.entities import CommitId
from pushrange.domain.exceptions import GraphLookupError
from pushrange.ports.graph import CommitGraph

logger = logging.getLogger(__name__)


def describe(
    graph: CommitGraph,
    rev_id: CommitId,
    *,
    tags_only: bool = False,
    override: CommitId | None = None,
) -> str:
    """Describe a revision relative to the nearest tag.

    Never raises: when no tag is reachable, or the revision cannot be
    resolved, the described id itself is returned.

    Args:
        graph: Commit graph to query.
        rev_id: Revision to describe (usually the operative revision).
        tags_only: Consider lightweight tags as well as annotated ones.
        override: Describe this revision instead of rev_id (for example a
            merge base the caller computed).

    Returns:
        Description such as "v1.2-3-gabc1234", or the id verbatim.
    """
    target = override or rev_id
    try:
        description = graph.describe_nearest_tag(target, tags_only=tags_only)
    except (GraphLookupError, RuntimeError, OSError) as e:
        logger.debug(f"Could not describe {target}: {e}")
        return target

    if not description:
        logger.debug(f"No tag reachable from {target}, using the id")
        return target
    return description
