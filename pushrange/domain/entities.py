"""Domain entities and value objects.

Core domain models for resolving which commits a ref update introduces.
These are pure Python dataclasses with no dependencies on infrastructure.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from pushrange.domain.exceptions import InvalidUpdateEventError

# Opaque full object name (40 hex chars for SHA-1, 64 for SHA-256)
CommitId = str

# Sentinel reported by git hooks for "ref did not exist" / "ref no longer exists"
NULL_ID: CommitId = "0" * 40

_OBJECT_ID_RE = re.compile(r"^(?:[0-9a-f]{40}|[0-9a-f]{64})$")

BRANCH_PREFIX = "refs/heads/"
TAG_PREFIX = "refs/tags/"


def is_null_id(value: str | None) -> bool:
    """Check whether an object id is the all-zero sentinel.

    Any non-empty all-zero string counts, so the 64-char sentinel used by
    SHA-256 repositories is recognised as well.
    """
    return bool(value) and set(value) == {"0"}


def is_object_id(value: str) -> bool:
    """Check if a string is a full lowercase hex object name."""
    return bool(_OBJECT_ID_RE.match(value))


class ObjectType(str, Enum):
    """Type of a git object, as reported by ``git cat-file -t``.

    UNKNOWN is used when the object cannot be resolved (for example it has
    already been garbage-collected). Callers decide how to degrade.
    """

    COMMIT = "commit"
    TAG = "tag"
    TREE = "tree"
    BLOB = "blob"
    UNKNOWN = "unknown"

    @classmethod
    def from_git(cls, value: str) -> ObjectType:
        """Map git's type name to an ObjectType, UNKNOWN for anything else."""
        try:
            return cls(value.strip())
        except ValueError:
            return cls.UNKNOWN

    @property
    def walkable(self) -> bool:
        """Whether commits can be reached from an object of this type."""
        return self in (ObjectType.COMMIT, ObjectType.TAG)


class UpdateKind(str, Enum):
    """Kind of ref transition."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class RefKind(str, Enum):
    """Class of named ref, identified by its namespace prefix."""

    BRANCH = "branch"
    TAG = "tag"

    @property
    def prefix(self) -> str:
        return BRANCH_PREFIX if self is RefKind.BRANCH else TAG_PREFIX

    @classmethod
    def of(cls, ref_name: str) -> RefKind | None:
        """Return the kind of a full ref name, or None for other namespaces."""
        if ref_name.startswith(BRANCH_PREFIX):
            return cls.BRANCH
        if ref_name.startswith(TAG_PREFIX):
            return cls.TAG
        return None


@dataclass(frozen=True)
class UpdateEvent:
    """One ref transition being processed by a hook.

    Attributes:
        ref_name: Full ref name (e.g., "refs/heads/main").
        old_id: Object id before the update, NULL_ID for a create.
        new_id: Object id after the update, NULL_ID for a delete.

    Raises:
        InvalidUpdateEventError: If both ids are the sentinel, the ref name is
            empty, or an id is not a full hex object name.
    """

    ref_name: str
    old_id: CommitId
    new_id: CommitId

    def __post_init__(self) -> None:
        """Validate the transition."""
        if not self.ref_name or not self.ref_name.strip():
            raise InvalidUpdateEventError("Ref name cannot be empty")

        for label, value in (("old", self.old_id), ("new", self.new_id)):
            if not is_null_id(value) and not is_object_id(value):
                raise InvalidUpdateEventError(
                    f"Invalid {label} id '{value}' for {self.ref_name}",
                    hint="Object ids must be full 40 or 64 character hex names",
                )

        if is_null_id(self.old_id) and is_null_id(self.new_id):
            raise InvalidUpdateEventError(
                f"Update of {self.ref_name} has neither an old nor a new id",
            )

    @property
    def is_create(self) -> bool:
        return is_null_id(self.old_id)

    @property
    def is_delete(self) -> bool:
        return not self.is_create and is_null_id(self.new_id)

    @property
    def ref_kind(self) -> RefKind | None:
        return RefKind.of(self.ref_name)

    @property
    def short_name(self) -> str:
        """Ref name without its refs/heads/ or refs/tags/ prefix."""
        kind = self.ref_kind
        if kind is None:
            return self.ref_name
        return self.ref_name[len(kind.prefix):]


@dataclass(frozen=True)
class RevisionToken:
    """A plain ("include") or negated ("exclude with ancestors") commit id.

    Attributes:
        commit_id: The object id.
        negated: True for an exclusion token.
    """

    commit_id: CommitId
    negated: bool = False

    @classmethod
    def parse(cls, text: str) -> RevisionToken:
        """Parse ``id`` or ``^id``.

        Raises:
            ValueError: If the text is blank or carries no id after ``^``.
        """
        text = text.strip()
        negated = text.startswith("^")
        commit_id = text[1:] if negated else text
        if not commit_id:
            raise ValueError(f"Invalid revision token: '{text}'")
        return cls(commit_id=commit_id, negated=negated)

    def __str__(self) -> str:
        return f"^{self.commit_id}" if self.negated else self.commit_id


@dataclass(frozen=True)
class RevisionRange:
    """Ordered set of signed tokens naming newly introduced commits.

    Evaluating the range yields every commit reachable from a plain token
    and not reachable from any negated token. Construct it through
    ``build`` so the token invariants hold: no blank or sentinel entries, no
    duplicates, and no negation of an included id.
    """

    tokens: tuple[RevisionToken, ...] = ()

    @classmethod
    def build(
        cls,
        include: Iterable[CommitId],
        exclude: Iterable[CommitId] = (),
    ) -> RevisionRange:
        """Build a range from ids to include and ids to exclude.

        Args:
            include: Ids whose ancestry is wanted.
            exclude: Ids whose ancestry is already known.

        Returns:
            RevisionRange with plain tokens first, then negated tokens,
            each in first-seen order.
        """
        plain: dict[CommitId, None] = {}
        for commit_id in include:
            if commit_id and not is_null_id(commit_id):
                plain.setdefault(commit_id, None)

        negated: dict[CommitId, None] = {}
        for commit_id in exclude:
            if commit_id and not is_null_id(commit_id) and commit_id not in plain:
                negated.setdefault(commit_id, None)

        tokens = [RevisionToken(c) for c in plain]
        tokens.extend(RevisionToken(c, negated=True) for c in negated)
        return cls(tokens=tuple(tokens))

    @classmethod
    def from_tokens(cls, tokens: Iterable[RevisionToken]) -> RevisionRange:
        """Rebuild a range from already signed tokens."""
        tokens = list(tokens)
        return cls.build(
            include=(t.commit_id for t in tokens if not t.negated),
            exclude=(t.commit_id for t in tokens if t.negated),
        )

    @classmethod
    def empty(cls) -> RevisionRange:
        return cls()

    @property
    def includes(self) -> list[CommitId]:
        return [t.commit_id for t in self.tokens if not t.negated]

    @property
    def excludes(self) -> list[CommitId]:
        return [t.commit_id for t in self.tokens if t.negated]

    @property
    def is_empty(self) -> bool:
        """True when nothing is included, so the range names no commits."""
        return not self.includes

    def __iter__(self) -> Iterator[RevisionToken]:
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)


@dataclass(frozen=True)
class OperativeRevision:
    """The object an update is about and its type.

    For deletes this is the old id, otherwise the new id.
    """

    rev_id: CommitId
    rev_type: ObjectType


@dataclass(frozen=True)
class ResolvedRange:
    """Range built for one update together with the commits it evaluates to.

    Attributes:
        range: The signed token range.
        commits: New commit ids, in the order the graph reports them.
    """

    range: RevisionRange
    commits: list[CommitId] = field(default_factory=list)


@dataclass
class RefUpdateReport:
    """Outcome of processing one ref update within a push.

    Attributes:
        event: The update that was processed.
        kind: Create, update or delete.
        operative: Operative revision, if it could be determined.
        description: Human-meaningful label for the operative revision.
        range: Resolved token range (empty for deletes and failures).
        commits: Newly introduced commits not reported elsewhere.
        error: Error message if processing this ref failed.
    """

    event: UpdateEvent
    kind: UpdateKind
    operative: OperativeRevision | None = None
    description: str | None = None
    range: RevisionRange = field(default_factory=RevisionRange.empty)
    commits: list[CommitId] = field(default_factory=list)
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None
