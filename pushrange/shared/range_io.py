"""Text serialization of RevisionRange.

One token per line, plain ids as-is and excluded ids prefixed with '^'.
This is the format 'git rev-list --stdin' reads, so a serialized range can be
piped straight into git.
"""

from pushrange.domain.entities import RevisionRange, RevisionToken


def format_range(revision_range: RevisionRange) -> str:
    """Serialize a range, one token per line.

    Args:
        revision_range: Range to serialize.

    Returns:
        Newline-terminated token lines, or "" for a range without tokens.
    """
    return "".join(f"{token}\n" for token in revision_range)


def parse_range(text: str) -> RevisionRange:
    """Parse serialized range text.

    Blank lines are ignored; duplicate tokens collapse.

    Args:
        text: Output of format_range (or any rev-list --stdin spec of ids).

    Returns:
        The RevisionRange.

    Raises:
        ValueError: If a line is a bare '^'.
    """
    tokens = [RevisionToken.parse(line) for line in text.splitlines() if line.strip()]
    return RevisionRange.from_tokens(tokens)
