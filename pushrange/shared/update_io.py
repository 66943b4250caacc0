"""Parsing of hook input into UpdateEvents.

post-receive and pre-receive hooks get one line per updated ref on stdin:
"<old-id> <new-id> <ref-name>". The update hook gets the same three values
as arguments, in the order ref-name, old-id, new-id.
"""

from collections.abc import Iterable

from pushrange.domain.entities import UpdateEvent
from pushrange.domain.exceptions import InvalidUpdateEventError


def parse_update_line(line: str) -> UpdateEvent:
    """Parse one "<old> <new> <ref>" line.

    Args:
        line: Hook input line, with or without trailing newline.

    Returns:
        The UpdateEvent described by the line.

    Raises:
        InvalidUpdateEventError: If the line does not have three fields or
            describes an invalid transition.
    """
    parts = line.split()
    if len(parts) != 3:
        raise InvalidUpdateEventError(
            f"Malformed update line: '{line.rstrip()}'",
            hint="Expected '<old-id> <new-id> <ref-name>'",
        )
    old_id, new_id, ref_name = parts
    return UpdateEvent(ref_name=ref_name, old_id=old_id, new_id=new_id)


def parse_update_lines(lines: Iterable[str]) -> list[UpdateEvent]:
    """Parse hook input, skipping blank lines.

    Args:
        lines: Lines read from the hook's stdin.

    Returns:
        UpdateEvents in input order.

    Raises:
        InvalidUpdateEventError: On the first malformed line.
    """
    return [parse_update_line(line) for line in lines if line.strip()]


def format_update_line(event: UpdateEvent) -> str:
    """Format an UpdateEvent the way git feeds it to post-receive."""
    return f"{event.old_id} {event.new_id} {event.ref_name}"
