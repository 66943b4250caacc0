"""Git command-line adapter for commit graph queries."""

from pushrange.adapters.git_cmd.git_adapter import GitGraph

__all__ = ["GitGraph"]
