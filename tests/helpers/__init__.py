"""Test helper utilities for the pushrange test suite."""

from tests.helpers.cli_assertions import (
    assert_command_failed,
    assert_command_success,
    assert_error_message,
    assert_files_created,
    assert_output_contains,
    assert_output_matches,
    assert_success_indicator,
)
from tests.helpers.fake_graph import FakeGraph, oid

__all__ = [
    "FakeGraph",
    "oid",
    "assert_command_success",
    "assert_command_failed",
    "assert_output_matches",
    "assert_output_contains",
    "assert_error_message",
    "assert_success_indicator",
    "assert_files_created",
]
