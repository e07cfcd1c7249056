"""Parametrized help tests for all CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from profilegate.cli import cli

# (CLI args, expected keywords in output)
HELP_COMMANDS: list[tuple[list[str], list[str]]] = [
    # -- request group --
    (["request", "--help"], ["send", "respond", "cancel", "list", "show"]),
    (["request", "send", "--help"], ["SENDER_ID", "RECEIVER_ID"]),
    (["request", "respond", "--help"], ["--accept", "--decline", "RESPONDER_ID"]),
    (["request", "cancel", "--help"], ["CANCELLER_ID"]),
    (["request", "list", "--help"], ["--sent"]),
    (["request", "show", "--help"], ["REQUEST_ID"]),
    # -- friends group --
    (["friends", "--help"], ["list", "mutual", "status", "remove"]),
    (["friends", "list", "--help"], ["USER_ID"]),
    (["friends", "mutual", "--help"], []),
    (["friends", "status", "--help"], ["VIEWER_ID", "OTHER_ID"]),
    (["friends", "remove", "--help"], ["FRIEND_ID"]),
    # -- audience group --
    (["audience", "--help"], ["show", "set", "bulk-set", "entry", "clear-entry"]),
    (["audience", "show", "--help"], ["OWNER_ID"]),
    (["audience", "set", "--help"], ["FIELD_KEY", "LEVEL"]),
    (["audience", "bulk-set", "--help"], ["FIELD=LEVEL"]),
    (["audience", "entry", "--help"], ["ENTRY_ID"]),
    (["audience", "clear-entry", "--help"], ["ENTRY_ID"]),
    # -- profile group --
    (["profile", "--help"], ["put", "view"]),
    (["profile", "put", "--help"], ["SOURCE"]),
    (["profile", "view", "--help"], ["--viewer", "--from-file"]),
    # -- notifications group --
    (["notifications", "--help"], ["list", "read"]),
    (["notifications", "list", "--help"], ["--unread"]),
    (["notifications", "read", "--help"], ["USER_ID"]),
]


def _help_id(args_keywords: tuple[list[str], list[str]]) -> str:
    """Generate a readable test ID from args."""
    args, _ = args_keywords
    return "_".join(a for a in args if a != "--help")


@pytest.mark.parametrize(
    "args,expected_keywords",
    HELP_COMMANDS,
    ids=[_help_id(item) for item in HELP_COMMANDS],
)
def test_command_help(cli_runner: CliRunner, args: list[str], expected_keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    for kw in expected_keywords:
        assert kw in result.output, f"Expected '{kw}' in help output for {args}"
