##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Tests for the `history.py` file of the `cli/` folder.
"""

import logging

import pytest
from _pytest.capture import CaptureFixture

from backup_meta.cli.commands.history import HistoryCommand
from tests.fixture_types import FixtureCallable, FixtureSystemTable


def run_history(create_parser: FixtureCallable, system_table: FixtureSystemTable, *cli_args: str):
    """
    Parse `history` arguments and run the command.

    Args:
        create_parser: A function that creates a parser for a command.
        system_table: The system table to run against.
        cli_args: The arguments following `history`.
    """
    command = HistoryCommand()
    args = create_parser(command).parse_args(["history", *cli_args])
    command.execute(args, system_table)


def printed_ids(output: str):
    """Pick the backup ids out of the rendered history table."""
    return [line.split()[0] for line in output.strip().splitlines()[2:]]


def test_history_defaults(create_parser: FixtureCallable):
    """
    Ensure the `history` options default to ten sessions without filters.

    Args:
        create_parser: A function that creates a parser for a command.
    """
    command = HistoryCommand()
    args = create_parser(command).parse_args(["history"])
    assert args.func.__name__ == command.process_command.__name__
    assert (args.num, args.root, args.table, args.completed) == (10, None, None, False)


def test_history_lists_most_recent_first(
    create_parser: FixtureCallable, system_table_with_history: FixtureSystemTable, capsys: CaptureFixture
):
    """
    Ensure sessions are printed newest first and capped at `--num`.

    Args:
        create_parser: A function that creates a parser for a command.
        system_table_with_history: A system table holding sample sessions.
        capsys: PyTest capsys fixture.
    """
    run_history(create_parser, system_table_with_history, "-n", "2")
    output = capsys.readouterr().out
    assert "Backup ID" in output
    assert printed_ids(output) == ["backup_5000", "a_backup_4000"]


@pytest.mark.parametrize(
    "cli_args, expected",
    [
        (["--completed"], ["a_backup_4000", "backup_2000", "backup_1000"]),
        (["--root", "/r1"], ["backup_3000", "backup_2000", "backup_1000"]),
        (["--table", "t2", "--completed"], ["a_backup_4000", "backup_1000"]),
    ],
)
def test_history_filters(
    create_parser: FixtureCallable,
    system_table_with_history: FixtureSystemTable,
    capsys: CaptureFixture,
    cli_args,
    expected,
):
    """
    Ensure the CLI filters are combined.

    Args:
        create_parser: A function that creates a parser for a command.
        system_table_with_history: A system table holding sample sessions.
        capsys: PyTest capsys fixture.
        cli_args: The filter options to pass.
        expected: The backup ids expected in the output.
    """
    run_history(create_parser, system_table_with_history, *cli_args)
    assert printed_ids(capsys.readouterr().out) == expected


def test_history_empty(
    create_parser: FixtureCallable,
    system_table: FixtureSystemTable,
    caplog: pytest.LogCaptureFixture,
    capsys: CaptureFixture,
):
    """
    Ensure an empty history logs a message instead of printing a table.

    Args:
        create_parser: A function that creates a parser for a command.
        system_table: An empty backup system table.
        caplog: PyTest log capture fixture.
        capsys: PyTest capsys fixture.
    """
    with caplog.at_level(logging.INFO):
        run_history(create_parser, system_table)
    assert "No backup sessions found." in caplog.text
    assert capsys.readouterr().out == ""
