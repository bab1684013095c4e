##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Tests for the `wals.py` file of the `cli/` folder.
"""

import logging

import pytest
from _pytest.capture import CaptureFixture

from backup_meta.cli.commands.wals import WALsCommand
from tests.fixture_types import FixtureCallable, FixtureSystemTable


def run_wals(create_parser: FixtureCallable, system_table: FixtureSystemTable, *cli_args: str):
    """
    Parse `wals` arguments and run the command.

    Args:
        create_parser: A function that creates a parser for a command.
        system_table: The system table to run against.
        cli_args: The arguments following `wals`.
    """
    command = WALsCommand()
    command.execute(create_parser(command).parse_args(["wals", *cli_args]), system_table)


def test_wals_lists_registered_files(
    create_parser: FixtureCallable, system_table: FixtureSystemTable, capsys: CaptureFixture
):
    """
    Ensure every registered WAL file is printed, or only those of `--root`.

    Args:
        create_parser: A function that creates a parser for a command.
        system_table: A backup system table on an in-memory store.
        capsys: PyTest capsys fixture.
    """
    system_table.add_wal_files(["/wals/walA"], "b1", "/r1")
    system_table.add_wal_files(["/wals/walB"], "b2", "/r2")

    run_wals(create_parser, system_table)
    output = capsys.readouterr().out
    assert "/wals/walA" in output and "/wals/walB" in output

    run_wals(create_parser, system_table, "--root", "/r2")
    output = capsys.readouterr().out
    assert "/wals/walA" not in output
    assert "/wals/walB" in output


def test_wals_empty(
    create_parser: FixtureCallable,
    system_table: FixtureSystemTable,
    caplog: pytest.LogCaptureFixture,
    capsys: CaptureFixture,
):
    """
    Ensure an empty registry logs a message instead of printing a table.

    Args:
        create_parser: A function that creates a parser for a command.
        system_table: A backup system table on an in-memory store.
        caplog: PyTest log capture fixture.
        capsys: PyTest capsys fixture.
    """
    with caplog.at_level(logging.INFO):
        run_wals(create_parser, system_table)
    assert "No WAL files registered." in caplog.text
    assert capsys.readouterr().out == ""
