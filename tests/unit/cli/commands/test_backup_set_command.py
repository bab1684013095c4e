##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Tests for the `backup_set.py` file of the `cli/` folder.
"""

import logging

import pytest
from _pytest.capture import CaptureFixture

from backup_meta.cli.commands.backup_set import BackupSetCommand
from tests.fixture_types import FixtureCallable, FixtureSystemTable


@pytest.fixture
def set_parser(create_parser: FixtureCallable):
    """
    A parser with the `set` command registered.

    Args:
        create_parser: A function that creates a parser for a command.

    Returns:
        The parser and the command it was built from.
    """
    command = BackupSetCommand()
    return create_parser(command), command


def test_set_parser_sets_func(set_parser):
    """
    Ensure the `set` command sets the correct default function and subcommand.

    Args:
        set_parser: A parser with the `set` command registered.
    """
    parser, command = set_parser
    args = parser.parse_args(["set", "remove", "s1", "t1", "t2"])
    assert args.func.__name__ == command.process_command.__name__
    assert args.set_command == "remove"
    assert args.name == "s1"
    assert args.tables == ["t1", "t2"]


def test_set_requires_subcommand(set_parser):
    """
    Ensure the `set` command refuses to run without a subcommand.

    Args:
        set_parser: A parser with the `set` command registered.
    """
    parser, _ = set_parser
    with pytest.raises(SystemExit):
        parser.parse_args(["set"])


def test_add_describe_list_delete(set_parser, system_table: FixtureSystemTable, capsys: CaptureFixture):
    """
    Run the `set` subcommands against an in-memory system table.

    Args:
        set_parser: A parser with the `set` command registered.
        system_table: A backup system table on an in-memory store.
        capsys: PyTest capsys fixture.
    """
    parser, command = set_parser

    command.execute(parser.parse_args(["set", "add", "s1", "t1", "t2"]), system_table)
    command.execute(parser.parse_args(["set", "add", "s1", "t2", "t3"]), system_table)
    command.execute(parser.parse_args(["set", "describe", "s1"]), system_table)
    assert capsys.readouterr().out.strip() == "s1=t1,t2,t3"

    command.execute(parser.parse_args(["set", "add", "s0", "t9"]), system_table)
    command.execute(parser.parse_args(["set", "list"]), system_table)
    assert capsys.readouterr().out.split() == ["s0", "s1"]

    command.execute(parser.parse_args(["set", "remove", "s1", "t1", "t2", "t3"]), system_table)
    command.execute(parser.parse_args(["set", "delete", "s0"]), system_table)
    assert system_table.list_backup_sets() == []


def test_describe_missing_set(
    set_parser, system_table: FixtureSystemTable, caplog: pytest.LogCaptureFixture, capsys: CaptureFixture
):
    """
    Ensure describing an unknown set warns instead of printing.

    Args:
        set_parser: A parser with the `set` command registered.
        system_table: A backup system table on an in-memory store.
        caplog: PyTest log capture fixture.
        capsys: PyTest capsys fixture.
    """
    parser, command = set_parser
    with caplog.at_level(logging.WARNING):
        command.execute(parser.parse_args(["set", "describe", "nope"]), system_table)
    assert "Backup set 'nope' not found." in caplog.text
    assert capsys.readouterr().out == ""
