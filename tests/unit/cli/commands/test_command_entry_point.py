##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Tests for the `command_entry_point.py` file of the `cli/` folder.
"""

from argparse import Namespace

import pytest
from pytest_mock import MockerFixture

from backup_meta.cli.commands.command_entry_point import CommandEntryPoint


class RecordingCommand(CommandEntryPoint):
    """A command that records the table it was run against."""

    def __init__(self):
        self.seen = None

    def add_parser(self, subparsers):
        subparsers.add_parser("record").set_defaults(func=self.process_command)

    def execute(self, args, system_table):
        self.seen = (args, system_table)


def test_abstract_methods_are_required():
    """Test that `CommandEntryPoint` can't be instantiated without its abstract methods."""
    with pytest.raises(TypeError):
        CommandEntryPoint()  # pylint: disable=abstract-class-instantiated


def test_process_command_runs_execute_on_open_table(mocker: MockerFixture):
    """
    Test that `process_command` opens the system table from the args and hands it to `execute`.

    Args:
        mocker: PyTest mocker fixture.
    """
    mock_table = mocker.MagicMock()
    mock_open = mocker.patch("backup_meta.cli.commands.command_entry_point.open_system_table")
    mock_open.return_value.__enter__.return_value = mock_table

    command = RecordingCommand()
    args = Namespace(config=None, local=True)
    command.process_command(args)

    mock_open.assert_called_once_with(args)
    assert command.seen == (args, mock_table)
    mock_open.return_value.__exit__.assert_called_once()
