##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Defines the abstract base class for backup_meta CLI commands.

Every command reads or edits the backup system table, so the base class takes care
of opening the table (and the store behind it) and closing both once the command is done.
Subclasses only describe their arguments and act on the open table.
"""

from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace

from backup_meta.cli.utils import open_system_table
from backup_meta.system_table import BackupSystemTable


class CommandEntryPoint(ABC):
    """
    Abstract base class for a backup_meta CLI command entry point.

    Methods:
        add_parser: Adds the parser for a specific command to the main `ArgumentParser`.
        process_command: Opens the backup system table and runs the command against it.
        execute: Executes the logic for this CLI command.
    """

    @abstractmethod
    def add_parser(self, subparsers: ArgumentParser):
        """Add the parser for this command to the main `ArgumentParser`."""
        raise NotImplementedError("Subclasses of `CommandEntryPoint` must implement an `add_parser` method.")

    @abstractmethod
    def execute(self, args: Namespace, system_table: BackupSystemTable):
        """
        Execute the logic for this CLI command.

        Args:
            args: Parsed CLI arguments.
            system_table: The open backup system table.
        """
        raise NotImplementedError("Subclasses of `CommandEntryPoint` must implement an `execute` method.")

    def process_command(self, args: Namespace):
        """
        Open the backup system table described by `args` and run this command against it.

        Args:
            args: Parsed CLI arguments.
        """
        with open_system_table(args) as system_table:
            self.execute(args, system_table)
