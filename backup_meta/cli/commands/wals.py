##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
CLI module for listing the WAL files registered as backed up.
"""

import logging
from argparse import ArgumentDefaultsHelpFormatter, ArgumentParser, Namespace

from tabulate import tabulate

from backup_meta.cli.commands.command_entry_point import CommandEntryPoint
from backup_meta.system_table import BackupSystemTable


LOG = logging.getLogger(__name__)


class WALsCommand(CommandEntryPoint):
    """
    Handles the `wals` CLI command.

    Methods:
        add_parser: Adds the `wals` command to the CLI parser.
        execute: Walks the WAL registry and prints it as a table.
    """

    def add_parser(self, subparsers: ArgumentParser):
        """
        Add the `wals` command parser to the CLI argument parser.

        Parameters:
            subparsers (ArgumentParser): The subparsers object to which the `wals` command parser will be added.
        """
        wals: ArgumentParser = subparsers.add_parser(
            "wals",
            help="List the WAL files registered as backed up.",
            formatter_class=ArgumentDefaultsHelpFormatter,
        )
        wals.set_defaults(func=self.process_command)
        wals.add_argument("--root", type=str, default=None, help="Only list WAL files registered for this root.")

    def execute(self, args: Namespace, system_table: BackupSystemTable):
        """
        Print every registered WAL file.

        Args:
            args: Parsed CLI arguments.
            system_table: The open backup system table.
        """
        with system_table.get_wal_files_iterator(args.root) as cursor:
            rows = [[item.wal_file, item.backup_id, item.backup_root] for item in cursor]

        if not rows:
            LOG.info("No WAL files registered.")
            return
        print(tabulate(rows, headers=["WAL File", "Backup ID", "Root"]))
