##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
CLI module for displaying configuration and store information.

The `info` command shows the configuration backup_meta loaded, the store it connected
to, and whether any backup session has been recorded. Useful for debugging a setup.
"""

import logging
from argparse import ArgumentParser, Namespace

from tabulate import tabulate

from backup_meta import VERSION
from backup_meta.cli.commands.command_entry_point import CommandEntryPoint
from backup_meta.config.configfile import default_config_info
from backup_meta.system_table import BackupSystemTable


LOG = logging.getLogger(__name__)


class InfoCommand(CommandEntryPoint):
    """
    Handles the `info` CLI command.

    Methods:
        add_parser: Adds the `info` command to the CLI parser.
        execute: Prints configuration and store information.
    """

    def add_parser(self, subparsers: ArgumentParser):
        """
        Add the `info` command parser to the CLI argument parser.

        Parameters:
            subparsers (ArgumentParser): The subparsers object to which the `info` command parser will be added.
        """
        info: ArgumentParser = subparsers.add_parser(
            "info",
            help="Display info about the backup_meta configuration and the store it uses.",
        )
        info.set_defaults(func=self.process_command)

    def execute(self, args: Namespace, system_table: BackupSystemTable):
        """
        Print configuration and store information.

        Args:
            args: Parsed CLI arguments.
            system_table: The open backup system table.
        """
        store = system_table.connection
        conf = dict(default_config_info())
        conf.update(
            {
                "version": VERSION,
                "store": store.get_name(),
                "store_version": store.get_version(),
                "system_table": system_table.table_name,
                "has_backup_sessions": system_table.has_backup_sessions(),
                "backup_sets": len(system_table.list_backup_sets()),
            }
        )
        print(tabulate(conf.items(), tablefmt="presto"))
