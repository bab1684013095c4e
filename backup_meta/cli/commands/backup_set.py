##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
CLI module for managing named backup sets.

This module defines the `BackupSetCommand` class, which handles the `set` command
and its `list`, `describe`, `add`, `remove`, and `delete` subcommands.
"""

import logging
from argparse import ArgumentDefaultsHelpFormatter, ArgumentParser, Namespace

from backup_meta.cli.commands.command_entry_point import CommandEntryPoint
from backup_meta.system_table import BackupSystemTable


LOG = logging.getLogger(__name__)


class BackupSetCommand(CommandEntryPoint):
    """
    Handles the `set` CLI command for managing named backup sets.

    Methods:
        add_parser: Adds the `set` command and its subcommands to the CLI parser.
        execute: Dispatches to the handler of the chosen subcommand.
    """

    def add_parser(self, subparsers: ArgumentParser):
        """
        Add the `set` command parser to the CLI argument parser.

        Parameters:
            subparsers (ArgumentParser): The subparsers object to which the `set` command parser will be added.
        """
        set_parser: ArgumentParser = subparsers.add_parser(
            "set",
            help="Manage named backup sets.",
            formatter_class=ArgumentDefaultsHelpFormatter,
        )
        set_parser.set_defaults(func=self.process_command)
        set_commands = set_parser.add_subparsers(dest="set_command", required=True)

        set_commands.add_parser("list", help="List the names of every backup set.")

        describe = set_commands.add_parser("describe", help="Show the tables of a backup set.")
        describe.add_argument("name", type=str, help="The name of the backup set.")

        add = set_commands.add_parser("add", help="Add tables to a backup set, creating it if needed.")
        add.add_argument("name", type=str, help="The name of the backup set.")
        add.add_argument("tables", type=str, nargs="+", help="The tables to add.")

        remove = set_commands.add_parser("remove", help="Remove tables from a backup set.")
        remove.add_argument("name", type=str, help="The name of the backup set.")
        remove.add_argument("tables", type=str, nargs="+", help="The tables to remove.")

        delete = set_commands.add_parser("delete", help="Delete a backup set.")
        delete.add_argument("name", type=str, help="The name of the backup set.")

    def execute(self, args: Namespace, system_table: BackupSystemTable):
        """
        Run the chosen `set` subcommand.

        Args:
            args: Parsed CLI arguments.
            system_table: The open backup system table.
        """
        handlers = {
            "list": self._list,
            "describe": self._describe,
            "add": self._add,
            "remove": self._remove,
            "delete": self._delete,
        }
        handlers[args.set_command](args, system_table)

    def _list(self, args: Namespace, system_table: BackupSystemTable):  # pylint: disable=unused-argument
        names = system_table.list_backup_sets()
        if not names:
            LOG.info("No backup sets found.")
            return
        for name in names:
            print(name)

    def _describe(self, args: Namespace, system_table: BackupSystemTable):
        tables = system_table.describe_backup_set(args.name)
        if tables is None:
            LOG.warning(f"Backup set '{args.name}' not found.")
            return
        print(f"{args.name}={','.join(tables)}")

    def _add(self, args: Namespace, system_table: BackupSystemTable):
        system_table.add_to_backup_set(args.name, args.tables)
        LOG.info(f"Added [{', '.join(args.tables)}] to backup set '{args.name}'.")

    def _remove(self, args: Namespace, system_table: BackupSystemTable):
        system_table.remove_from_backup_set(args.name, args.tables)

    def _delete(self, args: Namespace, system_table: BackupSystemTable):
        system_table.delete_backup_set(args.name)
        LOG.info(f"Deleted backup set '{args.name}'.")
