##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
CLI module for displaying the backup session history.
"""

import logging
from argparse import ArgumentDefaultsHelpFormatter, ArgumentParser, Namespace
from typing import List

from tabulate import tabulate

from backup_meta.cli.commands.command_entry_point import CommandEntryPoint
from backup_meta.cli.utils import format_timestamp
from backup_meta.common.enums import BackupState
from backup_meta.system_table import BackupInfo, BackupSystemTable, root_filter, state_filter, table_filter


LOG = logging.getLogger(__name__)

HEADERS = ["Backup ID", "Type", "Root", "State", "Started", "Completed", "Tables"]


class HistoryCommand(CommandEntryPoint):
    """
    Handles the `history` CLI command for listing past backup sessions, most recent first.

    Methods:
        add_parser: Adds the `history` command to the CLI parser.
        execute: Queries the session history and prints it as a table.
    """

    def add_parser(self, subparsers: ArgumentParser):
        """
        Add the `history` command parser to the CLI argument parser.

        Parameters:
            subparsers (ArgumentParser): The subparsers object to which the `history` command parser will be added.
        """
        history: ArgumentParser = subparsers.add_parser(
            "history",
            help="Show past backup sessions, most recent first.",
            formatter_class=ArgumentDefaultsHelpFormatter,
        )
        history.set_defaults(func=self.process_command)
        history.add_argument("-n", "--num", type=int, default=10, help="The maximum number of sessions to show.")
        history.add_argument("--root", type=str, default=None, help="Only show sessions for this backup root.")
        history.add_argument("--table", type=str, default=None, help="Only show sessions that backed up this table.")
        history.add_argument(
            "--completed", action="store_true", help="Only show sessions that completed successfully."
        )

    def execute(self, args: Namespace, system_table: BackupSystemTable):
        """
        Print the sessions matching the CLI filters.

        Args:
            args: Parsed CLI arguments.
            system_table: The open backup system table.
        """
        filters = []
        if args.completed:
            filters.append(state_filter(BackupState.COMPLETE))
        if args.root:
            filters.append(root_filter(args.root))
        if args.table:
            filters.append(table_filter(args.table))

        history: List[BackupInfo] = system_table.get_backup_history_filtered(args.num, *filters)
        if not history:
            LOG.info("No backup sessions found.")
            return

        rows = [
            [
                info.backup_id,
                info.backup_type.value,
                info.backup_root_dir,
                info.state.value,
                format_timestamp(info.start_ts),
                format_timestamp(info.complete_ts),
                ",".join(info.tables),
            ]
            for info in history
        ]
        print(tabulate(rows, headers=HEADERS))
