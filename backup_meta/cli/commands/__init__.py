##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
backup_meta CLI Commands Package.

Each module holds one command, built around the `CommandEntryPoint` interface.

Modules:
    command_entry_point: Defines the abstract base class `CommandEntryPoint` for all CLI commands.
    backup_set: Implements the `set` command for managing named backup sets.
    history: Implements the `history` command for listing past backup sessions.
    info: Implements the `info` command for displaying configuration and store diagnostics.
    wals: Implements the `wals` command for listing registered WAL files.
"""

from backup_meta.cli.commands.backup_set import BackupSetCommand
from backup_meta.cli.commands.history import HistoryCommand
from backup_meta.cli.commands.info import InfoCommand
from backup_meta.cli.commands.wals import WALsCommand


# Keep these in alphabetical order
ALL_COMMANDS = [
    HistoryCommand(),
    InfoCommand(),
    BackupSetCommand(),
    WALsCommand(),
]
