##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
The `system_table` package holds the backup system table: its row-key schema,
the records stored in it, and the accessors and queries built on top of a sorted store.

Modules:
    row_keys.py: Key prefixes, column names, and key/range builders.
    set_algebra.py: Order-preserving union and difference of table names.
    models.py: `BackupInfo`, `WALItem`, and the payload codecs.
    wal_cursor.py: The lazy cursor over registered WAL files.
    history.py: Queries over past backup sessions.
    backup_system_table.py: The `BackupSystemTable` class.
"""

from backup_meta.system_table.backup_system_table import BackupSystemTable
from backup_meta.system_table.history import root_filter, state_filter, table_filter, type_filter
from backup_meta.system_table.models import BackupInfo, TableServerTimestamp, WALItem
from backup_meta.system_table.wal_cursor import WALCursor


__all__ = [
    "BackupInfo",
    "BackupSystemTable",
    "TableServerTimestamp",
    "WALCursor",
    "WALItem",
    "root_filter",
    "state_filter",
    "table_filter",
    "type_filter",
]
