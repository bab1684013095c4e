##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
The `store` package contains the sorted key-value stores the backup system table runs on.

Modules:
    store_base.py: Abstract `SortedStore`, `TableHandle`, and `Scanner` classes.
    store_types.py: Descriptors, scans, mutations, and rows exchanged with a store.
    store_factory.py: The `StoreFactory` and `open_store` helper.

Subpackages:
    memory: A process-local store, used in local mode and in tests.
    redis: A store laid out over Redis sorted sets and hashes.
    sqlite: A store backed by a single SQLite database file.
"""

from backup_meta.store.memory import MemoryStore
from backup_meta.store.sqlite import SQLiteStore
from backup_meta.store.store_base import Scanner, SortedStore, TableHandle
from backup_meta.store.store_factory import StoreFactory, open_store, store_factory
from backup_meta.store.store_types import ColumnFamilyDescriptor, Row, RowMutation, Scan, TableDescriptor


__all__ = [
    "ColumnFamilyDescriptor",
    "MemoryStore",
    "Row",
    "RowMutation",
    "SQLiteStore",
    "Scan",
    "Scanner",
    "SortedStore",
    "StoreFactory",
    "TableDescriptor",
    "TableHandle",
    "open_store",
    "store_factory",
]
