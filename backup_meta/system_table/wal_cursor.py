##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
A lazy cursor over the WAL files registered in the backup system table.
"""

import logging
from types import TracebackType
from typing import Iterator, Optional, Type

from backup_meta.exceptions import MalformedRecordError, UnsupportedOperationError
from backup_meta.store.store_base import Scanner, TableHandle
from backup_meta.store.store_types import Row
from backup_meta.system_table.models import WALItem
from backup_meta.system_table.row_keys import ENCODING, Q_BACKUP_ID, Q_FILE, Q_ROOT


LOG = logging.getLogger(__name__)


class WALCursor:
    """
    Forward-only iterator over `wals:` rows.

    Rows are pulled from the scanner one at a time. The first time the scan runs dry the
    cursor closes its scanner and its table handle; closing again is a no-op. Callers that
    stop iterating early should call `close` themselves, or use the cursor as a context manager.

    Attributes:
        root: When set, only WAL files registered for this backup root are returned.

    Methods:
        has_next: Check whether another WAL file is available.
        next: Return the next WAL file.
        remove: Always fails; the cursor is read-only.
        close: Release the scanner and table handle.
    """

    def __init__(self, table: TableHandle, scanner: Scanner, root: Optional[str] = None):
        """
        Initialize the cursor.

        Args:
            table: The table handle the scanner was opened on. The cursor takes ownership of it.
            scanner: A scanner over the `wals:` rows. The cursor takes ownership of it.
            root: Only return WAL files registered for this backup root.
        """
        self._table: TableHandle = table
        self._scanner: Scanner = scanner
        self.root: Optional[str] = root
        self._pending: Optional[Row] = None
        self._closed: bool = False

    @property
    def closed(self) -> bool:
        """True once the cursor has released its resources."""
        return self._closed

    def _matches_root(self, row: Row) -> bool:
        if self.root is None:
            return True
        return row.value(Q_ROOT) == self.root.encode(ENCODING)

    def has_next(self) -> bool:
        """
        Check whether another WAL file is available.

        Returns:
            True if `next` will return a WAL file. Once this returns False it always does.
        """
        if self._pending is not None:
            return True
        if self._closed:
            return False

        row = self._scanner.next()
        while row is not None and not self._matches_root(row):
            row = self._scanner.next()

        if row is None:
            LOG.debug("WAL cursor exhausted.")
            self.close()
            return False

        self._pending = row
        return True

    def next(self) -> WALItem:
        """
        Return the next WAL file.

        Returns:
            The next registered WAL file in row key order.

        Raises:
            StopIteration: If there are no more WAL files.
            MalformedRecordError: If the row is missing one of its columns.
        """
        if not self.has_next():
            raise StopIteration
        row, self._pending = self._pending, None
        return self._decode(row)

    @staticmethod
    def _decode(row: Row) -> WALItem:
        values = {}
        for qualifier in (Q_BACKUP_ID, Q_FILE, Q_ROOT):
            value = row.value(qualifier)
            if value is None:
                raise MalformedRecordError(
                    f"WAL row {row.key!r} has no '{qualifier.decode(ENCODING)}' column."
                )
            values[qualifier] = value.decode(ENCODING)
        return WALItem(backup_id=values[Q_BACKUP_ID], wal_file=values[Q_FILE], backup_root=values[Q_ROOT])

    def remove(self):
        """
        Removing WAL files through the cursor isn't supported.

        Raises:
            UnsupportedOperationError: Always.
        """
        raise UnsupportedOperationError("WALCursor does not support remove; use delete_wal_files instead.")

    def close(self):
        """Release the scanner and table handle. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._pending = None
        try:
            self._scanner.close()
        finally:
            self._table.close()

    def __iter__(self) -> Iterator[WALItem]:
        return self

    def __next__(self) -> WALItem:
        return self.next()

    def __enter__(self) -> "WALCursor":
        return self

    def __exit__(self, exc_type: Type[Exception], exc_value: Exception, traceback: TracebackType):
        self.close()
