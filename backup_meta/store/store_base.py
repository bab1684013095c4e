##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
This module defines the abstract base classes for sorted key-value stores.

A store holds any number of tables. Each table maps a byte-string row key to a set of
cells grouped into column groups ("families"), and rows are kept in ascending byte order
of their keys so that a range scan returns every row of a key prefix contiguously.

The classes here only define what the backup system table relies on:

- `SortedStore`: a long-lived connection with administrative operations (create a table,
  check that it exists and is available) that hands out short-lived table handles.
- `TableHandle`: single-row put/get/delete plus range scans on one table.
- `Scanner`: an ordered, closeable iterator over the rows matched by a `Scan`.

Concrete implementations live in the `memory`, `redis`, and `sqlite` subpackages.
"""

import logging
from abc import ABC, abstractmethod
from types import TracebackType
from typing import Dict, Iterator, List, Optional, Type

from backup_meta.store.store_types import Row, RowMutation, Scan, TableDescriptor


LOG = logging.getLogger(__name__)


def check_max_versions(max_versions: int):
    """
    Make sure a version cap asked of a store is one it can honor.

    Every store here retains a single version of each cell, so any cap of at least
    one returns that version.

    Args:
        max_versions: The requested version cap.

    Raises:
        ValueError: If `max_versions` is less than one.
    """
    if max_versions < 1:
        raise ValueError(f"max_versions must be at least 1, got {max_versions}.")


class Scanner(ABC):
    """
    Base class for an ordered iterator over the rows matched by a `Scan`.

    A scanner holds store resources (a cursor, a page of results, etc.) until it is closed.
    Closing is idempotent: `_release` runs at most once no matter how often `close` is called.

    Attributes:
        scan (Scan): The scan this scanner serves.

    Methods:
        next: Return the next row, or None once the scan is exhausted.
        close: Release the resources held by this scanner.
    """

    def __init__(self, scan: Scan):
        """
        Initialize the scanner.

        Args:
            scan: The scan this scanner serves.
        """
        self.scan: Scan = scan
        self._closed: bool = False

    @abstractmethod
    def _next_row(self) -> Optional[Row]:
        """
        Fetch the next row from the store.

        Returns:
            The next row in ascending key order, or None once there are no more rows.
        """
        raise NotImplementedError("Subclasses of `Scanner` must implement a `_next_row` method.")

    def _release(self):
        """Release any store resources held by this scanner. Called exactly once."""

    @property
    def closed(self) -> bool:
        """True once this scanner has been closed."""
        return self._closed

    def next(self) -> Optional[Row]:
        """
        Return the next row of the scan.

        Returns:
            The next row, or None if the scan is exhausted or the scanner is closed.
        """
        if self._closed:
            return None
        return self._next_row()

    def close(self):
        """Release the resources held by this scanner."""
        if self._closed:
            return
        self._closed = True
        self._release()

    def __iter__(self) -> Iterator[Row]:
        return self

    def __next__(self) -> Row:
        row = self.next()
        if row is None:
            raise StopIteration
        return row

    def __enter__(self) -> "Scanner":
        return self

    def __exit__(self, exc_type: Type[Exception], exc_value: Exception, traceback: TracebackType):
        self.close()


class TableHandle(ABC):
    """
    Base class for a short-lived handle on one table of a sorted store.

    Handles are opened per call with `SortedStore.get_table` and closed when the call
    is done, ideally by using them as a context manager.

    Attributes:
        name (str): The name of the table this handle operates on.

    Methods:
        put: Write columns to a single row.
        put_rows: Write several rows, one at a time.
        get: Read the columns of a single row.
        exists: Check whether a row holds any columns in a column group.
        delete: Delete the columns of a single row.
        get_scanner: Open a scanner over a range of rows.
        close: Release the handle.
    """

    def __init__(self, name: str):
        """
        Initialize the table handle.

        Args:
            name: The name of the table this handle operates on.
        """
        self.name: str = name
        self._closed: bool = False

    @abstractmethod
    def put(self, row: bytes, family: str, columns: Dict[bytes, bytes]):
        """
        Write columns to a single row. Columns not named in `columns` are left untouched.

        Args:
            row: The row key.
            family: The column group to write to.
            columns: A mapping of column qualifier to value.
        """
        raise NotImplementedError("Subclasses of `TableHandle` must implement a `put` method.")

    @abstractmethod
    def get(self, row: bytes, family: str, max_versions: int = 1) -> Dict[bytes, bytes]:
        """
        Read the columns of a single row.

        Args:
            row: The row key.
            family: The column group to read.
            max_versions: How many versions of each cell to return.

        Returns:
            A mapping of column qualifier to value ordered by qualifier; empty if the row doesn't exist.
        """
        raise NotImplementedError("Subclasses of `TableHandle` must implement a `get` method.")

    @abstractmethod
    def delete(self, row: bytes, family: str):
        """
        Delete every column of a single row in one column group.

        Args:
            row: The row key.
            family: The column group to delete.
        """
        raise NotImplementedError("Subclasses of `TableHandle` must implement a `delete` method.")

    @abstractmethod
    def get_scanner(self, scan: Scan) -> Scanner:
        """
        Open a scanner over the rows matched by `scan`.

        Args:
            scan: The range and column group to read.

        Returns:
            A scanner returning rows in ascending key order.
        """
        raise NotImplementedError("Subclasses of `TableHandle` must implement a `get_scanner` method.")

    def put_rows(self, mutations: List[RowMutation]):
        """
        Write several rows. Each row is applied on its own; if one fails, the rows
        written before it stay written.

        Args:
            mutations: The rows to write.
        """
        for mutation in mutations:
            self.put(mutation.row, mutation.family, mutation.columns)

    def exists(self, row: bytes, family: str) -> bool:
        """
        Check whether a row holds any columns in a column group.

        Args:
            row: The row key.
            family: The column group to check.

        Returns:
            True if the row holds at least one column in `family`.
        """
        return bool(self.get(row, family))

    def _release(self):
        """Release any store resources held by this handle. Called exactly once."""

    def close(self):
        """Release the handle."""
        if self._closed:
            return
        self._closed = True
        self._release()

    def __enter__(self) -> "TableHandle":
        return self

    def __exit__(self, exc_type: Type[Exception], exc_value: Exception, traceback: TracebackType):
        self.close()


class SortedStore(ABC):
    """
    Base class for a connection to a sorted key-value store.

    One store instance is meant to be opened when the process starts, shared by every
    `BackupSystemTable`, and closed when the process shuts down.

    Attributes:
        store_name (str): The name of the store implementation (e.g. "redis").

    Methods:
        get_name: Retrieve the name of the store implementation.
        get_version: Query the store for its version.
        get_table: Open a short-lived handle on a table.
        table_exists: Check whether a table has been created.
        create_table: Create a table from a descriptor.
        get_table_descriptor: Retrieve the descriptor a table was created with.
        is_table_available: Check whether a table can serve requests.
        delete_table: Drop a table and every row in it.
        close: Close the connection.
    """

    def __init__(self, store_name: str):
        """
        Initialize the store.

        Args:
            store_name: The name of the store implementation.
        """
        self.store_name: str = store_name
        self._closed: bool = False

    def get_name(self) -> str:
        """
        Get the name of the store implementation.

        Returns:
            The name of the store (e.g. redis).
        """
        return self.store_name

    @abstractmethod
    def get_version(self) -> str:
        """
        Query the store for its version.

        Returns:
            A string representing the version of the store.
        """
        raise NotImplementedError("Subclasses of `SortedStore` must implement a `get_version` method.")

    @abstractmethod
    def get_table(self, name: str) -> TableHandle:
        """
        Open a short-lived handle on a table.

        Args:
            name: The name of the table.

        Returns:
            A handle on the table; close it when done.
        """
        raise NotImplementedError("Subclasses of `SortedStore` must implement a `get_table` method.")

    @abstractmethod
    def table_exists(self, name: str) -> bool:
        """
        Check whether a table has been created.

        Args:
            name: The name of the table.

        Returns:
            True if the table exists.
        """
        raise NotImplementedError("Subclasses of `SortedStore` must implement a `table_exists` method.")

    @abstractmethod
    def create_table(self, descriptor: TableDescriptor):
        """
        Create a table. Creating a table that already exists is a no-op.

        Args:
            descriptor: The name and column groups of the table.
        """
        raise NotImplementedError("Subclasses of `SortedStore` must implement a `create_table` method.")

    @abstractmethod
    def get_table_descriptor(self, name: str) -> Optional[TableDescriptor]:
        """
        Retrieve the descriptor a table was created with.

        Args:
            name: The name of the table.

        Returns:
            The table's descriptor, or None if the table doesn't exist.
        """
        raise NotImplementedError("Subclasses of `SortedStore` must implement a `get_table_descriptor` method.")

    @abstractmethod
    def delete_table(self, name: str):
        """
        Drop a table and every row in it.

        Args:
            name: The name of the table.
        """
        raise NotImplementedError("Subclasses of `SortedStore` must implement a `delete_table` method.")

    def is_table_available(self, name: str) -> bool:
        """
        Check whether a table can serve requests. Stores that create tables
        synchronously treat "exists" as "available".

        Args:
            name: The name of the table.

        Returns:
            True if the table is ready for reads and writes.
        """
        return self.table_exists(name)

    def _close(self):
        """Close the underlying connection. Called exactly once."""

    def close(self):
        """Close the connection to the store."""
        if self._closed:
            return
        self._closed = True
        LOG.debug(f"Closing {self.store_name} store.")
        self._close()

    def __enter__(self) -> "SortedStore":
        return self

    def __exit__(self, exc_type: Type[Exception], exc_value: Exception, traceback: TracebackType):
        self.close()
