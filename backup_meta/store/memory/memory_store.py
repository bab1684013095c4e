##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
In-process implementation of a sorted key-value store.

`MemoryStore` keeps every table in Python data structures: a sorted list of row keys
(maintained with `bisect`) and, per row, one column dictionary per column group. It is
used when backup_meta runs in local mode and by the test suite, and it honors the same
contract as the networked stores: ascending key order for scans, one retained version
per cell, per-column-group time-to-live, and non-atomic multi-row writes.
"""

import logging
import threading
import time
from bisect import bisect_left, insort
from typing import Dict, List, Optional, Tuple

from backup_meta.exceptions import TableNotFoundError
from backup_meta.store.store_base import Scanner, SortedStore, TableHandle, check_max_versions
from backup_meta.store.store_types import Row, Scan, TableDescriptor


LOG = logging.getLogger(__name__)


class _MemoryTable:
    """
    The rows of one in-memory table.

    Attributes:
        descriptor (TableDescriptor): The descriptor the table was created with.
        keys (List[bytes]): Every row key that holds at least one column group, sorted.
        rows (Dict[bytes, Dict[str, Dict[bytes, bytes]]]): Row key -> column group -> qualifier -> value.
        expirations (Dict[Tuple[bytes, str], float]): (row key, column group) -> epoch seconds it expires at.
        lock (threading.RLock): Guards every field above.
    """

    def __init__(self, descriptor: TableDescriptor):
        self.descriptor: TableDescriptor = descriptor
        self.keys: List[bytes] = []
        self.rows: Dict[bytes, Dict[str, Dict[bytes, bytes]]] = {}
        self.expirations: Dict[Tuple[bytes, str], float] = {}
        self.lock = threading.RLock()

    def check_family(self, family: Optional[str]):
        """
        Make sure a column group belongs to this table.

        Args:
            family: The column group, or None for "every column group".

        Raises:
            ValueError: If the table has no such column group.
        """
        if family is not None and self.descriptor.get_family(family) is None:
            raise ValueError(f"Table '{self.descriptor.name}' has no column family '{family}'.")

    def _expire(self, row: bytes, family: str):
        expires_at = self.expirations.get((row, family))
        if expires_at is not None and expires_at <= time.time():
            LOG.debug(f"Row {row!r} in family '{family}' of '{self.descriptor.name}' expired.")
            self._drop(row, family)

    def _drop(self, row: bytes, family: str):
        families = self.rows.get(row)
        if families is None:
            return
        families.pop(family, None)
        self.expirations.pop((row, family), None)
        if not families:
            del self.rows[row]
            del self.keys[bisect_left(self.keys, row)]

    def put(self, row: bytes, family: str, columns: Dict[bytes, bytes]):
        with self.lock:
            self._expire(row, family)
            if row not in self.rows:
                self.rows[row] = {}
                insort(self.keys, row)
            cells = self.rows[row].setdefault(family, {})
            cells.update(columns)
            ttl = self.descriptor.get_family(family).ttl
            if ttl:
                self.expirations[(row, family)] = time.time() + ttl

    def get(self, row: bytes, family: Optional[str]) -> Dict[bytes, bytes]:
        with self.lock:
            families = self.rows.get(row)
            if families is None:
                return {}
            wanted = [family] if family is not None else sorted(families)
            result = {}
            for name in wanted:
                self._expire(row, name)
                cells = self.rows.get(row, {}).get(name, {})
                result.update(cells)
            return dict(sorted(result.items()))

    def delete(self, row: bytes, family: str):
        with self.lock:
            self._drop(row, family)

    def keys_in_range(self, scan: Scan) -> List[bytes]:
        with self.lock:
            start = bisect_left(self.keys, scan.start_row)
            stop = bisect_left(self.keys, scan.stop_row) if scan.stop_row else len(self.keys)
            return self.keys[start:stop]


class MemoryScanner(Scanner):
    """
    Scanner over an in-memory table.

    The row keys in range are captured when the scanner opens; the cells of each row
    are read as the scanner reaches it, so rows deleted in the meantime are skipped.
    """

    def __init__(self, table: _MemoryTable, scan: Scan):
        super().__init__(scan)
        self._table: _MemoryTable = table
        self._keys: List[bytes] = table.keys_in_range(scan)
        self._position: int = 0

    def _next_row(self) -> Optional[Row]:
        while self._position < len(self._keys):
            key = self._keys[self._position]
            self._position += 1
            cells = self._table.get(key, self.scan.family)
            if cells:
                return Row(key=key, cells=cells)
        return None

    def _release(self):
        self._keys = []


class MemoryTableHandle(TableHandle):
    """A handle on one table of a `MemoryStore`."""

    def __init__(self, table: _MemoryTable):
        super().__init__(table.descriptor.name)
        self._table: _MemoryTable = table

    def put(self, row: bytes, family: str, columns: Dict[bytes, bytes]):
        self._table.check_family(family)
        if not columns:
            return
        self._table.put(row, family, columns)

    def get(self, row: bytes, family: str, max_versions: int = 1) -> Dict[bytes, bytes]:
        check_max_versions(max_versions)
        self._table.check_family(family)
        return self._table.get(row, family)

    def delete(self, row: bytes, family: str):
        self._table.check_family(family)
        self._table.delete(row, family)

    def get_scanner(self, scan: Scan) -> Scanner:
        check_max_versions(scan.max_versions)
        self._table.check_family(scan.family)
        return MemoryScanner(self._table, scan)


class MemoryStore(SortedStore):
    """
    A sorted key-value store held entirely in process memory.

    Everything stored here is lost when the store is closed or the process exits.

    Attributes:
        store_name (str): Always "memory".
    """

    def __init__(self, **kwargs):
        """
        Initialize an empty in-memory store.

        Args:
            kwargs: Accepted and ignored so that the store can be built from any store configuration.
        """
        super().__init__("memory")
        self._tables: Dict[str, _MemoryTable] = {}
        self._lock = threading.Lock()

    def get_version(self) -> str:
        from backup_meta import VERSION  # pylint: disable=import-outside-toplevel

        return VERSION

    def _lookup(self, name: str) -> _MemoryTable:
        try:
            return self._tables[name]
        except KeyError as exc:
            raise TableNotFoundError(f"Table '{name}' does not exist.") from exc

    def get_table(self, name: str) -> TableHandle:
        return MemoryTableHandle(self._lookup(name))

    def table_exists(self, name: str) -> bool:
        return name in self._tables

    def create_table(self, descriptor: TableDescriptor):
        with self._lock:
            if descriptor.name in self._tables:
                LOG.debug(f"Table '{descriptor.name}' already exists.")
                return
            self._tables[descriptor.name] = _MemoryTable(descriptor)
            LOG.debug(f"Created in-memory table '{descriptor.name}'.")

    def get_table_descriptor(self, name: str) -> Optional[TableDescriptor]:
        table = self._tables.get(name)
        return table.descriptor if table is not None else None

    def delete_table(self, name: str):
        with self._lock:
            self._tables.pop(name, None)

    def _close(self):
        self._tables.clear()
