##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
SQLite implementation of a sorted key-value store.

Every table of the store lives in two SQLite tables:

- `kv_tables`: one row per store table holding its JSON-encoded `TableDescriptor`.
- `kv_cells`: one row per cell, keyed by (table, row key, column group, qualifier).
  Row keys and qualifiers are BLOBs, which SQLite compares bytewise, so
  `ORDER BY row_key` yields the ascending key order range scans rely on.

Column groups with a time-to-live store an `expires_at` epoch on their cells; expired
cells are filtered out of every read.
"""

import json
import logging
import os
import sqlite3
import time
from typing import Any, Dict, List, Optional, Tuple

from backup_meta.config.config_filepaths import DEFAULT_SQLITE_PATH
from backup_meta.exceptions import TableNotFoundError
from backup_meta.store.sqlite.sqlite_connection import SQLiteConnection
from backup_meta.store.store_base import Scanner, SortedStore, TableHandle, check_max_versions
from backup_meta.store.store_types import Row, Scan, TableDescriptor


LOG = logging.getLogger(__name__)

DEFAULT_CACHING = 100

SCHEMA = (
    "CREATE TABLE IF NOT EXISTS kv_tables (name TEXT PRIMARY KEY, descriptor TEXT NOT NULL)",
    """
    CREATE TABLE IF NOT EXISTS kv_cells (
        tbl TEXT NOT NULL,
        row_key BLOB NOT NULL,
        family TEXT NOT NULL,
        qualifier BLOB NOT NULL,
        value BLOB NOT NULL,
        expires_at REAL,
        PRIMARY KEY (tbl, row_key, family, qualifier)
    )
    """,
)


class SQLiteScanner(Scanner):
    """
    Scanner over a SQLite-backed table.

    The scanner owns its own connection and cursor until it is closed. Cells are fetched
    `caching` at a time and grouped into rows as they arrive.
    """

    def __init__(self, db_path: str, table: str, scan: Scan):
        super().__init__(scan)
        self._connection = SQLiteConnection(db_path)
        conn = self._connection.__enter__()

        conditions = ["tbl = ?", "row_key >= ?", "(expires_at IS NULL OR expires_at > ?)"]
        params: List[Any] = [table, scan.start_row, time.time()]
        if scan.stop_row:
            conditions.append("row_key < ?")
            params.append(scan.stop_row)
        if scan.family is not None:
            conditions.append("family = ?")
            params.append(scan.family)

        query = (
            f"SELECT row_key, qualifier, value FROM kv_cells WHERE {' AND '.join(conditions)} "
            "ORDER BY row_key, qualifier"
        )
        LOG.debug(f"SQLite scan query: {query}")
        try:
            self._cursor: sqlite3.Cursor = conn.execute(query, params)
        except Exception as exc:
            self._connection.__exit__(type(exc), exc, exc.__traceback__)
            raise
        self._batch_size: int = scan.caching or DEFAULT_CACHING
        self._buffer: List[sqlite3.Row] = []
        self._done: bool = False

    def _next_cell(self) -> Optional[sqlite3.Row]:
        if not self._buffer and not self._done:
            self._buffer = self._cursor.fetchmany(self._batch_size)
            if not self._buffer:
                self._done = True
        if self._buffer:
            return self._buffer.pop(0)
        return None

    def _peek_cell(self) -> Optional[sqlite3.Row]:
        cell = self._next_cell()
        if cell is not None:
            self._buffer.insert(0, cell)
        return cell

    def _next_row(self) -> Optional[Row]:
        first = self._next_cell()
        if first is None:
            return None
        key = bytes(first["row_key"])
        cells = {bytes(first["qualifier"]): bytes(first["value"])}
        while True:
            cell = self._peek_cell()
            if cell is None or bytes(cell["row_key"]) != key:
                break
            self._next_cell()
            cells[bytes(cell["qualifier"])] = bytes(cell["value"])
        return Row(key=key, cells=cells)

    def _release(self):
        self._buffer = []
        self._cursor.close()
        self._connection.__exit__(None, None, None)


class SQLiteTableHandle(TableHandle):
    """A handle on one table of a `SQLiteStore`."""

    def __init__(self, db_path: str, descriptor: TableDescriptor):
        super().__init__(descriptor.name)
        self.db_path: str = db_path
        self.descriptor: TableDescriptor = descriptor

    def _family(self, family: str):
        family_descriptor = self.descriptor.get_family(family)
        if family_descriptor is None:
            raise ValueError(f"Table '{self.name}' has no column family '{family}'.")
        return family_descriptor

    def put(self, row: bytes, family: str, columns: Dict[bytes, bytes]):
        family_descriptor = self._family(family)
        if not columns:
            return
        expires_at = time.time() + family_descriptor.ttl if family_descriptor.ttl else None
        cells: List[Tuple] = [
            (self.name, row, family, qualifier, value, expires_at) for qualifier, value in columns.items()
        ]
        with SQLiteConnection(self.db_path) as conn:
            conn.execute("BEGIN")
            try:
                conn.executemany(
                    "INSERT OR REPLACE INTO kv_cells (tbl, row_key, family, qualifier, value, expires_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    cells,
                )
                if expires_at is not None:
                    conn.execute(
                        "UPDATE kv_cells SET expires_at = ? WHERE tbl = ? AND row_key = ? AND family = ?",
                        (expires_at, self.name, row, family),
                    )
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise

    def get(self, row: bytes, family: str, max_versions: int = 1) -> Dict[bytes, bytes]:
        check_max_versions(max_versions)
        self._family(family)
        with SQLiteConnection(self.db_path) as conn:
            cursor = conn.execute(
                "SELECT qualifier, value FROM kv_cells WHERE tbl = ? AND row_key = ? AND family = ? "
                "AND (expires_at IS NULL OR expires_at > ?) ORDER BY qualifier",
                (self.name, row, family, time.time()),
            )
            return {bytes(cell["qualifier"]): bytes(cell["value"]) for cell in cursor.fetchall()}

    def delete(self, row: bytes, family: str):
        self._family(family)
        with SQLiteConnection(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM kv_cells WHERE tbl = ? AND row_key = ? AND family = ?", (self.name, row, family)
            )
            LOG.debug(f"Deleted {cursor.rowcount} cells from row {row!r} of '{self.name}'.")

    def get_scanner(self, scan: Scan) -> Scanner:
        check_max_versions(scan.max_versions)
        if scan.family is not None:
            self._family(scan.family)
        return SQLiteScanner(self.db_path, self.name, scan)


class SQLiteStore(SortedStore):
    """
    A sorted key-value store backed by a local SQLite database file.

    Attributes:
        store_name (str): Always "sqlite".
        db_path (str): The path to the SQLite database file.
    """

    def __init__(self, path: str = DEFAULT_SQLITE_PATH, **kwargs):
        """
        Initialize the `SQLiteStore` instance and make sure its schema exists.

        Args:
            path: The path to the SQLite database file.
            kwargs: Accepted and ignored so that the store can be built from any store configuration.
        """
        super().__init__("sqlite")
        self.db_path: str = os.path.expanduser(path)
        self._initialize_schema()

    def _initialize_schema(self):
        """Create the tables backing this store if they don't already exist."""
        with SQLiteConnection(self.db_path) as conn:
            for statement in SCHEMA:
                conn.execute(statement)

    def get_version(self) -> str:
        with SQLiteConnection(self.db_path) as conn:
            cursor = conn.execute("SELECT sqlite_version()")
            return cursor.fetchone()[0]

    def get_table_descriptor(self, name: str) -> Optional[TableDescriptor]:
        with SQLiteConnection(self.db_path) as conn:
            row = conn.execute("SELECT descriptor FROM kv_tables WHERE name = ?", (name,)).fetchone()
        if row is None:
            return None
        return TableDescriptor.from_dict(json.loads(row["descriptor"]))

    def get_table(self, name: str) -> TableHandle:
        descriptor = self.get_table_descriptor(name)
        if descriptor is None:
            raise TableNotFoundError(f"Table '{name}' does not exist.")
        return SQLiteTableHandle(self.db_path, descriptor)

    def table_exists(self, name: str) -> bool:
        return self.get_table_descriptor(name) is not None

    def create_table(self, descriptor: TableDescriptor):
        with SQLiteConnection(self.db_path) as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO kv_tables (name, descriptor) VALUES (?, ?)",
                (descriptor.name, json.dumps(descriptor.to_dict())),
            )
            if cursor.rowcount:
                LOG.debug(f"Created SQLite table '{descriptor.name}'.")
            else:
                LOG.debug(f"Table '{descriptor.name}' already exists.")

    def delete_table(self, name: str):
        with SQLiteConnection(self.db_path) as conn:
            conn.execute("DELETE FROM kv_cells WHERE tbl = ?", (name,))
            conn.execute("DELETE FROM kv_tables WHERE name = ?", (name,))
