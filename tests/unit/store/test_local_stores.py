##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Tests that every local store implementation (memory and SQLite) honors the same contract.
"""

import pytest

from backup_meta.exceptions import TableNotFoundError
from backup_meta.store.store_types import RowMutation, Scan, TableDescriptor
from tests.fixture_types import FixtureStore


@pytest.fixture
def kv_table(stores_any: FixtureStore, stores_table_descriptor: TableDescriptor):
    """
    A freshly created table on each local store, with its handle.

    Args:
        stores_any: The store under test.
        stores_table_descriptor: The descriptor to create the table from.

    Yields:
        An open table handle.
    """
    stores_any.create_table(stores_table_descriptor)
    with stores_any.get_table(stores_table_descriptor.name) as handle:
        yield handle


class TestTableLifecycle:
    """Tests for creating, describing, and dropping tables."""

    def test_create_and_describe(self, stores_any: FixtureStore, stores_table_descriptor: TableDescriptor):
        """
        Test that a created table exists and keeps its descriptor.

        Args:
            stores_any: The store under test.
            stores_table_descriptor: The descriptor to create the table from.
        """
        assert not stores_any.table_exists("kv:test")
        assert stores_any.get_table_descriptor("kv:test") is None

        stores_any.create_table(stores_table_descriptor)
        stores_any.create_table(stores_table_descriptor)

        assert stores_any.table_exists("kv:test")
        assert stores_any.is_table_available("kv:test")
        assert stores_any.get_table_descriptor("kv:test") == stores_table_descriptor

    def test_get_missing_table_raises(self, stores_any: FixtureStore):
        """
        Test that opening a table that was never created raises `TableNotFoundError`.

        Args:
            stores_any: The store under test.
        """
        with pytest.raises(TableNotFoundError):
            stores_any.get_table("nope")

    def test_delete_table(self, stores_any: FixtureStore, stores_table_descriptor: TableDescriptor):
        """
        Test that dropping a table removes its rows too.

        Args:
            stores_any: The store under test.
            stores_table_descriptor: The descriptor to create the table from.
        """
        stores_any.create_table(stores_table_descriptor)
        with stores_any.get_table("kv:test") as handle:
            handle.put(b"r1", "meta", {b"q": b"v"})
        stores_any.delete_table("kv:test")
        assert not stores_any.table_exists("kv:test")

        stores_any.create_table(stores_table_descriptor)
        with stores_any.get_table("kv:test") as handle:
            assert handle.get(b"r1", "meta") == {}


class TestRowOperations:
    """Tests for single-row puts, gets, and deletes."""

    def test_put_merges_columns(self, kv_table):
        """
        Test that a put only touches the columns it names and gets come back ordered by qualifier.

        Args:
            kv_table: An open table handle.
        """
        kv_table.put(b"r1", "meta", {b"b": b"1"})
        kv_table.put(b"r1", "meta", {b"a": b"2", b"b": b"3"})
        assert list(kv_table.get(b"r1", "meta").items()) == [(b"a", b"2"), (b"b", b"3")]

    def test_families_are_separate(self, kv_table):
        """
        Test that column groups of one row are read and deleted independently.

        Args:
            kv_table: An open table handle.
        """
        kv_table.put(b"r1", "meta", {b"q": b"meta"})
        kv_table.put(b"r1", "session", {b"q": b"session"})
        assert kv_table.get(b"r1", "meta") == {b"q": b"meta"}

        kv_table.delete(b"r1", "session")
        assert kv_table.get(b"r1", "session") == {}
        assert kv_table.exists(b"r1", "meta")

    def test_empty_values_are_kept(self, kv_table):
        """
        Test that an empty value is stored, as opposed to a missing row.

        Args:
            kv_table: An open table handle.
        """
        kv_table.put(b"r1", "meta", {b"q": b""})
        assert kv_table.get(b"r1", "meta") == {b"q": b""}
        assert kv_table.exists(b"r1", "meta")
        assert not kv_table.exists(b"r2", "meta")

    def test_unknown_family_raises(self, kv_table):
        """
        Test that using a column group the table doesn't have raises a `ValueError`.

        Args:
            kv_table: An open table handle.
        """
        with pytest.raises(ValueError, match="no column family"):
            kv_table.put(b"r1", "nope", {b"q": b"v"})

    def test_invalid_max_versions(self, kv_table):
        """
        Test that a version cap below one is rejected.

        Args:
            kv_table: An open table handle.
        """
        with pytest.raises(ValueError, match="max_versions"):
            kv_table.get(b"r1", "meta", max_versions=0)

    def test_put_rows(self, kv_table):
        """
        Test that `put_rows` writes every mutation.

        Args:
            kv_table: An open table handle.
        """
        kv_table.put_rows([RowMutation(b"r1", "meta", {b"q": b"1"}), RowMutation(b"r2", "meta", {b"q": b"2"})])
        assert kv_table.get(b"r2", "meta") == {b"q": b"2"}


class TestScans:
    """Tests for range scans."""

    @pytest.fixture
    def populated(self, kv_table):
        """
        A table holding rows whose keys sort differently as text and as bytes.

        Args:
            kv_table: An open table handle.

        Returns:
            The populated table handle.
        """
        for key in (b"p:b", b"p:a\x00z", b"p:a", b"q:a", b"o:z", b"p:\xff"):
            kv_table.put(key, "meta", {b"q": key})
        kv_table.put(b"p:c", "session", {b"q": b"session only"})
        return kv_table

    def test_scan_is_ordered_and_bounded(self, populated):
        """
        Test that a scan returns the rows of its range in ascending byte order.

        Args:
            populated: A populated table handle.
        """
        with populated.get_scanner(Scan(start_row=b"p:", stop_row=b"p;", family="meta")) as scanner:
            keys = [row.key for row in scanner]
        assert keys == [b"p:a", b"p:a\x00z", b"p:b", b"p:\xff"]

    def test_scan_skips_rows_without_the_family(self, populated):
        """
        Test that a row holding no cells in the scanned column group isn't returned.

        Args:
            populated: A populated table handle.
        """
        with populated.get_scanner(Scan(start_row=b"p:c", stop_row=b"p:d", family="meta")) as scanner:
            assert list(scanner) == []
        with populated.get_scanner(Scan(start_row=b"p:c", stop_row=b"p:d", family="session")) as scanner:
            assert [row.first_value() for row in scanner] == [b"session only"]

    def test_open_ended_scan(self, populated):
        """
        Test that an empty stop row scans to the end of the table.

        Args:
            populated: A populated table handle.
        """
        with populated.get_scanner(Scan(start_row=b"p:b", family="meta")) as scanner:
            assert [row.key for row in scanner] == [b"p:b", b"p:\xff", b"q:a"]

    def test_small_caching(self, populated):
        """
        Test that fetching one row per round trip still returns every row once.

        Args:
            populated: A populated table handle.
        """
        with populated.get_scanner(Scan(family="meta", caching=1)) as scanner:
            assert len(list(scanner)) == 6

    def test_closed_scanner_returns_nothing(self, populated):
        """
        Test that a closed scanner stops returning rows.

        Args:
            populated: A populated table handle.
        """
        scanner = populated.get_scanner(Scan(family="meta"))
        assert scanner.next() is not None
        scanner.close()
        scanner.close()
        assert scanner.closed
        assert scanner.next() is None
