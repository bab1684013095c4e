##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Tests for the `memory_store.py` module.
"""

from pytest_mock import MockerFixture

from backup_meta import VERSION
from backup_meta.store.memory.memory_store import MemoryStore
from backup_meta.store.store_types import Scan, TableDescriptor
from tests.fixture_types import FixtureStore


class TestMemoryStore:
    """Tests for behavior specific to the in-memory store."""

    def test_name_and_version(self, stores_memory: FixtureStore):
        """
        Test that the store reports its name and the package version.

        Args:
            stores_memory: An in-memory store.
        """
        assert stores_memory.get_name() == "memory"
        assert stores_memory.get_version() == VERSION

    def test_ignores_unknown_settings(self):
        """Test that store settings meant for other stores are accepted and ignored."""
        store = MemoryStore(url="redis://localhost", path="/tmp/x.db")
        assert store.get_name() == "memory"

    def test_ttl_expiry(
        self, mocker: MockerFixture, stores_memory: FixtureStore, stores_table_descriptor: TableDescriptor
    ):
        """
        Test that cells of a column group with a TTL disappear once it elapses, and others don't.

        Args:
            mocker: PyTest mocker fixture.
            stores_memory: An in-memory store.
            stores_table_descriptor: A descriptor whose `session` column group has a one hour TTL.
        """
        mock_time = mocker.patch("backup_meta.store.memory.memory_store.time")
        mock_time.time.return_value = 1000.0
        stores_memory.create_table(stores_table_descriptor)
        handle = stores_memory.get_table("kv:test")
        handle.put(b"r1", "session", {b"q": b"v"})
        handle.put(b"r1", "meta", {b"q": b"kept"})

        mock_time.time.return_value = 4599.0
        assert handle.get(b"r1", "session") == {b"q": b"v"}

        mock_time.time.return_value = 4600.0
        assert handle.get(b"r1", "session") == {}
        assert handle.get(b"r1", "meta") == {b"q": b"kept"}

    def test_expired_rows_leave_the_key_index(
        self, mocker: MockerFixture, stores_memory: FixtureStore, stores_table_descriptor: TableDescriptor
    ):
        """
        Test that a row whose only column group expired is no longer scanned.

        Args:
            mocker: PyTest mocker fixture.
            stores_memory: An in-memory store.
            stores_table_descriptor: A descriptor whose `session` column group has a one hour TTL.
        """
        mock_time = mocker.patch("backup_meta.store.memory.memory_store.time")
        mock_time.time.return_value = 0.0
        stores_memory.create_table(stores_table_descriptor)
        handle = stores_memory.get_table("kv:test")
        handle.put(b"r1", "session", {b"q": b"v"})

        mock_time.time.return_value = 7200.0
        with handle.get_scanner(Scan()) as scanner:
            assert list(scanner) == []
        with handle.get_scanner(Scan()) as scanner:
            assert list(scanner) == []

    def test_scanner_skips_rows_deleted_mid_scan(
        self, stores_memory: FixtureStore, stores_table_descriptor: TableDescriptor
    ):
        """
        Test that rows deleted after a scanner opened are skipped rather than returned empty.

        Args:
            stores_memory: An in-memory store.
            stores_table_descriptor: The descriptor to create the table from.
        """
        stores_memory.create_table(stores_table_descriptor)
        handle = stores_memory.get_table("kv:test")
        for key in (b"a", b"b", b"c"):
            handle.put(key, "meta", {b"q": key})

        scanner = handle.get_scanner(Scan(family="meta"))
        assert scanner.next().key == b"a"
        handle.delete(b"b", "meta")
        assert scanner.next().key == b"c"
        assert scanner.next() is None

    def test_put_with_no_columns_creates_nothing(
        self, stores_memory: FixtureStore, stores_table_descriptor: TableDescriptor
    ):
        """
        Test that an empty put doesn't leave an empty row behind.

        Args:
            stores_memory: An in-memory store.
            stores_table_descriptor: The descriptor to create the table from.
        """
        stores_memory.create_table(stores_table_descriptor)
        handle = stores_memory.get_table("kv:test")
        handle.put(b"r1", "meta", {})
        with handle.get_scanner(Scan()) as scanner:
            assert list(scanner) == []

    def test_close_drops_tables(self, stores_table_descriptor: TableDescriptor):
        """
        Test that closing the store forgets every table.

        Args:
            stores_table_descriptor: The descriptor to create the table from.
        """
        store = MemoryStore()
        store.create_table(stores_table_descriptor)
        store.close()
        assert not store.table_exists("kv:test")
