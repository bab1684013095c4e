##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Tests for the `sqlite_connection.py` module.
"""

import os
import sqlite3
import sys
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture

from backup_meta.store.sqlite.sqlite_connection import SQLiteConnection
from tests.fixture_types import FixtureDict


@pytest.fixture
def mock_sqlite_components(mocker: MockerFixture) -> FixtureDict[str, MagicMock]:
    """
    Fixture to patch all external dependencies used by SQLiteConnection.

    Args:
        mocker: PyTest mocker fixture.

    Returns:
        A dictionary of mocked sqlite connection components.
    """
    # Patch Path.mkdir so it doesn't touch the filesystem
    mock_mkdir = mocker.patch("pathlib.Path.mkdir")

    mock_conn = MagicMock(spec=sqlite3.Connection)
    mock_connect = mocker.patch("sqlite3.connect", return_value=mock_conn)

    return {
        "mock_db_path": os.path.join("tmp", "fake", "backup_meta.db"),
        "mock_mkdir": mock_mkdir,
        "mock_connect": mock_connect,
        "mock_conn": mock_conn,
    }


def test_connection_enter_sets_up_connection(mock_sqlite_components: FixtureDict[str, MagicMock]):
    """
    Test that `__enter__` creates the parent directory and configures the connection.

    Args:
        mock_sqlite_components: A dictionary of mocked sqlite connection components.
    """
    conn_mock = mock_sqlite_components["mock_conn"]
    conn_mock.execute = MagicMock()

    with SQLiteConnection(mock_sqlite_components["mock_db_path"]) as conn:
        assert conn is conn_mock

    mock_sqlite_components["mock_mkdir"].assert_called_once_with(parents=True, exist_ok=True)
    autocommit_kwargs = {"autocommit": True} if sys.version_info >= (3, 12) else {"isolation_level": None}
    mock_sqlite_components["mock_connect"].assert_called_once_with(
        mock_sqlite_components["mock_db_path"],
        check_same_thread=False,
        **autocommit_kwargs,
    )
    conn_mock.execute.assert_any_call("PRAGMA journal_mode=WAL")
    assert conn_mock.row_factory == sqlite3.Row


def test_connection_exit_closes_connection(mock_sqlite_components: FixtureDict[str, MagicMock]):
    """
    Test that `__exit__` closes the SQLite connection once.

    Args:
        mock_sqlite_components: A dictionary of mocked sqlite connection components.
    """
    conn_mock = mock_sqlite_components["mock_conn"]
    sqlite_conn = SQLiteConnection(mock_sqlite_components["mock_db_path"])
    sqlite_conn.conn = conn_mock

    sqlite_conn.__exit__(None, None, None)
    sqlite_conn.__exit__(None, None, None)

    conn_mock.close.assert_called_once()
    assert sqlite_conn.conn is None


def test_connection_closed_on_error(mock_sqlite_components: FixtureDict[str, MagicMock]):
    """
    Test that the connection is closed when the body of the `with` block raises.

    Args:
        mock_sqlite_components: A dictionary of mocked sqlite connection components.
    """
    with pytest.raises(RuntimeError):
        with SQLiteConnection(mock_sqlite_components["mock_db_path"]):
            raise RuntimeError("boom")

    mock_sqlite_components["mock_conn"].close.assert_called_once()
