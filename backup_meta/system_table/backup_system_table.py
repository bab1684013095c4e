##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
This module contains `BackupSystemTable`, the read/write interface to the table
holding every piece of bookkeeping state that backup orchestration needs.

Each record kind has its own read/write/delete methods. Every method opens a
short-lived handle on the table, performs one store operation (or one scan), and
closes the handle again before returning. The store connection itself is shared
and owned by the caller.
"""

import logging
import time
from typing import Dict, Iterable, List, Optional, Set

from backup_meta.config import Config
from backup_meta.config.configfile import (
    DEFAULT_AVAILABILITY_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SYSTEM_TABLE_NAME,
)
from backup_meta.exceptions import InvalidRowKeyComponentError, SystemTableUnavailableError
from backup_meta.store.store_base import SortedStore, TableHandle
from backup_meta.store.store_types import ColumnFamilyDescriptor, RowMutation, Scan, TableDescriptor
from backup_meta.system_table import set_algebra
from backup_meta.system_table.history import HistoryMixin
from backup_meta.system_table.models import (
    BackupInfo,
    TableServerTimestamp,
    decode_long,
    encode_long,
    get_unique_wal_file_name_part,
)
from backup_meta.system_table.row_keys import (
    BACKUP_INFO_PREFIX,
    EMPTY_VALUE,
    ENCODING,
    INCR_BACKUP_SET_PREFIX,
    META_FAMILY,
    Q_BACKUP_ID,
    Q_CONTEXT,
    Q_FILE,
    Q_LOG_ROLL_MAP,
    Q_ROOT,
    Q_RS_LOG_TS,
    Q_START_CODE,
    Q_TABLES,
    RS_LOG_TS_PREFIX,
    SESSIONS_FAMILY,
    SET_KEY_PREFIX,
    START_CODE_PREFIX,
    TABLE_RS_LOG_MAP_PREFIX,
    WALS_PREFIX,
    compose,
    decode_suffix,
    prefix_range_bound,
    scoped_range_bound,
    strip_prefix,
    validate_component,
)
from backup_meta.system_table.wal_cursor import WALCursor
from backup_meta.utils import get_yaml_var


LOG = logging.getLogger(__name__)

SET_MEMBER_SEPARATOR = ","


def _system_table_settings(config: Optional[Config]):
    if config is None:
        from backup_meta.config.configfile import CONFIG  # pylint: disable=import-outside-toplevel

        config = CONFIG
    return getattr(config, "system_table", None)


def _encode_members(tables: List[str]) -> bytes:
    return SET_MEMBER_SEPARATOR.join(tables).encode(ENCODING)


def _decode_members(data: Optional[bytes]) -> List[str]:
    if not data:
        return []
    return data.decode(ENCODING).split(SET_MEMBER_SEPARATOR)


def _validate_members(tables: Iterable[str]) -> List[str]:
    members = []
    for table in tables:
        validate_component(table, "table name")
        if SET_MEMBER_SEPARATOR in table:
            raise InvalidRowKeyComponentError(
                f"The table name {table!r} contains '{SET_MEMBER_SEPARATOR}', which separates backup set members."
            )
        members.append(table)
    return members


class BackupSystemTable(HistoryMixin):  # pylint: disable=too-many-public-methods
    """
    Read/write access to the backup system table.

    Constructing an instance makes sure the table exists, creating it from
    `get_system_table_descriptor` if needed, and waits until the store reports it
    as available.

    Attributes:
        connection (SortedStore): The shared store connection. Owned by the caller.
        config (Config): The configuration the table was opened with.
        table_name (str): The name of the backup system table.

    Methods:
        update_backup_info / read_backup_info / delete_backup_info: Backup sessions.
        read_backup_start_code / write_backup_start_code / delete_backup_start_code: Start codes.
        write_region_server_last_log_roll_result / read_region_server_last_log_roll_result /
            delete_region_server_last_log_roll_result: Per-server log roll timestamps.
        write_region_server_log_timestamp / read_log_timestamp_map / delete_log_timestamp_map:
            Per-table server timestamp maps.
        get_incremental_backup_table_set / add_incremental_backup_table_set /
            delete_incremental_backup_table_set: Tables under incremental backup.
        add_wal_files / get_wal_files_iterator / is_wal_file_deletable / delete_wal_files: WAL registry.
        list_backup_sets / describe_backup_set / add_to_backup_set / remove_from_backup_set /
            delete_backup_set: Named backup sets.
        get_system_table_descriptor / get_table_name: Provisioning helpers.
        close: Release this object. The shared connection stays open.
    """

    def __init__(self, connection: SortedStore, config: Config = None):
        """
        Open the backup system table, creating it if it doesn't exist yet.

        Args:
            connection: An open store connection shared with the rest of the process.
            config: The configuration to read the table settings from. Defaults to the global `CONFIG`.

        Raises:
            SystemTableUnavailableError: If the table isn't available within the configured timeout.
        """
        self.connection: SortedStore = connection
        self.config: Config = config
        self.table_name: str = self.get_table_name(config)
        self._check_system_table()

    def _check_system_table(self):
        """Create the table if needed, then wait until it's available."""
        if not self.connection.table_exists(self.table_name):
            LOG.info(f"Creating backup system table '{self.table_name}'.")
            self.connection.create_table(self.get_system_table_descriptor(self.config))
        self._wait_for_system_table()

    def _wait_for_system_table(self):
        """
        Poll the store until the table exists and is available.

        Raises:
            SystemTableUnavailableError: If the table isn't available within the configured timeout.
        """
        settings = _system_table_settings(self.config)
        timeout = get_yaml_var(settings, "availability_timeout", DEFAULT_AVAILABILITY_TIMEOUT)
        poll_interval = get_yaml_var(settings, "poll_interval", DEFAULT_POLL_INTERVAL)

        start_time = time.monotonic()
        while not (
            self.connection.table_exists(self.table_name) and self.connection.is_table_available(self.table_name)
        ):
            time.sleep(poll_interval)
            if time.monotonic() - start_time > timeout:
                raise SystemTableUnavailableError(
                    f"Backup system table '{self.table_name}' was not available after {timeout} seconds."
                )
        LOG.debug(f"Backup system table '{self.table_name}' exists and is available.")

    @staticmethod
    def get_table_name(config: Config = None) -> str:
        """
        Get the name of the backup system table.

        Args:
            config: The configuration to read. Defaults to the global `CONFIG`.

        Returns:
            The configured table name, or "backup:system".
        """
        return get_yaml_var(_system_table_settings(config), "name", None) or DEFAULT_SYSTEM_TABLE_NAME

    @staticmethod
    def get_system_table_descriptor(config: Config = None) -> TableDescriptor:
        """
        Build the descriptor the backup system table is created from.

        The `session` column group keeps a single version of each cell and expires rows
        after `system_table.session_ttl` seconds (never, if unset). The `meta` column group
        keeps a single version and never expires.

        Args:
            config: The configuration to read. Defaults to the global `CONFIG`.

        Returns:
            The table descriptor.
        """
        ttl = get_yaml_var(_system_table_settings(config), "session_ttl", None)
        return TableDescriptor(
            name=BackupSystemTable.get_table_name(config),
            families=[
                ColumnFamilyDescriptor(name=SESSIONS_FAMILY, max_versions=1, ttl=ttl),
                ColumnFamilyDescriptor(name=META_FAMILY, max_versions=1),
            ],
        )

    def _open_table(self) -> TableHandle:
        return self.connection.get_table(self.table_name)

    def close(self):
        """Release this object. The shared store connection is left open for its owner to close."""
        LOG.debug(f"Closing backup system table '{self.table_name}'.")

    def __enter__(self) -> "BackupSystemTable":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    ##############################
    # Backup sessions
    ##############################

    def update_backup_info(self, info: BackupInfo):
        """
        Write (or overwrite) the descriptor of a backup session.

        Args:
            info: The session to store.
        """
        LOG.debug(f"Updating backup session {info.backup_id}: state={info.state.value}.")
        with self._open_table() as table:
            table.put(compose(BACKUP_INFO_PREFIX, info.backup_id), SESSIONS_FAMILY, {Q_CONTEXT: info.to_bytes()})

    def read_backup_info(self, backup_id: str) -> Optional[BackupInfo]:
        """
        Read the descriptor of a backup session.

        Args:
            backup_id: The id of the session.

        Returns:
            The session, or None if it isn't recorded.

        Raises:
            MalformedRecordError: If the stored descriptor can't be decoded.
        """
        LOG.debug(f"Reading backup session {backup_id}.")
        with self._open_table() as table:
            columns = table.get(compose(BACKUP_INFO_PREFIX, backup_id), SESSIONS_FAMILY)
        if not columns:
            return None
        return BackupInfo.from_bytes(columns.get(Q_CONTEXT, EMPTY_VALUE))

    def delete_backup_info(self, backup_id: str):
        """
        Delete the descriptor of a backup session.

        Args:
            backup_id: The id of the session.
        """
        LOG.debug(f"Deleting backup session {backup_id}.")
        with self._open_table() as table:
            table.delete(compose(BACKUP_INFO_PREFIX, backup_id), SESSIONS_FAMILY)

    ##############################
    # Start codes
    ##############################

    def read_backup_start_code(self, backup_root: str) -> Optional[str]:
        """
        Read the start code of the last successful backup to a root.

        A missing row and an empty value both mean no backup has succeeded yet.

        Args:
            backup_root: The backup destination.

        Returns:
            The start code, or None if there is no checkpoint.
        """
        LOG.debug(f"Reading backup start code for root {backup_root}.")
        with self._open_table() as table:
            columns = table.get(compose(START_CODE_PREFIX, backup_root), META_FAMILY)
        value = next(iter(columns.values()), EMPTY_VALUE)
        if not value:
            return None
        return value.decode(ENCODING)

    def write_backup_start_code(self, start_code: Optional[int], backup_root: str):
        """
        Write the start code of the last successful backup to a root.

        Args:
            start_code: The start code. None stores an empty value, meaning "no checkpoint".
            backup_root: The backup destination.
        """
        LOG.debug(f"Writing backup start code {start_code} for root {backup_root}.")
        value = EMPTY_VALUE if start_code is None else str(start_code).encode(ENCODING)
        with self._open_table() as table:
            table.put(compose(START_CODE_PREFIX, backup_root), META_FAMILY, {Q_START_CODE: value})

    def delete_backup_start_code(self, backup_root: str):
        """
        Delete the start code of a root.

        Args:
            backup_root: The backup destination.
        """
        LOG.debug(f"Deleting backup start code for root {backup_root}.")
        with self._open_table() as table:
            table.delete(compose(START_CODE_PREFIX, backup_root), META_FAMILY)

    ##############################
    # Server log roll results
    ##############################

    def write_region_server_last_log_roll_result(self, server: str, timestamp: int, backup_root: str):
        """
        Record the timestamp of a server's last log roll for a root.

        Args:
            server: The server name.
            timestamp: The log roll timestamp.
            backup_root: The backup destination.
        """
        LOG.debug(f"Writing last log roll result {timestamp} of server {server} for root {backup_root}.")
        with self._open_table() as table:
            row = compose(RS_LOG_TS_PREFIX, backup_root, server)
            table.put(row, META_FAMILY, {Q_RS_LOG_TS: encode_long(timestamp)})

    def read_region_server_last_log_roll_result(self, backup_root: str) -> Dict[str, int]:
        """
        Read the last log roll timestamp of every server for a root.

        Args:
            backup_root: The backup destination.

        Returns:
            A mapping of server name to timestamp; empty if none are recorded.

        Raises:
            MalformedRecordError: If a stored timestamp isn't 8 bytes long.
        """
        LOG.debug(f"Reading last log roll results for root {backup_root}.")
        start, stop = scoped_range_bound(RS_LOG_TS_PREFIX, backup_root)
        scan = Scan(start_row=start, stop_row=stop, family=META_FAMILY, max_versions=1)

        server_timestamps = {}
        with self._open_table() as table, table.get_scanner(scan) as scanner:
            for row in scanner:
                server_timestamps[decode_suffix(row.key)] = decode_long(row.first_value())
        return server_timestamps

    def delete_region_server_last_log_roll_result(self, server: str, backup_root: str):
        """
        Delete the last log roll timestamp of a server for a root.

        Args:
            server: The server name.
            backup_root: The backup destination.
        """
        LOG.debug(f"Deleting last log roll result of server {server} for root {backup_root}.")
        with self._open_table() as table:
            table.delete(compose(RS_LOG_TS_PREFIX, backup_root, server), META_FAMILY)

    ##############################
    # Table log timestamp maps
    ##############################

    def write_region_server_log_timestamp(
        self, tables: Iterable[str], new_timestamps: Dict[str, int], backup_root: str
    ):
        """
        Record the server log timestamps reached by a successful backup, one row per table.

        Rows are written one by one. If a write fails, the rows written before it stay written.

        Args:
            tables: The tables that were backed up.
            new_timestamps: A mapping of server name to the timestamp of its last backed-up log.
            backup_root: The backup destination.
        """
        tables = list(tables)
        LOG.debug(f"Writing server log timestamps for root {backup_root} and tables [{', '.join(tables)}].")
        mutations = [
            RowMutation(
                row=compose(TABLE_RS_LOG_MAP_PREFIX, backup_root, table),
                family=META_FAMILY,
                columns={Q_LOG_ROLL_MAP: TableServerTimestamp.to_bytes(table, new_timestamps)},
            )
            for table in tables
        ]
        with self._open_table() as table_handle:
            table_handle.put_rows(mutations)

    def read_log_timestamp_map(self, backup_root: str) -> Dict[str, Dict[str, int]]:
        """
        Read the server log timestamps of every table backed up to a root.

        Args:
            backup_root: The backup destination.

        Returns:
            A mapping of table name to a mapping of server name to timestamp.

        Raises:
            MalformedRecordError: If a table's row holds an empty or undecodable map.
        """
        LOG.debug(f"Reading server log timestamps for root {backup_root}.")
        start, stop = scoped_range_bound(TABLE_RS_LOG_MAP_PREFIX, backup_root)
        scan = Scan(start_row=start, stop_row=stop, family=META_FAMILY, max_versions=1)

        table_timestamps = {}
        with self._open_table() as table, table.get_scanner(scan) as scanner:
            for row in scanner:
                table_timestamps[decode_suffix(row.key)] = TableServerTimestamp.from_bytes(row.value(Q_LOG_ROLL_MAP))
        return table_timestamps

    def delete_log_timestamp_map(self, table_name: str, backup_root: str):
        """
        Delete the server log timestamps of one table for a root.

        Args:
            table_name: The table name.
            backup_root: The backup destination.
        """
        LOG.debug(f"Deleting server log timestamps of table {table_name} for root {backup_root}.")
        with self._open_table() as table:
            table.delete(compose(TABLE_RS_LOG_MAP_PREFIX, backup_root, table_name), META_FAMILY)

    ##############################
    # Incremental backup table set
    ##############################

    def get_incremental_backup_table_set(self, backup_root: str) -> Set[str]:
        """
        Read the tables under incremental backup for a root.

        Args:
            backup_root: The backup destination.

        Returns:
            The table names; empty if none are recorded.
        """
        LOG.debug(f"Reading incremental backup table set for root {backup_root}.")
        with self._open_table() as table:
            columns = table.get(compose(INCR_BACKUP_SET_PREFIX, backup_root), META_FAMILY)
        return {qualifier.decode(ENCODING) for qualifier in columns}

    def add_incremental_backup_table_set(self, tables: Iterable[str], backup_root: str):
        """
        Add tables to the incremental backup table set of a root. Tables already in the set stay there.

        Args:
            tables: The table names to add.
            backup_root: The backup destination.
        """
        members = _validate_members(tables)
        LOG.debug(f"Adding tables [{', '.join(members)}] to the incremental backup table set of root {backup_root}.")
        if not members:
            return
        with self._open_table() as table:
            table.put(
                compose(INCR_BACKUP_SET_PREFIX, backup_root),
                META_FAMILY,
                {member.encode(ENCODING): EMPTY_VALUE for member in members},
            )

    def delete_incremental_backup_table_set(self, backup_root: str):
        """
        Delete the incremental backup table set of a root.

        Args:
            backup_root: The backup destination.
        """
        LOG.debug(f"Deleting incremental backup table set of root {backup_root}.")
        with self._open_table() as table:
            table.delete(compose(INCR_BACKUP_SET_PREFIX, backup_root), META_FAMILY)

    ##############################
    # WAL registry
    ##############################

    def add_wal_files(self, files: Iterable[str], backup_id: str, backup_root: str):
        """
        Register WAL files as backed up, and so eligible for deletion.

        Args:
            files: The full paths of the WAL files.
            backup_id: The backup session that copied the files.
            backup_root: The backup destination.
        """
        files = list(files)
        LOG.debug(f"Registering WAL files for backup {backup_id} at root {backup_root}: [{', '.join(files)}].")
        mutations = [
            RowMutation(
                row=compose(WALS_PREFIX, get_unique_wal_file_name_part(wal_file)),
                family=META_FAMILY,
                columns={
                    Q_BACKUP_ID: backup_id.encode(ENCODING),
                    Q_FILE: wal_file.encode(ENCODING),
                    Q_ROOT: backup_root.encode(ENCODING),
                },
            )
            for wal_file in files
        ]
        with self._open_table() as table:
            table.put_rows(mutations)

    def get_wal_files_iterator(self, backup_root: Optional[str] = None) -> WALCursor:
        """
        Open a cursor over the registered WAL files.

        The cursor owns a table handle and a scanner until it is exhausted or closed.

        Args:
            backup_root: Only return WAL files registered for this root. None returns every file.

        Returns:
            A `WALCursor` yielding `WALItem` objects in row key order.
        """
        LOG.debug("Opening WAL file cursor.")
        start, stop = prefix_range_bound(WALS_PREFIX)
        scan = Scan(start_row=start, stop_row=stop, family=META_FAMILY, max_versions=1)
        table = self._open_table()
        try:
            scanner = table.get_scanner(scan)
        except Exception:
            table.close()
            raise
        return WALCursor(table, scanner, root=backup_root)

    def is_wal_file_deletable(self, wal_file: str) -> bool:
        """
        Check whether a WAL file has been registered as backed up.

        Args:
            wal_file: The full path (or name) of the WAL file.

        Returns:
            True if the file is registered, whichever backup or root registered it.
        """
        LOG.debug(f"Checking whether WAL file {wal_file} has been backed up.")
        with self._open_table() as table:
            return table.exists(compose(WALS_PREFIX, get_unique_wal_file_name_part(wal_file)), META_FAMILY)

    def delete_wal_files(self, files: Iterable[str]):
        """
        Unregister WAL files.

        Args:
            files: The full paths (or names) of the WAL files.
        """
        with self._open_table() as table:
            for wal_file in files:
                LOG.debug(f"Unregistering WAL file {wal_file}.")
                table.delete(compose(WALS_PREFIX, get_unique_wal_file_name_part(wal_file)), META_FAMILY)

    ##############################
    # Backup sets
    ##############################

    def list_backup_sets(self) -> List[str]:
        """
        List the names of every backup set.

        Returns:
            The set names in ascending order.
        """
        LOG.debug("Listing backup sets.")
        start, stop = prefix_range_bound(SET_KEY_PREFIX)
        scan = Scan(start_row=start, stop_row=stop, family=META_FAMILY, max_versions=1)
        with self._open_table() as table, table.get_scanner(scan) as scanner:
            return [strip_prefix(row.key, SET_KEY_PREFIX) for row in scanner]

    def describe_backup_set(self, name: str) -> Optional[List[str]]:
        """
        Read the tables of a backup set.

        Args:
            name: The set name.

        Returns:
            The table names in the order they were added, or None if the set doesn't exist.
        """
        LOG.debug(f"Describing backup set {name}.")
        with self._open_table() as table:
            columns = table.get(compose(SET_KEY_PREFIX, name), META_FAMILY)
        if not columns:
            return None
        return _decode_members(columns.get(Q_TABLES))

    def add_to_backup_set(self, name: str, tables: Iterable[str]):
        """
        Add tables to a backup set, creating the set if it doesn't exist.

        Tables already in the set keep their position; new ones are appended in the order given.

        Args:
            name: The set name.
            tables: The table names to add.
        """
        new_tables = _validate_members(tables)
        row = compose(SET_KEY_PREFIX, name)
        LOG.debug(f"Adding tables [{', '.join(new_tables)}] to backup set {name}.")
        with self._open_table() as table:
            current = _decode_members(table.get(row, META_FAMILY).get(Q_TABLES))
            merged = set_algebra.union(current, new_tables)
            if not merged:
                LOG.warning(f"No tables given for backup set '{name}'. Nothing to add.")
                return
            table.put(row, META_FAMILY, {Q_TABLES: _encode_members(merged)})

    def remove_from_backup_set(self, name: str, tables: Iterable[str]):
        """
        Remove tables from a backup set. A set left with no tables is deleted.

        Args:
            name: The set name.
            tables: The table names to remove.
        """
        to_remove = list(tables)
        row = compose(SET_KEY_PREFIX, name)
        LOG.debug(f"Removing tables [{', '.join(to_remove)}] from backup set {name}.")
        with self._open_table() as table:
            columns = table.get(row, META_FAMILY)
            if not columns:
                LOG.warning(f"Backup set '{name}' not found.")
                return

            current = _decode_members(columns.get(Q_TABLES))
            remaining = set_algebra.difference(current, to_remove)
            if not remaining:
                LOG.info(f"Backup set '{name}' is empty. Deleting.")
                table.delete(row, META_FAMILY)
            elif len(remaining) == len(current):
                LOG.warning(f"Backup set '{name}' does not contain tables [{', '.join(to_remove)}].")
            else:
                table.put(row, META_FAMILY, {Q_TABLES: _encode_members(remaining)})

    def delete_backup_set(self, name: str):
        """
        Delete a backup set.

        Args:
            name: The set name.
        """
        LOG.debug(f"Deleting backup set {name}.")
        with self._open_table() as table:
            table.delete(compose(SET_KEY_PREFIX, name), META_FAMILY)
